import pytest

from forecastnext import cli
from forecastnext import testing


@pytest.fixture
def csv_path(tmp_path):
    path = tmp_path / "hourly.csv"
    path.write_text(testing.get_test_csv())
    return path


def test_main_prints_forecast(csv_path, capsys):
    result = cli.main([str(csv_path), "--target", "load", "--log-level", "WARNING"])

    captured = capsys.readouterr()
    assert result == 0
    assert 'Target="load" -> next(+1) forecast:' in captured.out


def test_main_with_config(csv_path, tmp_path, capsys):
    config_path = tmp_path / "forecastnext.yaml"
    config_path.write_text("model:\n  iterations: 10\n  max_depth: 2\nlogging:\n  level: ERROR\n")

    result = cli.main([str(csv_path), "--config", str(config_path)])

    assert result == 0
    assert 'Target="temperature"' in capsys.readouterr().out


def test_main_unsupported_file(tmp_path, capsys):
    path = tmp_path / "hourly.json"
    path.write_text("{}")

    result = cli.main([str(path)])

    assert result == 1
    assert "Unsupported file type" in capsys.readouterr().err


def test_main_unknown_column(csv_path, capsys):
    result = cli.main([str(csv_path), "--target", "price"])

    assert result == 1
    assert "price" in capsys.readouterr().err


def test_parse_args():
    args = cli.parse_args(["data.xlsx", "--datetime", "when", "--target", "v"])

    assert args.file == "data.xlsx"
    assert args.datetime_column == "when"
    assert args.target == "v"
    assert args.config is None
