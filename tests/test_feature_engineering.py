import numpy as np
import pandas as pd
import pytest

import forecastnext as fn
from forecastnext import testing
from forecastnext.feature_engineering import calc_time_features, feature_names


def test_build_features_two_rows():
    rows = [{"date": "2025-01-01", "v": 1}, {"date": "2025-01-02", "v": 2}]

    bundle = fn.build_features(rows, "date", "v")

    assert bundle.y.tolist() == [1.0, 2.0]
    assert bundle.X.shape == (2, 5)
    assert bundle.X[0][0] == 0
    assert bundle.X[1][0] == 1
    assert bundle.last_feature_row[0] == 2
    assert len(bundle.last_feature_row) == 5


def test_calc_time_features():
    result = calc_time_features(6)
    answer = [
        6.0,
        np.sin(2 * np.pi * 6 / 24),
        np.cos(2 * np.pi * 6 / 24),
        np.sin(2 * np.pi * 6 / 168),
        np.cos(2 * np.pi * 6 / 168),
    ]

    assert np.sum(np.abs(np.array(result) - np.array(answer))) < testing._get_difference_threshold()
    assert calc_time_features(0) == [0.0, 0.0, 1.0, 0.0, 1.0]


def test_build_features_shapes():
    rows = testing.get_test_example()

    bundle = fn.build_features(rows, "timestamp", "load")

    assert len(bundle.X) == len(bundle.y) == len(rows)
    assert bundle.X.shape[1] == len(bundle.last_feature_row) == 7
    assert bundle.feature_names == [
        "temperature",
        "humidity",
        "t",
        "sin_24",
        "cos_24",
        "sin_168",
        "cos_168",
    ]


def test_build_features_coercion():
    rows = testing.get_test_example()

    bundle = fn.build_features(rows, "timestamp", "load")

    assert bundle.X[0][:2].tolist() == [3.5, 81.0]
    assert np.isnan(bundle.X[2][1])  # None
    assert np.isnan(bundle.X[4][0])  # "n/a"
    assert bundle.y.tolist() == [410.0, 395.5, 380.25, 372.0, 377.75, 401.0]


def test_build_features_zero_is_not_missing():
    rows = [
        {"a": 0, "b": "", "c": "0", "d": " 2.5 ", "y": 1},
        {"a": None, "b": True, "c": "abc", "d": float("nan"), "y": ""},
    ]

    bundle = fn.build_features(rows, None, "y")

    assert bundle.X[0][0] == 0.0
    assert np.isnan(bundle.X[0][1])
    assert bundle.X[0][2] == 0.0
    assert bundle.X[0][3] == 2.5
    assert np.isnan(bundle.X[1][0])
    assert bundle.X[1][1] == 1.0
    assert np.isnan(bundle.X[1][2])
    assert np.isnan(bundle.X[1][3])
    assert bundle.y[0] == 1.0
    assert np.isnan(bundle.y[1])


def test_build_features_next_step_carries_last_row():
    rows = testing.get_test_example()

    bundle = fn.build_features(rows, "timestamp", "load")

    assert bundle.last_feature_row[:2].tolist() == [2.2, 88.0]
    assert bundle.last_feature_row[2:].tolist() == calc_time_features(len(rows))


def test_build_features_ignores_target_values():
    rows = testing.get_test_example()
    shifted = [dict(row, load=row["load"] * 10 + 3) for row in rows]

    original = fn.build_features(rows, "timestamp", "load")
    changed = fn.build_features(shifted, "timestamp", "load")

    np.testing.assert_array_equal(original.X, changed.X)
    np.testing.assert_array_equal(original.last_feature_row, changed.last_feature_row)
    assert not np.array_equal(original.y, changed.y)


def test_build_features_is_deterministic():
    data = testing.get_test_loaded_data()

    first = fn.build_features(data.rows, data.datetime_column, "load")
    second = fn.build_features(data.rows, data.datetime_column, "load")

    np.testing.assert_array_equal(first.X, second.X)
    np.testing.assert_array_equal(first.y, second.y)
    np.testing.assert_array_equal(first.last_feature_row, second.last_feature_row)


def test_build_features_uses_first_row_keys():
    rows = [
        {"date": "d0", "a": 1, "b": 2, "v": 10},
        {"date": "d1", "a": 3, "v": 20},
        {"date": "d2", "a": 5, "b": 6, "extra": 99, "v": 30},
    ]

    bundle = fn.build_features(rows, "date", "v")

    assert bundle.X.shape == (3, 7)
    assert np.isnan(bundle.X[1][1])
    assert bundle.X[2][:2].tolist() == [5.0, 6.0]
    assert bundle.last_feature_row[:2].tolist() == [5.0, 6.0]


def test_build_features_without_datetime_column():
    rows = [{"x": 1, "y": 2}, {"x": 3, "y": 4}]

    bundle = fn.build_features(rows, None, "y")

    assert bundle.X.shape == (2, 6)
    assert bundle.X[:, 0].tolist() == [1.0, 3.0]
    assert bundle.X[:, 1].tolist() == [0.0, 1.0]


def test_build_features_from_dataframe():
    rows = testing.get_test_example()

    from_records = fn.build_features(rows, "timestamp", "load")
    from_frame = fn.build_features(pd.DataFrame(rows), "timestamp", "load")

    np.testing.assert_array_equal(from_records.X, from_frame.X)
    np.testing.assert_array_equal(from_records.y, from_frame.y)


def test_build_features_empty():
    with pytest.raises(ValueError):
        fn.build_features([], "date", "v")


def test_feature_names():
    rows = [{"date": "d0", "a": 1, "v": 10}]

    assert feature_names(rows, "date", "v") == [
        "a",
        "t",
        "sin_24",
        "cos_24",
        "sin_168",
        "cos_168",
    ]
