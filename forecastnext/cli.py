"""
Command-line entry point: load a table, train, and print the next-step forecast.

Usage:
    forecastnext data/hourly.csv
    forecastnext data/hourly.xlsx --target load --datetime timestamp
    forecastnext data/hourly.csv --config forecastnext.yaml --log-level DEBUG
"""

import argparse
import asyncio
import logging
import sys

from forecastnext.config import DEFAULT_CONFIG, load_config
from forecastnext.main import ForecastSession

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the command line."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="forecastnext",
        description="Train a gradient-boosted tree model on a CSV/XLSX time series and forecast the next step.",
    )
    parser.add_argument("file", help="Path to a .csv or .xlsx file")
    parser.add_argument("--target", help="Column to forecast (default: first non-datetime column)")
    parser.add_argument("--datetime", dest="datetime_column", help="Datetime column (default: inferred)")
    parser.add_argument("--config", help="Path to a YAML configuration file")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from config, else INFO)",
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, config: dict) -> int:
    session = ForecastSession.from_config(config)

    try:
        if not await session.read_file(args.file):
            print(f"Status: {session.status}", file=sys.stderr)
            return 1

        try:
            session.select_columns(
                datetime_column=args.datetime_column, target=args.target
            )
        except AssertionError as e:
            print(f"Status: error: {e}", file=sys.stderr)
            return 1

        if not await session.train():
            print(f"Status: {session.status}", file=sys.stderr)
            return 1

        yhat = session.predict()
        if yhat is None:
            print(f"Status: {session.status}", file=sys.stderr)
            return 1

        print(f'Target="{session.target}" -> next(+1) forecast: {yhat:.4f}')
        return 0
    finally:
        session.close()


def main(argv=None) -> int:
    args = parse_args(argv)

    config = load_config(args.config) if args.config else DEFAULT_CONFIG
    setup_logging(args.log_level or config.get("logging", {}).get("level", "INFO"))

    return asyncio.run(run(args, config))


if __name__ == "__main__":
    sys.exit(main())
