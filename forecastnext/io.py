"""
Functions to load tabular time-series files into LoadedData.
"""

import asyncio
import io
import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

import pandas as pd

from forecastnext.exceptions import ParseError
from forecastnext.model import release_model
from forecastnext.utilities import _clean_cell

logger = logging.getLogger(__name__)

DATETIME_HINTS = ("date", "time")


@dataclass(frozen=True)
class LoadedData:
    """
    One uploaded table.

    Parameters
    ----------
    headers : tuple of strings
        Column names in the order they first appear in the file.
    rows : tuple of dicts
        One mapping of column name to raw cell value per file row, in file
        order. Empty cells are None.
    datetime_column : string or None
        The first header that looks like a date or time, if any.
    """

    headers: Tuple[str, ...]
    rows: Tuple[dict, ...]
    datetime_column: Optional[str] = None
    _frame: pd.DataFrame = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        assert self.headers, "LoadedData needs at least one header"
        assert (
            self.datetime_column is None or self.datetime_column in self.headers
        ), f"datetime_column {self.datetime_column!r} isn't one of the headers"

    @property
    def data(self) -> pd.DataFrame:
        """A pandas view of the rows, with columns in header order"""
        if self._frame is None:
            frame = pd.DataFrame(list(self.rows), columns=list(self.headers))
            object.__setattr__(self, "_frame", frame)
        return self._frame.copy(deep=True)

    def __len__(self):
        return len(self.rows)


def infer_datetime_column(headers) -> Optional[str]:
    """
    Return the first header whose lowercase name contains "date" or "time",
    or None when no header does.
    """
    for header in headers:
        lowered = str(header).lower()
        if any(hint in lowered for hint in DATETIME_HINTS):
            return header
    return None


def infer_target_column(headers, datetime_column=None) -> Optional[str]:
    """Return the first header that isn't the datetime column"""
    for header in headers:
        if header != datetime_column:
            return header
    return None


def _records_from_frame(df: pd.DataFrame):
    """Turn a parsed dataframe into (headers, rows) with python cell values"""
    headers = tuple(str(col).strip() for col in df.columns)

    rows = tuple(
        {
            header: _clean_cell(value)
            for header, value in zip(headers, record)
        }
        for record in df.itertuples(index=False, name=None)
    )

    return headers, rows


def _parse_csv_pandas(text: str):
    try:
        df = pd.read_csv(io.StringIO(text), skip_blank_lines=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeError) as e:
        raise ParseError(f"Couldn't parse CSV: {e}") from e

    return _records_from_frame(df)


def _parse_csv_simple(text: str):
    """
    Minimal comma-split parser: no quoting, every cell stays a string, and a
    short line leaves its trailing columns absent.
    """
    lines = text.strip().splitlines()
    headers = tuple(h.strip() for h in lines[0].split(","))

    rows = []
    for line in lines[1:]:
        values = [v.strip() for v in line.split(",")]
        rows.append({h: v for h, v in zip(headers, values)})

    return headers, tuple(rows)


def _get_csv_engines():
    return {"pandas": _parse_csv_pandas, "simple": _parse_csv_simple}


def _build_loaded_data(headers, rows, source: str) -> LoadedData:
    if not headers or not any(headers):
        raise ParseError(f"No header row found in {source} input")

    datetime_column = infer_datetime_column(headers)

    logger.info(
        f"Loaded {source} data: {len(rows)} rows x {len(headers)} columns "
        f"(datetime column: {datetime_column})"
    )

    return LoadedData(headers=headers, rows=rows, datetime_column=datetime_column)


def load_from_csv(text: str, engine: str = "pandas") -> LoadedData:
    """
    Parse CSV text into LoadedData and infer its datetime column.

    Parameters
    ----------
    text : str
        The raw CSV text, header line first.
    engine : str, default "pandas"
        The parser to use. "pandas" detects numeric types and handles quoting;
        "simple" splits on commas and newlines and keeps every value a string.

    Raises
    ----------
    ParseError
        If the text is empty, has no header line, or can't be parsed.
    """
    engines = _get_csv_engines()

    assert engine in engines.keys(), f"engine should be one of {list(engines.keys())}"

    if text is None or not text.strip():
        raise ParseError("CSV input is empty")

    headers, rows = engines[engine](text)

    return _build_loaded_data(headers, rows, source="CSV")


def load_from_xlsx(buffer: bytes) -> LoadedData:
    """
    Parse the first sheet of an XLSX workbook into LoadedData and infer its
    datetime column.

    Parameters
    ----------
    buffer : bytes
        The raw workbook bytes.

    Raises
    ----------
    ParseError
        If the workbook can't be read or its first sheet has no headers.
    """
    if not buffer:
        raise ParseError("XLSX input is empty")

    try:
        df = pd.read_excel(io.BytesIO(buffer), sheet_name=0, engine="openpyxl")
    except Exception as e:
        raise ParseError(f"Couldn't parse XLSX: {e}") from e

    headers, rows = _records_from_frame(df)

    return _build_loaded_data(headers, rows, source="XLSX")


def load_bytes(name: str, payload: bytes, csv_engine: str = "pandas") -> LoadedData:
    """
    Dispatch raw file contents to the right loader using the extension of name.

    Raises
    ----------
    ParseError
        If the extension isn't .csv or .xlsx, or the contents can't be parsed.
    """
    extension = os.path.splitext(str(name))[1].lower()

    if extension == ".csv":
        try:
            text = payload.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"{name} isn't valid UTF-8 text") from e
        return load_from_csv(text, engine=csv_engine)
    elif extension == ".xlsx":
        return load_from_xlsx(payload)
    else:
        raise ParseError("Unsupported file type (use .csv or .xlsx)")


async def load_file(path, csv_engine: str = "pandas") -> LoadedData:
    """
    Read a .csv or .xlsx file without blocking the event loop and load it.

    Parameters
    ----------
    path : str or Path
        Location of the file. The extension decides which loader runs.
    csv_engine : str, default "pandas"
        Passed to load_from_csv for .csv files.
    """
    extension = os.path.splitext(str(path))[1].lower()
    if extension not in (".csv", ".xlsx"):
        raise ParseError("Unsupported file type (use .csv or .xlsx)")

    logger.debug(f"Reading {path}")
    try:
        payload = await asyncio.to_thread(_read_bytes, path)
    except OSError as e:
        raise ParseError(f"Couldn't read {path}: {e}") from e

    return load_bytes(path, payload, csv_engine=csv_engine)


def _read_bytes(path) -> bytes:
    with open(path, "rb") as file:
        return file.read()


def _replace_data(self, data: LoadedData):
    """Swap in freshly loaded data and reset everything derived from the old data"""
    release_model(self.model)
    self.model = None
    self.predict_enabled = False
    self.last_prediction = None

    self.data = data
    self.datetime_column = data.datetime_column
    self.target = infer_target_column(data.headers, data.datetime_column)

    self._set_status("data loaded")


def _handle_parse_error(self, error: ParseError) -> bool:
    logger.error(f"Failed to load data: {error}")
    self._set_status(f"error: {error}")
    return False


async def read_file(self, path) -> bool:
    """
    Load a .csv or .xlsx file into the session.

    Parameters
    ----------
    path : str or Path
        Location of the file.

    Returns
    ----------
    True if the file was loaded. On failure the previously loaded data is
    kept and the reason is in self.status.
    """
    self._set_status(f"reading {os.path.basename(str(path))} ...")

    try:
        data = await load_file(path, csv_engine=self.csv_engine)
    except ParseError as e:
        return _handle_parse_error(self, e)

    _replace_data(self, data)
    return True


def read_csv(self, text: str) -> bool:
    """Load CSV text into the session. See read_file for the return value."""
    try:
        data = load_from_csv(text, engine=self.csv_engine)
    except ParseError as e:
        return _handle_parse_error(self, e)

    _replace_data(self, data)
    return True


def read_xlsx(self, buffer: bytes) -> bool:
    """Load XLSX bytes into the session. See read_file for the return value."""
    try:
        data = load_from_xlsx(buffer)
    except ParseError as e:
        return _handle_parse_error(self, e)

    _replace_data(self, data)
    return True
