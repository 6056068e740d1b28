from __future__ import annotations

import io
import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from tabular_import.models.raw_row import RawRow

"""Table parser: uploaded bytes/text -> ordered RawRow sequence.

- Row 1 is the header and is consumed, data rows start at row 2.
- Delimited text is split on line breaks, then on the delimiter while honouring
  quoted fields (a quote toggles the inside-quotes flag).
- Workbooks are read with pandas (openpyxl); only the first sheet is used.
- Completely blank rows are skipped; remaining rows keep their physical number.
- Date columns declared by the caller are normalised to YYYY-MM-DD, converting
  spreadsheet serial day counts with the 1899-12-30 epoch. Serials outside the
  representable date range stay plain number text for the date rule to reject.
"""

__all__ = [
    "FileKind",
    "ParseError",
    "detect_file_kind",
    "split_delimited_line",
    "read_delimited",
    "read_workbook",
    "serial_to_iso_date",
    "format_cell",
    "parse_table",
]

# Spreadsheet serial day 0 (1900 date system, includes the 1900 leap-year quirk)
EXCEL_EPOCH = pd.Timestamp("1899-12-30")

logger = logging.getLogger(__name__)

_DELIMITED_SUFFIXES = {".csv"}
_WORKBOOK_SUFFIXES = {".xlsx", ".xls"}


class FileKind(Enum):
    """Declared kind of an uploaded file."""
    DELIMITED = "delimited"
    WORKBOOK = "workbook"


class ParseError(Exception):
    """Raised when the upload is unreadable, empty or of an unsupported kind."""


def detect_file_kind(file_name: str | Path) -> FileKind:
    """Map a file name to its FileKind by extension."""
    suffix = Path(file_name).suffix.lower()
    if suffix in _DELIMITED_SUFFIXES:
        return FileKind.DELIMITED
    if suffix in _WORKBOOK_SUFFIXES:
        return FileKind.WORKBOOK
    raise ParseError(f"unsupported file type '{suffix or file_name}' (expected .csv, .xlsx or .xls)")


def split_delimited_line(line: str, delimiter: str = ",") -> list[str]:
    """Split one line on ``delimiter``, keeping delimiters inside quotes literal.

    A doubled quote inside a quoted field is a literal quote. Cells are trimmed.
    """
    cells: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif ch == delimiter and not in_quotes:
            cells.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1
    cells.append("".join(current).strip())
    return cells


def read_delimited(payload: str | bytes, delimiter: str = ",") -> list[list[str]]:
    """Return the full grid (header included) of a delimited text payload."""
    if isinstance(payload, bytes):
        try:
            text = payload.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"file is not valid UTF-8 text: {e}") from e
    else:
        text = payload.lstrip("\ufeff")
    return [split_delimited_line(line.rstrip("\r"), delimiter) for line in text.split("\n")]


def read_workbook(payload: bytes) -> list[list[Any]]:
    """Return the raw cell grid (header included) of the first workbook sheet."""
    try:
        df = pd.read_excel(io.BytesIO(payload), sheet_name=0, header=None, dtype=object)
    except Exception as e:
        raise ParseError(f"unable to read workbook: {e}") from e
    return [list(values) for values in df.itertuples(index=False, name=None)]


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def serial_to_iso_date(value: float | int) -> str | None:
    """Convert a spreadsheet serial day count to YYYY-MM-DD.

    Returns None when the serial falls outside the Timestamp range.
    """
    try:
        ts = EXCEL_EPOCH + pd.to_timedelta(float(value), unit="D")
    except (ValueError, OverflowError) as e:
        logger.debug(f"serial {value!r} is not a representable date: {e}")
        return None
    if pd.isna(ts):
        return None
    return ts.strftime("%Y-%m-%d")


def _number_text(value: Any) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_cell(value: Any, *, as_date: bool = False) -> str:
    """Render one raw cell as the text handed downstream."""
    if _is_missing(value):
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (bool, np.bool_)):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (datetime, pd.Timestamp)):
        if as_date or (value.hour, value.minute, value.second) == (0, 0, 0):
            return value.strftime("%Y-%m-%d")
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, (int, float, np.integer, np.floating)):
        if as_date:
            iso = serial_to_iso_date(value)
            if iso is not None:
                return iso
        return _number_text(value)
    return str(value).strip()


def parse_table(
    payload: str | bytes,
    kind: FileKind,
    *,
    date_columns: Iterable[int] | Callable[[tuple[str, ...]], Iterable[int]] = (),
    delimiter: str = ",",
) -> list[RawRow]:
    """Parse an upload into RawRows (header consumed, numbering from row 2).

    date_columns is either a fixed set of column indexes or a callable that
    receives the header labels and returns the indexes (header-driven layouts).

    Raises:
        ParseError: unsupported kind, unreadable payload, or no data rows.
    """
    if kind is FileKind.DELIMITED:
        grid: list[list[Any]] = read_delimited(payload, delimiter)
    elif kind is FileKind.WORKBOOK:
        if isinstance(payload, str):
            raise ParseError("workbook payload must be bytes")
        grid = read_workbook(payload)
    else:  # pragma: no cover (enum exhaustive)
        raise ParseError(f"unsupported file kind: {kind!r}")

    # 先頭の空行はヘッダ扱いしない
    leading_blank = 0
    while leading_blank < len(grid) and not any(format_cell(v) for v in grid[leading_blank]):
        leading_blank += 1
    if leading_blank == len(grid):
        raise ParseError("file is empty")

    header = tuple(format_cell(v) for v in grid[leading_blank])
    date_cols = set(date_columns(header) if callable(date_columns) else date_columns)
    rendered = [
        [format_cell(v, as_date=(idx in date_cols)) for idx, v in enumerate(raw)]
        for raw in grid[leading_blank:]
    ]
    width = len(header)
    rows: list[RawRow] = []
    skipped: list[int] = []
    for idx, cells in enumerate(rendered[1:], start=2):
        if not any(cells):
            skipped.append(idx + leading_blank)
            continue
        padded = cells + [""] * (width - len(cells))
        rows.append(RawRow(row_number=idx + leading_blank, header=header, cells=tuple(padded)))
    if skipped:
        logger.debug(f"skipped {len(skipped)} blank row(s): {skipped}")

    if not rows:
        raise ParseError("no data rows found below the header")
    return rows
