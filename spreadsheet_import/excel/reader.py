from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

"""Spreadsheet reader (input adapter for the CLI).

The core never parses files; this module turns an .xlsx / .csv file into the
raw shape the core consumes: header values + positional string rows.

- All cells are read as text (dtype=str); pandas default NA strings such as
  "NA" / "null" are kept literally (keep_default_na=False)
- Empty cells -> None, fully empty rows are skipped
- header_row: 0-based row holding the headers; rows above it (titles) are dropped
"""

__all__ = [
    "SheetHeaderError",
    "UnsupportedFileError",
    "RawTable",
    "read_raw_frame",
    "read_table",
]

SUPPORTED_SUFFIXES = {".xlsx", ".xlsm", ".csv"}


class SheetHeaderError(Exception):
    """Raised when the header row is missing."""


class UnsupportedFileError(Exception):
    """Raised for file types the reader cannot parse."""


@dataclass
class RawTable:
    header_values: list[str | None]
    rows: list[list[Any]] = field(default_factory=list)
    sheet_name: str | None = None


def read_raw_frame(path: Path, sheet: str | None = None) -> tuple[pd.DataFrame, str | None]:
    """Read a file without header interpretation. Returns (frame, sheet name)."""
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise UnsupportedFileError(f"unsupported file type: {path.name}")
    if suffix == ".csv":
        df = pd.read_csv(path, header=None, dtype=str, keep_default_na=False, skip_blank_lines=False)
        return df, None
    xls = pd.ExcelFile(path)
    sheet_name = sheet if sheet is not None else str(xls.sheet_names[0])
    if sheet_name not in [str(s) for s in xls.sheet_names]:
        raise SheetHeaderError(f"sheet '{sheet_name}' not found in {path.name}")
    df = xls.parse(sheet_name, header=None, dtype=str, keep_default_na=False)
    return df, sheet_name


def _cell(value: Any) -> Any:
    if value is None:
        return None
    if not isinstance(value, str) and pd.isna(value):
        return None
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def read_table(path: Path, sheet: str | None = None, header_row: int = 0) -> RawTable:
    df, sheet_name = read_raw_frame(path, sheet)
    if df.shape[0] <= header_row:
        raise SheetHeaderError(f"'{path.name}' has no header row at index {header_row}")
    header_values = [_cell(v) for v in df.iloc[header_row].tolist()]
    header_values = [None if v is None else str(v).strip() for v in header_values]
    rows: list[list[Any]] = []
    for raw in df.iloc[header_row + 1:].itertuples(index=False, name=None):
        cells = [_cell(v) for v in raw]
        if all(c is None for c in cells):
            continue
        rows.append(cells)
    return RawTable(header_values=header_values, rows=rows, sheet_name=sheet_name)
