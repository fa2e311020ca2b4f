from __future__ import annotations

import csv
import io
import math
from collections import Counter
from datetime import date, datetime
from typing import Any, Literal

import numpy as np
import pandas as pd

from ..errors import EmptySheet, UndecodableInput
from ..models.raw_sheet import RawSheet

"""Statement decoding: .xlsx, legacy .xls and delimited text (.csv).

The format is sniffed from the leading bytes: a ZIP container is read with
openpyxl, an OLE2 compound file with xlrd, anything else is decoded as text
with the delimiter guessed from the first lines (semicolon, comma, tab or pipe).
Only the first sheet of a workbook is read, without a header (header
detection happens in ``excel.columns``). This module only converts the
resulting DataFrame into a RawSheet of plain Python values.

Strings such as "NA" or "NULL" are kept verbatim: a statement description may
legitimately contain them, so pandas' default NA sentinels are disabled.
"""

__all__ = [
    "CSV_SHEET_NAME",
    "XLS_MAGIC",
    "XLSX_MAGIC",
    "InputFormat",
    "sniff_format",
    "read_statement",
    "to_raw_sheet",
]

XLSX_MAGIC = b"PK\x03\x04"
XLS_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
CSV_SHEET_NAME = "csv"
CSV_DELIMITERS = ";,\t|"
CSV_SNIFF_LINES = 20
TEXT_ENCODINGS = ("utf-8-sig", "cp1252")

InputFormat = Literal["xlsx", "xls", "csv"]

_ENGINES = {"xlsx": "openpyxl", "xls": "xlrd"}


def sniff_format(data: bytes) -> InputFormat:
    """Classify ``data`` by its leading bytes.

    Raises UndecodableInput for binary data that is neither workbook format.
    """
    if data.startswith(XLSX_MAGIC):
        return "xlsx"
    if data.startswith(XLS_MAGIC):
        return "xls"
    if b"\x00" in data[:4096]:
        raise UndecodableInput("unrecognized binary input (not .xlsx, .xls or text)")
    return "csv"


def _read_workbook(data: bytes, fmt: InputFormat) -> pd.DataFrame:
    try:
        xls = pd.ExcelFile(io.BytesIO(data), engine=_ENGINES[fmt])
    except Exception as e:  # decoder raises ValueError/BadZipFile/XLRDError/... depending on format
        raise UndecodableInput(f"unable to read workbook: {e}") from e

    if not xls.sheet_names:
        raise EmptySheet("workbook contains no sheets")
    sheet_name = xls.sheet_names[0]
    try:
        df = xls.parse(sheet_name, header=None, keep_default_na=False, na_values=[])
    except Exception as e:
        raise UndecodableInput(f"unable to read sheet '{sheet_name}': {e}") from e
    df.attrs["sheet_name"] = str(sheet_name)
    return df


def _decode_text(data: bytes) -> str:
    for encoding in TEXT_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    return data.decode("latin-1")


def _guess_delimiter(text: str) -> str:
    """Pick the delimiter that splits the most sample lines into the same (>1) field count."""
    sample = text.splitlines()[:CSV_SNIFF_LINES]
    best, best_score = ",", (0, 0)
    for delimiter in CSV_DELIMITERS:
        try:
            widths = Counter(len(r) for r in csv.reader(sample, delimiter=delimiter) if len(r) > 1)
        except csv.Error:
            continue
        if not widths:
            continue
        width, lines = widths.most_common(1)[0]
        if (lines, width) > best_score:
            best, best_score = delimiter, (lines, width)
    return best


def _read_csv(data: bytes) -> pd.DataFrame:
    text = _decode_text(data)
    if not text.strip():
        raise EmptySheet("input is empty")
    delimiter = _guess_delimiter(text)
    try:
        # rows may be ragged (metadata lines above the header): size the frame
        # on the widest line
        width = max(len(r) for r in csv.reader(io.StringIO(text), delimiter=delimiter))
        df = pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            header=None,
            names=list(range(max(width, 1))),
            dtype=str,
            keep_default_na=False,
            na_values=[],
            skip_blank_lines=False,
            engine="python",
        )
    except pd.errors.EmptyDataError as e:
        raise EmptySheet("input is empty") from e
    except (pd.errors.ParserError, csv.Error, ValueError) as e:
        raise UndecodableInput(f"unable to read delimited text: {e}") from e
    df.attrs["sheet_name"] = CSV_SHEET_NAME
    return df


def read_statement(data: bytes) -> pd.DataFrame:
    """Decode raw statement bytes, returning the first sheet as a raw DataFrame.

    Raises
    ------
    UndecodableInput: bytes are not a readable workbook or delimited text
    EmptySheet: workbook has no sheet, or the input has no cells
    """
    if not data:
        raise EmptySheet("input is empty")
    fmt = sniff_format(data)
    if fmt == "csv":
        return _read_csv(data)
    return _read_workbook(data, fmt)


def _to_cell(value: Any) -> Any:
    """Convert a pandas/numpy cell into a plain Python value (None when empty)."""
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, (datetime, date, int, float, bool)):
        return value
    return str(value)


def to_raw_sheet(df: pd.DataFrame) -> RawSheet:
    """Convert a header-less DataFrame to a RawSheet, preserving row order.

    Trailing rows where every cell is empty are dropped; empty rows in the
    middle are kept so row numbers match the spreadsheet.
    """
    rows: list[tuple[Any, ...]] = [
        tuple(_to_cell(v) for v in raw) for raw in df.itertuples(index=False, name=None)
    ]
    while rows and all(c is None for c in rows[-1]):
        rows.pop()
    if not rows:
        raise EmptySheet("sheet contains no data")
    return RawSheet(rows=tuple(rows), sheet_name=str(df.attrs.get("sheet_name", "")))
