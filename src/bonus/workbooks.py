"""Load uploaded spreadsheets into plain rows of cell values.

A workbook is an ordered mapping ``sheet name -> list of rows`` where each row
is a list of raw cell values (``None`` for empty cells). Parsers only ever see
this shape, never the reader library objects.
"""
from __future__ import annotations

import csv
import io
import logging
import os
import zipfile

import pandas as pd
from openpyxl import load_workbook as openpyxl_load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .exceptions import FeedFormatError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".xlsx", ".xls", ".csv")

Workbook = dict[str, list[list]]


def _read_bytes(file) -> bytes:
    if isinstance(file, (bytes, bytearray)):
        return bytes(file)
    if hasattr(file, "seek"):
        file.seek(0)
    return file.read()


def _load_xlsx(raw: bytes) -> Workbook:
    try:
        wb = openpyxl_load_workbook(io.BytesIO(raw), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise FeedFormatError(f"Kunne ikke lese Excel-filen: {exc}") from exc
    sheets: Workbook = {}
    try:
        for ws in wb.worksheets:
            sheets[ws.title] = [list(row) for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()
    return sheets


def _load_xls(raw: bytes) -> Workbook:
    try:
        frames = pd.read_excel(io.BytesIO(raw), sheet_name=None, header=None, dtype=object, engine="xlrd")
    except (ValueError, OSError, ImportError) as exc:
        raise FeedFormatError(f"Kunne ikke lese Excel-filen (.xls): {exc}") from exc
    sheets: Workbook = {}
    for name, df in frames.items():
        df = df.astype(object).where(pd.notna(df), None)
        sheets[str(name)] = df.values.tolist()
    return sheets


def _decode_csv(raw: bytes) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def _load_csv(raw: bytes) -> Workbook:
    content = _decode_csv(raw)
    sample = content[:4096]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=",;|\t")
    except csv.Error:
        dialect = csv.excel
    rows = [[cell if cell != "" else None for cell in row] for row in csv.reader(io.StringIO(content), dialect=dialect)]
    return {"csv": rows}


def load_workbook(file, file_name: str) -> Workbook:
    """Read ``file`` (bytes or a file-like object) according to its extension.

    Raises :class:`FeedFormatError` for unsupported or unreadable files.
    """
    ext = os.path.splitext(file_name or "")[1].lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise FeedFormatError(
            f"Filtypen {ext or '(ingen)'} stottes ikke. Bruk .xlsx, .xls eller .csv.",
        )
    raw = _read_bytes(file)
    if not raw:
        raise FeedFormatError("Filen er tom.")

    if ext == ".xlsx":
        sheets = _load_xlsx(raw)
    elif ext == ".xls":
        sheets = _load_xls(raw)
    else:
        sheets = _load_csv(raw)

    logger.debug("Loaded %s: %s", file_name, {name: len(rows) for name, rows in sheets.items()})
    return sheets


def first_sheet(workbook: Workbook) -> list[list]:
    for rows in workbook.values():
        return rows
    return []


def find_sheet(workbook: Workbook, name: str) -> list[list] | None:
    """Case-insensitive sheet lookup by exact (trimmed) name."""
    wanted = name.strip().lower()
    for sheet_name, rows in workbook.items():
        if sheet_name.strip().lower() == wanted:
            return rows
    return None
