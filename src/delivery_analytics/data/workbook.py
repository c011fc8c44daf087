"""Read uploaded spreadsheet files into raw cell grids."""

from __future__ import annotations

import csv
from io import BytesIO, StringIO
from pathlib import Path
from typing import Any

from openpyxl import load_workbook

SUPPORTED_SUFFIXES = {".csv", ".xlsx", ".xlsm"}


class UnsupportedFileType(ValueError):
    """Raised for uploads that are neither CSV nor an Excel workbook."""


def read_grid(payload: bytes, filename: str) -> list[list[Any]]:
    """Decode the first sheet of a workbook (or a CSV file) into rows of cells."""
    suffix = Path(filename or "").suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise UnsupportedFileType(f"Unsupported file type '{suffix or filename}'. Only .csv and .xlsx files are supported.")

    if suffix == ".csv":
        return _read_csv(payload)

    workbook = load_workbook(filename=BytesIO(payload), read_only=True, data_only=True)
    try:
        worksheet = workbook.worksheets[0]
        return [list(row) for row in worksheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _read_csv(payload: bytes) -> list[list[Any]]:
    text = payload.decode("utf-8-sig", errors="replace")
    if not text.strip():
        return []
    sample = text[:4096]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=",;\t")
    except csv.Error:
        dialect = csv.excel
    reader = csv.reader(StringIO(text), dialect)
    return [list(row) for row in reader]
