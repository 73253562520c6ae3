"""Shared parsing utilities for spreadsheet ingestion."""
from __future__ import annotations

import math
from datetime import date, datetime
from io import BytesIO
from pathlib import Path

import pandas as pd

from tuition_checker.domain.normalizers import to_serial

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
LEGACY_EXCEL_SUFFIXES = {".xls"}
CSV_SUFFIXES = {".csv"}


def ensure_bytes(source: BytesIO | Path | bytes) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, BytesIO):
        return source.getvalue()
    if isinstance(source, Path):
        return source.read_bytes()
    raise TypeError(f"Unsupported source type: {type(source)!r}")


def guess_suffix(source: BytesIO | Path | bytes, filename: str | None = None) -> str:
    if filename:
        return Path(filename).suffix.lower()
    if isinstance(source, Path):
        return source.suffix.lower()
    return ".xlsx"


def clean_cell(value: object) -> object:
    """Turn a pandas cell into the raw value a spreadsheet reader would hand out."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NaT:
        return None
    if isinstance(value, (datetime, date)):
        return to_serial(value)
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        # numpy scalars
        return clean_cell(value.item())
    return value


def frame_to_rows(df: pd.DataFrame) -> list[list[object]]:
    return [[clean_cell(cell) for cell in row] for row in df.itertuples(index=False, name=None)]
