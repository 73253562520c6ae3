"""Billing spreadsheet reader producing canonical billing records."""
from __future__ import annotations

import logging
import math
from io import BytesIO
from pathlib import Path
from typing import Sequence

import pandas as pd

from tuition_checker.domain.models import MISSING, BillingRecord
from tuition_checker.domain.normalizers import parse_currency
from tuition_checker.errors import SpreadsheetError
from tuition_checker.infrastructure.parsing.utils import (
    CSV_SUFFIXES,
    LEGACY_EXCEL_SUFFIXES,
    ensure_bytes,
    frame_to_rows,
    guess_suffix,
)

logger = logging.getLogger(__name__)

# Column positions in the unit export (C, D, J, L, O, Q).
STUDENT_COL = 2
GUARDIAN_COL = 3
GRADE_COL = 9
DUE_DATE_COL = 11
BILLED_COL = 14
MINIMUM_COL = 16

MAPPED_COLUMNS = frozenset({STUDENT_COL, GUARDIAN_COL, GRADE_COL, DUE_DATE_COL, BILLED_COL, MINIMUM_COL})


def _restore_numbers(column: pd.Series) -> pd.Series:
    numbers = pd.to_numeric(column, errors="coerce")
    return column.where(numbers.isna(), numbers)


def _read_csv(raw_bytes: bytes) -> pd.DataFrame:
    # Cells are read as text and plain numbers restored one cell at a time, so the
    # header row cannot keep a numeric column as strings. pt-BR amounts stay text.
    frame = pd.read_csv(
        BytesIO(raw_bytes),
        header=None,
        dtype=str,
        sep=None,
        engine="python",
        keep_default_na=False,
        na_values=[""],
    )
    return frame.apply(_restore_numbers)


def read_billing_rows(source: BytesIO | Path | bytes, filename: str | None = None) -> list[list[object]]:
    """Read the first sheet of a workbook (or a CSV) as a raw 2D grid, header included."""
    raw_bytes = ensure_bytes(source)
    suffix = guess_suffix(source, filename)
    try:
        if suffix in CSV_SUFFIXES:
            dataframe = _read_csv(raw_bytes)
        else:
            engine = "xlrd" if suffix in LEGACY_EXCEL_SUFFIXES else "openpyxl"
            dataframe = pd.read_excel(BytesIO(raw_bytes), sheet_name=0, header=None, engine=engine)
    except Exception as exc:
        raise SpreadsheetError(f"Could not read spreadsheet {filename or ''}".strip()) from exc
    return frame_to_rows(dataframe)


def _cell(row: Sequence[object], index: int) -> object:
    return row[index] if index < len(row) else None


def _text(row: Sequence[object], index: int) -> str:
    value = _cell(row, index)
    if value is None or value == "" or value == 0:
        return MISSING
    text = str(value).strip()
    return text or MISSING


def _raw(row: Sequence[object], index: int) -> object:
    value = _cell(row, index)
    if value is None or value == "" or value == 0:
        return MISSING
    return value


def _amount(row: Sequence[object], index: int) -> float:
    value = _cell(row, index)
    return parse_currency(value if value is not None else 0)


def _log_unmapped_columns(header: Sequence[object]) -> None:
    unmapped = [
        str(name) for idx, name in enumerate(header) if idx not in MAPPED_COLUMNS and name not in (None, "")
    ]
    if unmapped:
        logger.debug("Ignoring %d unmapped columns: %s", len(unmapped), ", ".join(unmapped))


def rows_to_records(rows: Sequence[Sequence[object]]) -> list[BillingRecord]:
    """Map data rows (row 0 is the header) into billing records, dropping unusable rows."""
    if not rows:
        return []
    _log_unmapped_columns(rows[0])

    records: list[BillingRecord] = []
    for idx, row in enumerate(rows[1:], start=1):
        student = _text(row, STUDENT_COL)
        billed = _amount(row, BILLED_COL)
        if student == MISSING or not math.isfinite(billed):
            logger.debug("Discarding row %d: no student name or billed amount", idx)
            continue
        records.append(
            BillingRecord.build(
                student_name=student,
                guardian_name=_text(row, GUARDIAN_COL),
                grade=_text(row, GRADE_COL),
                due_date=_raw(row, DUE_DATE_COL),
                billed=billed,
                minimum=_amount(row, MINIMUM_COL),
            )
        )
    return records


def billing_sheet_to_records(source: BytesIO | Path | bytes, filename: str | None = None) -> Sequence[BillingRecord]:
    rows = read_billing_rows(source, filename)
    records = rows_to_records(rows)
    logger.info("Read %d billing records from %d data rows", len(records), max(len(rows) - 1, 0))
    return records
