"""Spreadsheet-backed repository for billing records."""
from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Sequence

from tuition_checker.domain.models import BillingRecord
from tuition_checker.domain.repositories import BillingRecordRepository
from tuition_checker.infrastructure.parsing.billing_sheet import billing_sheet_to_records
from tuition_checker.infrastructure.parsing.utils import ensure_bytes, guess_suffix


class SpreadsheetBillingRepository(BillingRecordRepository):
    def __init__(self, source: BytesIO | Path | bytes, filename: str | None = None) -> None:
        self._filename = filename or f"upload{guess_suffix(source)}"
        self._source = ensure_bytes(source)

    def list_billing_records(self) -> Sequence[BillingRecord]:
        return billing_sheet_to_records(BytesIO(self._source), filename=self._filename)
