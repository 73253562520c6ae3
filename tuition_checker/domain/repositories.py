"""Repository interfaces anchoring the domain layer."""
from __future__ import annotations

from typing import Callable, Mapping, Protocol, Sequence

from .models import BillingRecord, ErrorKind, Unit
from .results import AIInsight

SnapshotCallback = Callable[[Sequence[Unit]], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


class BillingRecordRepository(Protocol):
    """Provides billing records read from an uploaded spreadsheet."""

    def list_billing_records(self) -> Sequence[BillingRecord]:
        ...


class UnitStore(Protocol):
    """Live store of units, their datasets and resolutions."""

    def subscribe(self, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Unsubscribe:
        ...

    def load_units(self) -> Sequence[Unit]:
        ...

    def write_unit_dataset(
        self,
        unit_id: str,
        name: str,
        records: Sequence[BillingRecord],
        new_students: Mapping[str, str],
    ) -> None:
        ...

    def write_students(self, unit_id: str, students: Mapping[str, str]) -> None:
        ...

    def write_resolution(self, unit_id: str, student_id: str, note: str, kind: ErrorKind) -> None:
        ...

    def delete_unit(self, unit_id: str) -> None:
        ...

    def close(self) -> None:
        ...


class Summarizer(Protocol):
    """Produces a narrative reading of a set of billing records."""

    def summarize(self, records: Sequence[BillingRecord]) -> AIInsight:
        ...
