"""Application services orchestrating the billing check workflow."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Sequence

from tuition_checker.application.dto import DashboardState, DashboardView, UploadResult
from tuition_checker.domain.models import BillingRecord, ErrorKind, Unit, unit_id_for
from tuition_checker.domain.repositories import BillingRecordRepository, Summarizer, UnitStore
from tuition_checker.domain.results import AIInsight, ResolvedEntry
from tuition_checker.domain.services import (
    ResolutionReconciler,
    matches_search,
    passes_error_filter,
    summarize_records,
)
from tuition_checker.errors import StoreError

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def new_student_id() -> str:
    return uuid.uuid4().hex


def _find_unit(store: UnitStore, unit_id: str) -> Unit | None:
    for unit in store.load_units():
        if unit.id == unit_id:
            return unit
    return None


def issue_student_ids(
    unit: Unit | None, names: Iterable[str], id_factory: IdFactory = new_student_id
) -> dict[str, str]:
    """Ids for names this unit has never seen, keyed by id."""
    known = {name.strip() for name in unit.students.values()} if unit else set()
    issued: dict[str, str] = {}
    for name in names:
        cleaned = name.strip()
        if cleaned in known:
            continue
        known.add(cleaned)
        issued[id_factory()] = cleaned
    return issued


@dataclass(slots=True)
class UploadSpreadsheetUseCase:
    store: UnitStore
    id_factory: IdFactory = new_student_id

    def execute(self, unit_name: str, repository: BillingRecordRepository) -> UploadResult:
        name = unit_name.strip()
        unit_id = unit_id_for(name)
        records = repository.list_billing_records()
        existing = _find_unit(self.store, unit_id)
        new_students = issue_student_ids(existing, (r.student_name for r in records), self.id_factory)
        self.store.write_unit_dataset(unit_id, name, records, new_students)
        logger.info("Saved %d records for unit %s (%d new students)", len(records), unit_id, len(new_students))
        return UploadResult(
            unit_id=unit_id,
            unit_name=name,
            record_count=len(records),
            new_students=len(new_students),
        )


@dataclass(slots=True)
class ResolveStudentUseCase:
    store: UnitStore
    id_factory: IdFactory = new_student_id

    def execute(self, unit_id: str, student_name: str, note: str, kind: ErrorKind) -> str:
        kind = ErrorKind(kind)
        unit = _find_unit(self.store, unit_id)
        if unit is None:
            raise StoreError(f"Unit {unit_id} no longer exists")
        student_id = unit.student_id_for(student_name)
        if student_id is None:
            issued = issue_student_ids(unit, [student_name], self.id_factory)
            student_id = next(iter(issued))
            self.store.write_students(unit_id, issued)
        self.store.write_resolution(unit_id, student_id, note, kind)
        logger.info("Resolved %s error for student %s in unit %s", kind.value, student_id, unit_id)
        return student_id


@dataclass(slots=True)
class DeleteUnitUseCase:
    store: UnitStore

    def execute(self, unit_id: str) -> None:
        self.store.delete_unit(unit_id)
        logger.info("Deleted unit %s", unit_id)


@dataclass(slots=True)
class SummarizeRecordsUseCase:
    summarizer: Summarizer

    def execute(self, records: Sequence[BillingRecord]) -> AIInsight | None:
        if not records:
            return None
        return self.summarizer.summarize(records)


def selected_records(units: Sequence[Unit], selected_ids: Sequence[str]) -> list[BillingRecord]:
    combined = [
        record.with_unit(unit.id) for unit in units if unit.id in selected_ids for record in unit.records
    ]
    return sorted(combined, key=lambda r: r.student_name.casefold())


def resolved_entries(units: Sequence[Unit], selected_ids: Sequence[str]) -> list[ResolvedEntry]:
    entries: list[ResolvedEntry] = []
    for unit in units:
        if unit.id not in selected_ids:
            continue
        for student_id, resolutions in unit.resolutions.items():
            name = unit.student_name_for(student_id)
            for kind in ErrorKind:
                resolution = resolutions.get(kind)
                if resolution is not None:
                    entries.append(ResolvedEntry(name, unit.id, kind, resolution.note, resolution.resolved_at))
    return sorted(entries, key=lambda e: e.resolved_at, reverse=True)


@dataclass(slots=True)
class BuildDashboardViewUseCase:
    reconciler: ResolutionReconciler = field(default_factory=ResolutionReconciler)

    def execute(self, units: Sequence[Unit], state: DashboardState) -> DashboardView:
        records = selected_records(units, state.selected_unit_ids)
        by_id: Mapping[str, Unit] = {unit.id: unit for unit in units}
        annotated = self.reconciler.annotate(records, by_id)

        rows = [item for item in annotated if matches_search(item.record, state.search_term)]
        if state.error_filter_active:
            rows = [item for item in rows if passes_error_filter(item.status, state.error_kinds)]

        return DashboardView(
            records=records,
            rows=rows,
            summary=summarize_records(records),
            error_stats=self.reconciler.error_stats(annotated),
            resolved=resolved_entries(units, state.selected_unit_ids),
        )
