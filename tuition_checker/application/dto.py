"""Application-level state and view objects for the dashboard."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from tuition_checker.domain.models import BillingRecord, ErrorKind, Unit
from tuition_checker.domain.results import AnnotatedRecord, ErrorStats, ResolvedEntry, SummaryStats


class AnalysisStatus(str, Enum):
    CONNECTING = "CONNECTING"
    READY = "READY"
    NO_DATA = "NO_DATA"
    ERROR = "ERROR"


@dataclass
class DashboardState:
    """Mutable view state held by the dashboard between snapshots."""

    selected_unit_ids: list[str] = field(default_factory=list)
    search_term: str = ""
    error_filter_active: bool = False
    error_kinds: set[ErrorKind] = field(default_factory=lambda: {ErrorKind.DATE, ErrorKind.VALUE})
    status: AnalysisStatus = AnalysisStatus.CONNECTING

    def apply_snapshot(self, units: Sequence[Unit]) -> None:
        known = {unit.id for unit in units}
        self.selected_unit_ids = [uid for uid in self.selected_unit_ids if uid in known]
        # Only pick a default when nothing is selected so a resolve does not reset the view.
        if units and not self.selected_unit_ids:
            self.selected_unit_ids = [units[0].id]
        self.status = AnalysisStatus.READY if units else AnalysisStatus.NO_DATA

    def mark_error(self) -> None:
        self.status = AnalysisStatus.ERROR

    def select_only(self, unit_id: str) -> None:
        self.selected_unit_ids = [unit_id]

    def toggle_unit(self, unit_id: str) -> None:
        if unit_id in self.selected_unit_ids:
            self.selected_unit_ids.remove(unit_id)
        else:
            self.selected_unit_ids.append(unit_id)

    def toggle_all_units(self, units: Sequence[Unit]) -> None:
        if len(self.selected_unit_ids) == len(units):
            self.selected_unit_ids = []
        else:
            self.selected_unit_ids = [unit.id for unit in units]

    def toggle_error_filter(self) -> None:
        self.error_filter_active = not self.error_filter_active

    def toggle_error_kind(self, kind: ErrorKind) -> bool:
        """Flip one error kind; refused when it would leave no kind enabled."""
        kind = ErrorKind(kind)
        proposed = set(self.error_kinds) ^ {kind}
        if not proposed:
            return False
        self.error_kinds = proposed
        return True


@dataclass(frozen=True)
class DashboardView:
    records: Sequence[BillingRecord]
    rows: Sequence[AnnotatedRecord]
    summary: SummaryStats | None
    error_stats: ErrorStats
    resolved: Sequence[ResolvedEntry]

    @property
    def is_empty(self) -> bool:
        return not self.records


@dataclass(frozen=True)
class UploadResult:
    unit_id: str
    unit_name: str
    record_count: int
    new_students: int
