"""Domain services: error reconciliation, aggregation and filtering."""
from __future__ import annotations

from collections import Counter
from typing import Collection, Iterable, Mapping, Sequence

from .models import NO_RESOLUTIONS, BillingRecord, ErrorKind, StudentResolutions, Unit
from .results import AnnotatedRecord, DuplicateInfo, ErrorStats, RecordStatus, SummaryStats
from .rules import BASE_DUE_DAYS, MIN_EXPECTED_VALUE, has_due_date_error, has_value_error


class ResolutionReconciler:
    """Combines the error rules with the per-student resolution ledger."""

    def __init__(
        self,
        base_days: Collection[int] = BASE_DUE_DAYS,
        value_threshold: float = MIN_EXPECTED_VALUE,
    ) -> None:
        self._base_days = frozenset(base_days)
        self._value_threshold = value_threshold

    def evaluate(self, record: BillingRecord, resolutions: StudentResolutions = NO_RESOLUTIONS) -> RecordStatus:
        date_issue = has_due_date_error(record, self._base_days)
        value_issue = has_value_error(record, self._value_threshold)
        return RecordStatus(
            has_date_error=date_issue,
            has_value_error=value_issue,
            date_error=date_issue and resolutions.date is None,
            value_error=value_issue and resolutions.value is None,
        )

    def annotate(self, records: Iterable[BillingRecord], units: Mapping[str, Unit]) -> list[AnnotatedRecord]:
        annotated: list[AnnotatedRecord] = []
        for record in records:
            unit = units.get(record.unit_id) if record.unit_id else None
            resolutions = unit.resolutions_for(record.student_name) if unit else NO_RESOLUTIONS
            annotated.append(AnnotatedRecord(record, self.evaluate(record, resolutions), resolutions))
        return annotated

    @staticmethod
    def error_stats(annotated: Sequence[AnnotatedRecord]) -> ErrorStats:
        resolved_students: set[tuple[str | None, str]] = set()
        invalid_dates = 0
        low_values = 0
        for item in annotated:
            if item.status.date_error:
                invalid_dates += 1
            if item.status.value_error:
                low_values += 1
            if item.resolutions.any():
                resolved_students.add((item.record.unit_id, item.record.student_name.strip()))
        return ErrorStats(
            invalid_due_date_count=invalid_dates,
            low_value_count=low_values,
            resolved_count=len(resolved_students),
        )


def summarize_records(records: Sequence[BillingRecord]) -> SummaryStats | None:
    if not records:
        return None
    name_counts: Counter[str] = Counter(r.student_name for r in records if r.student_name)
    duplicates = [DuplicateInfo(name=name, count=count) for name, count in name_counts.items() if count > 1]
    total_billed = sum(r.billed for r in records)
    total_min = sum(r.minimum for r in records)
    total_percent = sum(r.diff_percent for r in records)
    denominator = len(records) or 1
    return SummaryStats(
        total_rows=len(records),
        duplicate_count=len(duplicates),
        duplicates=tuple(duplicates),
        avg_diff=(total_billed - total_min) / denominator,
        avg_percent=total_percent / denominator,
        total_billed=total_billed,
        total_min=total_min,
    )


def _stringify(value: object) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def matches_search(record: BillingRecord, query: str) -> bool:
    if not query:
        return True
    needle = query.lower()
    values = record.to_dict().values()
    if record.unit_id:
        values = [*values, record.unit_id]
    return any(needle in _stringify(value).lower() for value in values)


def passes_error_filter(status: RecordStatus, enabled: Collection[ErrorKind]) -> bool:
    passes_date = ErrorKind.DATE in enabled and status.date_error
    passes_value = ErrorKind.VALUE in enabled and status.value_error
    return passes_date or passes_value
