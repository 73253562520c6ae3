"""Store layout shared by the unit stores.

Everything lives under ``units/<unit_id>`` with the children ``name``,
``lastUpdated``, ``data`` (list of records), ``students`` (id -> name) and
``resolutions`` (id -> {date, value}).
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from tuition_checker.domain.models import BillingRecord, ErrorKind, Resolution, Unit

UNITS_PATH = "units"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def units_from_snapshot(data: Mapping[str, Any] | None) -> list[Unit]:
    if not data:
        return []
    return [Unit.from_dict(str(unit_id), payload or {}) for unit_id, payload in data.items()]


def dataset_updates(
    unit_id: str,
    name: str,
    records: Sequence[BillingRecord],
    new_students: Mapping[str, str],
    updated_at: str | None = None,
) -> dict[str, Any]:
    """Multi-path update replacing the dataset while leaving resolutions untouched."""
    updates: dict[str, Any] = {
        f"{UNITS_PATH}/{unit_id}/name": name,
        f"{UNITS_PATH}/{unit_id}/lastUpdated": updated_at or utc_now_iso(),
        f"{UNITS_PATH}/{unit_id}/data": [record.to_dict() for record in records],
    }
    updates.update(student_updates(unit_id, new_students))
    return updates


def student_updates(unit_id: str, students: Mapping[str, str]) -> dict[str, str]:
    return {f"{UNITS_PATH}/{unit_id}/students/{student_id}": name for student_id, name in students.items()}


def resolution_path(unit_id: str, student_id: str, kind: ErrorKind) -> str:
    return f"{UNITS_PATH}/{unit_id}/resolutions/{student_id}/{ErrorKind(kind).value}"


def new_resolution(note: str) -> Resolution:
    return Resolution(note=note, resolved_at=utc_now_iso())
