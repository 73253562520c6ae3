"""Domain models for the tuition billing checker.

These dataclasses capture the canonical schema for billing records and the
units (school campuses) that own them.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Mapping

STUDENT_LABEL = "Nome do aluno"
GUARDIAN_LABEL = "Nome do responsavel financeiro"
GRADE_LABEL = "Serie"
DUE_DATE_LABEL = "Data de vencimento"
BILLED_LABEL = "Valor da cobrança com bolsas"
MINIMUM_LABEL = "Valor mínimo da cobrança"

MISSING = "N/A"


class ErrorKind(str, Enum):
    DATE = "date"
    VALUE = "value"


def round_half_up(value: float, ndigits: int) -> float:
    if not math.isfinite(value):
        return value
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def slugify(text: str) -> str:
    """Legacy student key: lowercase, whitespace to hyphens, alphanumerics only."""
    lowered = re.sub(r"\s+", "-", text.lower())
    return re.sub(r"[^a-z0-9-]", "", lowered)


def unit_id_for(name: str) -> str:
    slug = re.sub(r"\s+", "-", name.strip().lower())
    slug = re.sub(r"[.$#\[\]/]", "", slug)
    if not slug:
        raise ValueError("Unit name must not be empty")
    return slug


@dataclass(frozen=True)
class BillingRecord:
    """One billed installment for a student, as read from a unit spreadsheet."""

    student_name: str
    guardian_name: str
    grade: str
    due_date: str | float | date
    billed: float
    minimum: float
    diff_abs: float
    diff_percent: float
    unit_id: str | None = None

    @classmethod
    def build(
        cls,
        student_name: str,
        guardian_name: str,
        grade: str,
        due_date: str | float | date,
        billed: float,
        minimum: float,
    ) -> "BillingRecord":
        diff_abs = round_half_up(billed - minimum, 2)
        diff_percent = round_half_up(100 * diff_abs / billed, 1) if billed > 0 else 0.0
        return cls(
            student_name=student_name,
            guardian_name=guardian_name,
            grade=grade,
            due_date=due_date,
            billed=billed,
            minimum=minimum,
            diff_abs=diff_abs,
            diff_percent=diff_percent,
        )

    def with_unit(self, unit_id: str) -> "BillingRecord":
        return replace(self, unit_id=unit_id)

    def to_dict(self) -> dict[str, Any]:
        due_date = self.due_date.isoformat() if isinstance(self.due_date, date) else self.due_date
        return {
            STUDENT_LABEL: self.student_name,
            GUARDIAN_LABEL: self.guardian_name,
            GRADE_LABEL: self.grade,
            DUE_DATE_LABEL: due_date,
            BILLED_LABEL: self.billed,
            MINIMUM_LABEL: self.minimum,
            "diff_abs": self.diff_abs,
            "diff_percent": self.diff_percent,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], unit_id: str | None = None) -> "BillingRecord":
        return cls(
            student_name=str(data.get(STUDENT_LABEL, MISSING)),
            guardian_name=str(data.get(GUARDIAN_LABEL, MISSING)),
            grade=str(data.get(GRADE_LABEL, MISSING)),
            due_date=data.get(DUE_DATE_LABEL, MISSING),
            billed=float(data.get(BILLED_LABEL) or 0),
            minimum=float(data.get(MINIMUM_LABEL) or 0),
            diff_abs=float(data.get("diff_abs") or 0),
            diff_percent=float(data.get("diff_percent") or 0),
            unit_id=unit_id,
        )


@dataclass(frozen=True)
class Resolution:
    note: str
    resolved_at: str

    def to_dict(self) -> dict[str, str]:
        return {"note": self.note, "resolvedAt": self.resolved_at}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Resolution":
        return cls(note=str(data.get("note", "")), resolved_at=str(data.get("resolvedAt", "")))


@dataclass(frozen=True)
class StudentResolutions:
    date: Resolution | None = None
    value: Resolution | None = None

    def get(self, kind: ErrorKind) -> Resolution | None:
        return self.date if kind is ErrorKind.DATE else self.value

    def any(self) -> bool:
        return self.date is not None or self.value is not None

    def merge(self, other: "StudentResolutions") -> "StudentResolutions":
        return StudentResolutions(date=other.date or self.date, value=other.value or self.value)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "StudentResolutions":
        data = data or {}
        return cls(
            date=Resolution.from_dict(data["date"]) if data.get("date") else None,
            value=Resolution.from_dict(data["value"]) if data.get("value") else None,
        )


NO_RESOLUTIONS = StudentResolutions()


@dataclass(frozen=True)
class Unit:
    """A school campus and everything stored under it."""

    id: str
    name: str
    last_updated: str | None = None
    records: tuple[BillingRecord, ...] = ()
    students: Mapping[str, str] = field(default_factory=dict)
    resolutions: Mapping[str, StudentResolutions] = field(default_factory=dict)
    _ids_by_name: dict[str, str] = field(init=False, repr=False, compare=False, default_factory=dict)

    def __post_init__(self) -> None:
        index: dict[str, str] = {}
        for student_id, name in self.students.items():
            index.setdefault(name.strip(), student_id)
        object.__setattr__(self, "_ids_by_name", index)

    def student_id_for(self, student_name: str) -> str | None:
        return self._ids_by_name.get(student_name.strip())

    def resolutions_for(self, student_name: str) -> StudentResolutions:
        found = NO_RESOLUTIONS
        # Resolutions written before the id registry existed are keyed by slug.
        legacy = self.resolutions.get(slugify(student_name))
        if legacy is not None:
            found = legacy
        student_id = self.student_id_for(student_name)
        if student_id is not None and student_id in self.resolutions:
            found = found.merge(self.resolutions[student_id])
        return found

    def student_name_for(self, student_id: str) -> str:
        if student_id in self.students:
            return self.students[student_id]
        # Legacy slug keys: prefer the spelling found in this unit's records.
        for record in self.records:
            if slugify(record.student_name) == student_id:
                return record.student_name
        return " ".join(word.capitalize() for word in student_id.split("-"))

    @classmethod
    def from_dict(cls, unit_id: str, data: Mapping[str, Any]) -> "Unit":
        raw_records = data.get("data") or []
        if isinstance(raw_records, Mapping):
            raw_records = [raw_records[k] for k in sorted(raw_records, key=int)]
        return cls(
            id=unit_id,
            name=str(data.get("name") or unit_id),
            last_updated=data.get("lastUpdated"),
            records=tuple(BillingRecord.from_dict(row) for row in raw_records if row),
            students={str(k): str(v) for k, v in (data.get("students") or {}).items()},
            resolutions={
                str(k): StudentResolutions.from_dict(v) for k, v in (data.get("resolutions") or {}).items()
            },
        )
