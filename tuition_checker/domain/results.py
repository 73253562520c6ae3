"""Domain-level results derived from billing records."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from .models import BillingRecord, ErrorKind, StudentResolutions


@dataclass(frozen=True)
class DuplicateInfo:
    name: str
    count: int


@dataclass(frozen=True)
class SummaryStats:
    total_rows: int
    duplicate_count: int
    duplicates: Sequence[DuplicateInfo]
    avg_diff: float
    avg_percent: float
    total_billed: float
    total_min: float


@dataclass(frozen=True)
class RecordStatus:
    has_date_error: bool
    has_value_error: bool
    date_error: bool
    value_error: bool

    @property
    def has_any_error(self) -> bool:
        return self.has_date_error or self.has_value_error

    @property
    def has_unresolved(self) -> bool:
        return self.date_error or self.value_error

    @property
    def fully_resolved(self) -> bool:
        return self.has_any_error and not self.has_unresolved

    def labels(self) -> list[str]:
        out: list[str] = []
        if self.date_error:
            out.append("VENCIMENTO INVÁLIDO")
        if self.value_error:
            out.append("VALOR INVÁLIDO")
        return out


@dataclass(frozen=True)
class ErrorStats:
    invalid_due_date_count: int = 0
    low_value_count: int = 0
    resolved_count: int = 0


@dataclass(frozen=True)
class ResolvedEntry:
    name: str
    unit_id: str
    kind: ErrorKind
    note: str
    resolved_at: str


@dataclass(frozen=True)
class AIInsight:
    summary: str
    anomalies: Sequence[str] = field(default_factory=tuple)
    recommendations: Sequence[str] = field(default_factory=tuple)
    financial_trend: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AIInsight":
        return cls(
            summary=str(data.get("summary", "")),
            anomalies=tuple(str(item) for item in data.get("anomalies") or ()),
            recommendations=tuple(str(item) for item in data.get("recommendations") or ()),
            financial_trend=str(data.get("financialTrend", "")),
        )


@dataclass(frozen=True)
class AnnotatedRecord:
    record: BillingRecord
    status: RecordStatus
    resolutions: StudentResolutions
