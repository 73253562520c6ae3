"""Rendering helpers for the billing dashboard and its exports."""
from __future__ import annotations

import csv
import html
import io
from typing import Sequence

from tuition_checker.domain.models import (
    BILLED_LABEL,
    DUE_DATE_LABEL,
    GRADE_LABEL,
    GUARDIAN_LABEL,
    MINIMUM_LABEL,
    STUDENT_LABEL,
    BillingRecord,
)
from tuition_checker.domain.normalizers import format_due_date
from tuition_checker.domain.results import AnnotatedRecord

DISTRIBUTION_BINS = (0, 5, 10, 15, 20, 25, 50, 100)
LAST_BIN_CEILING = 1000


def format_brl(value: float) -> str:
    """Format an amount the pt-BR way, e.g. ``R$ 1.234,56``."""
    text = f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"R$ {text}"


def difference_distribution(records: Sequence[BillingRecord]) -> list[dict[str, object]]:
    out: list[dict[str, object]] = []
    for idx, low in enumerate(DISTRIBUTION_BINS):
        last = idx == len(DISTRIBUTION_BINS) - 1
        high = LAST_BIN_CEILING if last else DISTRIBUTION_BINS[idx + 1]
        count = sum(1 for r in records if low <= r.diff_percent < high)
        out.append({"range": f">{low}%" if last else f"{low}-{high}%", "count": count})
    return out


def annotated_to_rows(rows: Sequence[AnnotatedRecord]) -> list[dict[str, object]]:
    out: list[dict[str, object]] = []
    for item in rows:
        record = item.record
        out.append(
            {
                "Unidade": record.unit_id or "",
                STUDENT_LABEL: record.student_name,
                GUARDIAN_LABEL: record.guardian_name,
                GRADE_LABEL: record.grade,
                DUE_DATE_LABEL: format_due_date(record.due_date),
                BILLED_LABEL: record.billed,
                MINIMUM_LABEL: record.minimum,
                "Diferença": record.diff_abs,
                "Diferença (%)": record.diff_percent,
                "Pendências": ", ".join(item.status.labels()),
                "Resolvido": "sim" if item.status.fully_resolved else "",
            }
        )
    return out


def render_csv(rows: Sequence[AnnotatedRecord]) -> bytes:
    table = annotated_to_rows(rows)
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(table[0].keys()) if table else [])
    if table:
        writer.writeheader()
        writer.writerows(table)
    return buffer.getvalue().encode("utf-8")


def render_html(rows: Sequence[AnnotatedRecord]) -> str:
    table = annotated_to_rows(rows)
    if not table:
        return "<p>Nenhum lançamento encontrado.</p>"
    header = "".join(f"<th>{html.escape(col)}</th>" for col in table[0].keys())
    body_parts = []
    for row in table:
        body_parts.append("<tr>" + "".join(f"<td>{html.escape(str(v))}</td>" for v in row.values()) + "</tr>")
    body_html = "".join(body_parts)
    return f"<table><thead><tr>{header}</tr></thead><tbody>{body_html}</tbody></table>"
