"""Billing calendar and amount rules."""
from __future__ import annotations

from datetime import timedelta
from typing import Collection

from .models import BillingRecord
from .normalizers import parse_due_date

BASE_DUE_DAYS = frozenset({5, 10, 15})
MIN_EXPECTED_VALUE = 1000.0

MONDAY = 0


def has_due_date_error(record: BillingRecord, base_days: Collection[int] = BASE_DUE_DAYS) -> bool:
    """True unless the due date is a base day or the Monday right after a weekend base day."""
    due = parse_due_date(record.due_date)
    if due is None:
        return True
    if due.day in base_days:
        return False
    if due.weekday() == MONDAY:
        sunday = due - timedelta(days=1)
        saturday = due - timedelta(days=2)
        if sunday.day in base_days or saturday.day in base_days:
            return False
    return True


def has_value_error(record: BillingRecord, threshold: float = MIN_EXPECTED_VALUE) -> bool:
    return record.billed < threshold or record.minimum < threshold
