"""Conversion of raw spreadsheet cells into amounts and calendar dates."""
from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from numbers import Real

import pandas as pd

SERIAL_EPOCH_OFFSET = 25569
UNIX_EPOCH = date(1970, 1, 1)

_FLOAT_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")


def _is_number(value: object) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def parse_currency(value: object) -> float:
    """Parse a pt-BR currency cell such as ``R$ 1.234,56``.

    Numbers are returned unchanged; anything unparsable becomes ``0``.
    """
    if _is_number(value):
        return float(value)
    if not isinstance(value, str):
        return 0.0
    sanitized = value.replace("R$", "").strip().replace(".", "").replace(",", ".", 1)
    match = _FLOAT_PREFIX.match(sanitized)
    if match is None:
        return 0.0
    return float(match.group(0))


def _leading_int(part: str) -> int | None:
    match = _INT_PREFIX.match(part)
    return int(match.group(1)) if match else None


def _from_day_month_year(value: str) -> date | None:
    """Parse ``dd/mm/yyyy``; two-digit years are read as 20yy, not 19yy."""
    parts = value.split("/")
    if len(parts) != 3:
        return None
    day, month, year = (_leading_int(p) for p in parts)
    if day is None or month is None or year is None:
        return None
    if 0 <= year < 100:
        year += 2000
    # Out-of-range months and days roll over like a calendar would.
    month_index = month - 1
    try:
        first = date(year + month_index // 12, month_index % 12 + 1, 1)
        return first + timedelta(days=day - 1)
    except (ValueError, OverflowError):
        return None


def _from_serial(value: float) -> date | None:
    if not math.isfinite(value):
        return None
    try:
        moment = datetime(1970, 1, 1) + timedelta(days=float(value) - SERIAL_EPOCH_OFFSET)
    except OverflowError:
        return None
    return moment.date()


def _from_text(value: str) -> date | None:
    try:
        parsed = pd.to_datetime(value, errors="coerce", utc=True)
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    return parsed.date()


def parse_due_date(value: object) -> date | None:
    if isinstance(value, str) and "/" in value:
        parsed = _from_day_month_year(value)
        if parsed is not None:
            return parsed
    if _is_number(value):
        return _from_serial(value)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return _from_text(value)
    return None


def format_due_date(value: object) -> str:
    parsed = parse_due_date(value)
    if parsed is not None:
        return f"{parsed.day:02d}/{parsed.month:02d}/{parsed.year:04d}"
    if isinstance(value, str):
        return value
    return str(value)


def to_serial(value: date | datetime) -> float:
    """Inverse of the serial convention, used for date-typed cells."""
    if isinstance(value, datetime):
        delta = value.replace(tzinfo=None) - datetime(1970, 1, 1)
        return SERIAL_EPOCH_OFFSET + delta.total_seconds() / 86400
    return float(SERIAL_EPOCH_OFFSET + (value - UNIX_EPOCH).days)
