"""Cell value normalization for budget tracker workbooks.

All helpers are total: they never raise on odd input and fall back to a
neutral value (``0.0``, ``None`` or ``""``) instead.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Optional

import pandas as pd

from workforce_demand.app.ingest.domain import ActualOrProposed

# Day 1 is 1900-01-01 under the usual spreadsheet serial convention
SERIAL_EPOCH = date(1899, 12, 30)

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%m/%d/%y",
    "%d/%m/%y",
)


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def cell_text(value: object) -> str:
    """Render a raw cell as trimmed text."""

    if _is_missing(value):
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_hours(raw: object) -> float:
    """Parse an hours/rate cell; anything non-numeric becomes ``0.0``."""

    if _is_missing(raw) or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, (int, float)):
        number = float(raw)
    else:
        text = str(raw).strip().replace(",", "")
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def parse_date(raw: object) -> Optional[date]:
    """Resolve a header cell to a calendar date, or ``None`` to skip it."""

    if _is_missing(raw):
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return _from_serial(float(raw))

    text = str(raw).strip()
    if not text:
        return None

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    try:
        serial = float(text)
    except ValueError:
        return None
    return _from_serial(serial)


def _from_serial(serial: float) -> Optional[date]:
    if math.isnan(serial) or serial <= 0:
        return None
    try:
        return SERIAL_EPOCH + timedelta(days=int(serial))
    except OverflowError:
        return None


def week_start(value: date) -> date:
    """Return the Sunday that begins ``value``'s week."""

    return value - timedelta(days=(value.weekday() + 1) % 7)


def classify_actual_or_proposed(raw: object) -> ActualOrProposed:
    """Best-effort A/P flag; "A" is checked before "P" and the default is Proposed."""

    upper = cell_text(raw).upper()
    if "A" in upper:
        return ActualOrProposed.ACTUAL
    if "P" in upper:
        return ActualOrProposed.PROPOSED
    return ActualOrProposed.PROPOSED
