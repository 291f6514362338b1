# commission_api/services/months.py
"""Month tokens are plain ``YYYY-MM`` strings; they sort lexicographically."""
from __future__ import annotations

import re
from datetime import date
from typing import Optional

from commission_api.common.errors import ValidationError

_MONTH_RE = re.compile(r"[0-9]{4}-[0-9]{2}")


def is_month(value) -> bool:
    if not isinstance(value, str) or not _MONTH_RE.fullmatch(value):
        return False
    return 1 <= int(value[5:7]) <= 12


def require_month(value, field: str = "month") -> str:
    if not value:
        raise ValidationError("Month is required (format: YYYY-MM)", field=field)
    if not is_month(value):
        raise ValidationError("Month must be in YYYY-MM format", field=field)
    return value


def month_of(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def current_month(today: Optional[date] = None) -> str:
    return month_of(today or date.today())


def next_month(month: str) -> str:
    require_month(month)
    year, mon = int(month[:4]), int(month[5:7])
    if mon == 12:
        return f"{year + 1:04d}-01"
    return f"{year:04d}-{mon + 1:02d}"
