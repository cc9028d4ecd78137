from __future__ import annotations

from datetime import date

from ..core.exceptions import RangeError, ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} must not be empty")
    return value.strip()


def require_date_range(start: date, end: date) -> None:
    if start > end:
        raise RangeError(f"Invalid period: start {start.isoformat()} is after end {end.isoformat()}")


def require_past_date(day: date, today: date) -> None:
    """Absence can only be judged once the whole day is over."""
    if day >= today:
        raise RangeError(f"Cannot evaluate absence for {day.isoformat()}: only dates before {today.isoformat()} are allowed")
