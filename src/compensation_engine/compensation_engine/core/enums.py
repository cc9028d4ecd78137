from __future__ import annotations

from enum import Enum


class StudentStatus(str, Enum):
    """Enrollment status of a student."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"

    @classmethod
    def parse(cls, value: str | None) -> "StudentStatus":
        normalized = (value or "").strip().lower()
        if normalized in {"inactive", "stopped", "leave"}:
            return cls.INACTIVE
        if normalized in {"pending", "not yet", "on progress"}:
            return cls.PENDING
        return cls.ACTIVE


class DeductionType(str, Enum):
    LATENESS = "lateness"
    ABSENCE = "absence"


class ReviewState(str, Enum):
    """Lifecycle of a materialized deduction record."""

    PENDING = "PENDING"
    REVIEWED = "REVIEWED"
    WAIVED = "WAIVED"


class AbsenceReason(str, Enum):
    SUNDAY_EXCLUDED = "Sunday excluded"
    MONTH_NOT_EFFECTIVE = "Month not effective"
    NOT_SCHEDULED = "Not scheduled"
    WAIVED = "Waived"
    NO_SESSION = "No session"
    PRESENT = "Present"


class ProrationMode(str, Enum):
    """How the working-day denominator of the daily rate is counted."""

    PERIOD = "period"
    CALENDAR_MONTH = "calendar_month"
