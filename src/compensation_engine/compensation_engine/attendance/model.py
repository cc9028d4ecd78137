from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import StudentStatus


@dataclass(frozen=True)
class Teacher:
    teacher_id: str
    name: str


@dataclass(frozen=True)
class ScheduledSlot:
    """Expected class time; `day_pattern=None` means the student's own day package applies."""

    time_slot: Optional[str]
    day_pattern: Optional[str] = None


@dataclass(frozen=True)
class Student:
    student_id: int
    name: str
    teacher_id: Optional[str]
    package: Optional[str]
    day_pattern: Optional[str]
    status: StudentStatus = StudentStatus.ACTIVE
    slots: tuple[ScheduledSlot, ...] = ()


@dataclass(frozen=True)
class SessionEvent:
    """Evidence that a class started (immutable once written)."""

    teacher_id: str
    student_id: int
    started_at: datetime


@dataclass(frozen=True)
class StudentDaySignal:
    """Read-model: one student on one day, as seen by the deduction engines."""

    day: date
    student_id: int
    student_name: str
    package: Optional[str]
    status: StudentStatus
    scheduled: bool
    scheduled_time: Optional[time]
    actual_start: Optional[datetime]
    pattern_unrecognized: bool = False
    time_missing: bool = False
    time_unparseable: bool = False

    @property
    def has_session(self) -> bool:
        return self.actual_start is not None

    @property
    def scheduled_at(self) -> Optional[datetime]:
        if self.scheduled_time is None:
            return None
        return datetime.combine(self.day, self.scheduled_time)
