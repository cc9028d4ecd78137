from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from ..common.datetime_utils import iter_days, parse_time_of_day, to_local_naive
from ..common.validators import require_date_range
from ..core.constants import DEFAULT_SCHOOL_TIMEZONE
from ..core.enums import StudentStatus
from .day_pattern import DayPattern, parse_day_pattern
from .model import SessionEvent, Student, StudentDaySignal
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _ResolvedSlot:
    pattern: DayPattern
    time_of_day: Optional[time]
    unparseable: bool


class SignalExtractor:
    """Turns raw students + session events into one signal per (student, day)."""

    def __init__(self, attendance: AttendanceRepository, *, timezone: str = DEFAULT_SCHOOL_TIMEZONE):
        self._attendance = attendance
        self._tz = ZoneInfo(timezone)

    def first_starts(
        self, events: Sequence[SessionEvent], start: date, end: date
    ) -> dict[tuple[int, date], datetime]:
        """Earliest local session start per (student, day) inside [start, end]."""

        earliest: dict[tuple[int, date], datetime] = {}
        for event in events:
            local = to_local_naive(event.started_at, self._tz)
            day = local.date()
            if day < start or day > end:
                continue
            key = (event.student_id, day)
            current = earliest.get(key)
            if current is None or local < current:
                earliest[key] = local
        return earliest

    def get_daily_signals(self, teacher_id: str, start: date, end: date) -> list[StudentDaySignal]:
        require_date_range(start, end)

        students = self._attendance.list_students_for_teacher(teacher_id=teacher_id, start=start, end=end)
        events = self._attendance.list_session_events(teacher_id=teacher_id, start=start, end=end)
        earliest = self.first_starts(events, start, end)

        known = {s.student_id for s in students}
        orphaned = {student_id for student_id, _ in earliest if student_id not in known}
        if orphaned:
            logger.warning(
                "Teacher %s has sessions for unknown students %s between %s and %s",
                teacher_id,
                sorted(orphaned),
                start.isoformat(),
                end.isoformat(),
            )

        signals: list[StudentDaySignal] = []
        for student in sorted(students, key=lambda s: s.student_id):
            signals.extend(self._student_signals(teacher_id, student, start, end, earliest))
        return signals

    def _resolve_slots(self, teacher_id: str, student: Student, pattern: DayPattern) -> list[_ResolvedSlot]:
        resolved = []
        for slot in student.slots:
            slot_pattern = parse_day_pattern(slot.day_pattern) if slot.day_pattern else pattern
            try:
                time_of_day = parse_time_of_day(slot.time_slot)
                unparseable = False
            except ValueError:
                time_of_day, unparseable = None, True
            if unparseable:
                logger.warning(
                    "Unparseable time slot %r for student %s (teacher %s); lateness will not be evaluated",
                    slot.time_slot,
                    student.student_id,
                    teacher_id,
                )
            resolved.append(_ResolvedSlot(slot_pattern, time_of_day, unparseable))
        return resolved

    def _student_signals(
        self,
        teacher_id: str,
        student: Student,
        start: date,
        end: date,
        earliest: dict[tuple[int, date], datetime],
    ) -> list[StudentDaySignal]:
        pattern = parse_day_pattern(student.day_pattern)
        if not pattern.recognized:
            logger.warning(
                "Unrecognized day package %r for student %s (teacher %s); treating as every day",
                student.day_pattern,
                student.student_id,
                teacher_id,
            )

        slots = self._resolve_slots(teacher_id, student, pattern)
        active = student.status != StudentStatus.INACTIVE

        signals = []
        for day in iter_days(start, end):
            slot = next((s for s in slots if s.pattern.matches(day)), slots[0] if slots else None)
            signals.append(
                StudentDaySignal(
                    day=day,
                    student_id=student.student_id,
                    student_name=student.name,
                    package=student.package,
                    status=student.status,
                    scheduled=active and pattern.matches(day),
                    scheduled_time=slot.time_of_day if slot else None,
                    actual_start=earliest.get((student.student_id, day)),
                    pattern_unrecognized=not pattern.recognized,
                    time_missing=slot is None or (slot.time_of_day is None and not slot.unparseable),
                    time_unparseable=slot is not None and slot.unparseable,
                )
            )
        return signals
