from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import SessionEvent, Student, Teacher


class AttendanceRepository(Protocol):
    def get_teacher(self, teacher_id: str) -> Optional[Teacher]:
        raise NotImplementedError

    def list_teacher_ids(self) -> Sequence[str]:
        raise NotImplementedError

    def list_students_for_teacher(self, *, teacher_id: str, start: date, end: date) -> Sequence[Student]:
        """Students currently assigned to the teacher, plus any student the
        teacher held a session with inside [start, end] (teacher changes)."""

        raise NotImplementedError

    def list_session_events(self, *, teacher_id: str, start: date, end: date) -> Sequence[SessionEvent]:
        raise NotImplementedError
