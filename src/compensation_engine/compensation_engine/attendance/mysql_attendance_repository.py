from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..core.enums import StudentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, normalize_mysql_datetime, normalize_mysql_time
from .model import ScheduledSlot, SessionEvent, Student, Teacher
from .repository import AttendanceRepository


def _slot_text(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    t = normalize_mysql_time(value)
    return t.strftime("%H:%M") if t else None


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_teacher(self, teacher_id: str) -> Optional[Teacher]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT teacher_id, name FROM teachers WHERE teacher_id=%s", (teacher_id,))
            r = fetchone(cur)
            if not r:
                return None
            return Teacher(teacher_id=str(r["teacher_id"]), name=r.get("name") or str(r["teacher_id"]))

    def list_teacher_ids(self) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT teacher_id FROM teachers ORDER BY teacher_id")
            return [str(r["teacher_id"]) for r in fetchall(cur)]

    def list_students_for_teacher(self, *, teacher_id: str, start: date, end: date) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT s.student_id, s.name, s.teacher_id, s.package, s.day_package, s.status
                FROM students s
                WHERE s.teacher_id=%s
                   OR s.student_id IN (
                        SELECT e.student_id
                        FROM session_events e
                        WHERE e.teacher_id=%s AND e.started_at >= %s AND e.started_at < %s
                   )
                ORDER BY s.student_id
                """,
                (teacher_id, teacher_id, start, end + timedelta(days=1)),
            )
            rows = fetchall(cur)
            if not rows:
                return []

            ids = [int(r["student_id"]) for r in rows]
            cur.execute(
                f"""
                SELECT student_id, time_slot, day_package
                FROM student_time_slots
                WHERE teacher_id=%s AND student_id IN ({in_clause(ids)})
                ORDER BY student_id, slot_id
                """,
                (teacher_id, *ids),
            )
            slots: dict[int, list[ScheduledSlot]] = {}
            for r in fetchall(cur):
                slots.setdefault(int(r["student_id"]), []).append(
                    ScheduledSlot(time_slot=_slot_text(r.get("time_slot")), day_pattern=r.get("day_package"))
                )

            return [
                Student(
                    student_id=int(r["student_id"]),
                    name=r.get("name") or "",
                    teacher_id=str(r["teacher_id"]) if r.get("teacher_id") is not None else None,
                    package=r.get("package"),
                    day_pattern=r.get("day_package"),
                    status=StudentStatus.parse(r.get("status")),
                    slots=tuple(slots.get(int(r["student_id"]), ())),
                )
                for r in rows
            ]

    def list_session_events(self, *, teacher_id: str, start: date, end: date) -> Sequence[SessionEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT teacher_id, student_id, started_at
                FROM session_events
                WHERE teacher_id=%s AND started_at >= %s AND started_at < %s
                ORDER BY started_at
                """,
                (
                    teacher_id,
                    datetime.combine(start, datetime.min.time()),
                    datetime.combine(end + timedelta(days=1), datetime.min.time()),
                ),
            )
            return [
                SessionEvent(
                    teacher_id=str(r["teacher_id"]),
                    student_id=int(r["student_id"]),
                    started_at=normalize_mysql_datetime(r["started_at"]),
                )
                for r in fetchall(cur)
            ]
