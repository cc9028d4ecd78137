from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import DeductionType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, normalize_mysql_date, normalize_mysql_datetime
from .model import Waiver
from .repository import WaiverRepository


def _split_ids(value) -> frozenset[str]:
    return frozenset(part.strip() for part in str(value or "").split(",") if part.strip())


class MySQLWaiverRepository(WaiverRepository):
    """Teacher ids are stored as a comma-separated list in `deduction_waivers.teacher_ids`."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_waivers(
        self,
        *,
        teacher_id: str,
        start: date,
        end: date,
        deduction_type: Optional[DeductionType] = None,
    ) -> Sequence[Waiver]:
        sql = """
            SELECT waiver_id, teacher_ids, deduction_type, start_date, end_date, reason, created_by, created_at
            FROM deduction_waivers
            WHERE FIND_IN_SET(%s, teacher_ids) > 0
              AND start_date <= %s AND end_date >= %s
        """
        params: list = [teacher_id, end, start]
        if deduction_type is not None:
            sql += " AND deduction_type=%s"
            params.append(deduction_type.value)
        sql += " ORDER BY start_date, waiver_id"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [
                Waiver(
                    waiver_id=int(r["waiver_id"]),
                    teacher_ids=_split_ids(r["teacher_ids"]),
                    deduction_type=DeductionType(r["deduction_type"]),
                    start_date=normalize_mysql_date(r["start_date"]),
                    end_date=normalize_mysql_date(r["end_date"]),
                    reason=r.get("reason") or "",
                    created_by=r.get("created_by"),
                    created_at=normalize_mysql_datetime(r.get("created_at")),
                )
                for r in fetchall(cur)
            ]

    def create_waiver(self, waiver: Waiver) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO deduction_waivers(teacher_ids, deduction_type, start_date, end_date, reason, created_by, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    ",".join(sorted(waiver.teacher_ids)),
                    waiver.deduction_type.value,
                    waiver.start_date,
                    waiver.end_date,
                    waiver.reason,
                    waiver.created_by,
                    waiver.created_at,
                ),
            )
            return int(cur.lastrowid)
