from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, normalize_mysql_date
from .model import BonusRecord
from .repository import BonusRepository


class MySQLBonusRepository(BonusRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_bonuses(self, *, teacher_id: str, start: date, end: date) -> Sequence[BonusRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT bonus_id, teacher_id, awarded_on, amount, reason
                FROM teacher_bonuses
                WHERE teacher_id=%s AND approved=1 AND awarded_on BETWEEN %s AND %s
                ORDER BY awarded_on, bonus_id
                """,
                (teacher_id, start, end),
            )
            return [
                BonusRecord(
                    bonus_id=int(r["bonus_id"]),
                    teacher_id=str(r["teacher_id"]),
                    awarded_on=normalize_mysql_date(r["awarded_on"]),
                    amount=Decimal(str(r["amount"])),
                    reason=r.get("reason") or "",
                )
                for r in fetchall(cur)
            ]
