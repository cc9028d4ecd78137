from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import DeductionType, ReviewState
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    normalize_mysql_date,
    normalize_mysql_datetime,
    optional_decimal,
    optional_int,
)
from .model import DeductionRecord
from .repository import DeductionRecordRepository

_COLUMNS = (
    "teacher_id, deduction_type, record_date, student_id, amount, reason_code, affected_slots, permitted, "
    "review_state, original_amount, waiver_reason, scheduled_at, actual_start, minutes_late, tier_label"
)


def _to_record(r: dict) -> DeductionRecord:
    return DeductionRecord(
        record_id=int(r["record_id"]),
        teacher_id=str(r["teacher_id"]),
        deduction_type=DeductionType(r["deduction_type"]),
        record_date=normalize_mysql_date(r["record_date"]),
        student_id=optional_int(r.get("student_id")),
        amount=Decimal(str(r["amount"])),
        reason_code=r.get("reason_code") or "",
        affected_slots=int(r.get("affected_slots") or 1),
        permitted=bool(r.get("permitted")),
        review_state=ReviewState(r.get("review_state") or ReviewState.PENDING.value),
        original_amount=optional_decimal(r.get("original_amount")),
        waiver_reason=r.get("waiver_reason"),
        adjusted_at=normalize_mysql_datetime(r.get("adjusted_at")),
        adjusted_by=r.get("adjusted_by"),
        scheduled_at=normalize_mysql_datetime(r.get("scheduled_at")),
        actual_start=normalize_mysql_datetime(r.get("actual_start")),
        minutes_late=optional_int(r.get("minutes_late")),
        tier_label=r.get("tier_label"),
    )


def _to_params(rec: DeductionRecord) -> tuple:
    return (
        rec.teacher_id,
        rec.deduction_type.value,
        rec.record_date,
        rec.student_id,
        rec.amount,
        rec.reason_code,
        rec.affected_slots,
        int(rec.permitted),
        rec.review_state.value,
        rec.original_amount,
        rec.waiver_reason,
        rec.scheduled_at,
        rec.actual_start,
        rec.minutes_late,
        rec.tier_label,
    )


class MySQLDeductionRecordRepository(DeductionRecordRepository):
    """Materialized absence and lateness deductions, one row per student-day."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_records(
        self,
        *,
        teacher_id: str,
        start: date,
        end: date,
        deduction_type: Optional[DeductionType] = None,
    ) -> Sequence[DeductionRecord]:
        sql = f"""
            SELECT record_id, {_COLUMNS}, adjusted_at, adjusted_by
            FROM deduction_records
            WHERE teacher_id=%s AND record_date BETWEEN %s AND %s
        """
        params: list = [teacher_id, start, end]
        if deduction_type is not None:
            sql += " AND deduction_type=%s"
            params.append(deduction_type.value)
        sql += " ORDER BY record_date, record_id"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_record(r) for r in fetchall(cur)]

    def has_records_for(self, *, teacher_id: str, day: date, deduction_type: DeductionType) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found
                FROM deduction_records
                WHERE teacher_id=%s AND record_date=%s AND deduction_type=%s
                LIMIT 1
                """,
                (teacher_id, day, deduction_type.value),
            )
            return fetchone(cur) is not None

    def create_records(self, records: Sequence[DeductionRecord]) -> int:
        if not records:
            return 0
        placeholders = ",".join(["%s"] * len(_COLUMNS.split(",")))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                f"INSERT INTO deduction_records({_COLUMNS}) VALUES({placeholders})",
                [_to_params(rec) for rec in records],
            )
            return len(records)

    def mark_waived(self, record_id: int, *, reason: str, waived_at: datetime, admin_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE deduction_records
                SET original_amount=COALESCE(original_amount, amount),
                    amount=0,
                    review_state=%s,
                    waiver_reason=%s,
                    adjusted_at=%s,
                    adjusted_by=%s
                WHERE record_id=%s
                """,
                (ReviewState.WAIVED.value, reason, waived_at, admin_id, record_id),
            )
            return cur.rowcount > 0
