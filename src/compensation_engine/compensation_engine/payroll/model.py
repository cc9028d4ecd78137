from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from ..absence.model import AbsenceOutcome
from ..common.batch import BatchSummary
from ..common.serialization import from_jsonable, to_jsonable
from ..core.enums import ProrationMode, StudentStatus
from ..lateness.model import LatenessOutcome


@dataclass(frozen=True)
class BonusRecord:
    bonus_id: Optional[int]
    teacher_id: str
    awarded_on: date
    amount: Decimal
    reason: str = ""


@dataclass(frozen=True)
class TeachingDayItem:
    """One paid day for one student; `daily_rate` is unrounded."""

    day: date
    student_id: int
    package: Optional[str]
    daily_rate: Decimal


@dataclass(frozen=True)
class StudentContribution:
    student_id: int
    student_name: str
    package: Optional[str]
    status: StudentStatus
    monthly_rate: Decimal
    daily_rate: Decimal
    teaching_days: int
    base_amount: Decimal
    rate_missing: bool = False
    pattern_unrecognized: bool = False
    time_missing: bool = False
    time_unparseable: bool = False


@dataclass(frozen=True)
class CompensationBreakdown:
    """Net pay for one teacher and period, with every item that produced it.

    Totals and itemization come from the same pass, so
    `net_salary == base_salary - lateness - absence + bonuses` always holds
    for the rounded figures shown here.
    """

    teacher_id: str
    teacher_name: str
    period_start: date
    period_end: date
    policy_version: str
    proration_mode: ProrationMode
    working_days: int

    base_salary: Decimal
    lateness_deduction_total: Decimal
    absence_deduction_total: Decimal
    bonus_total: Decimal
    net_salary: Decimal
    number_of_students: int
    teaching_day_count: int

    students: tuple[StudentContribution, ...] = ()
    teaching_days: tuple[TeachingDayItem, ...] = ()
    lateness_items: tuple[LatenessOutcome, ...] = ()
    absence_items: tuple[AbsenceOutcome, ...] = ()
    bonuses: tuple[BonusRecord, ...] = ()
    anomalies: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return to_jsonable(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CompensationBreakdown":
        return from_jsonable(cls, data)

    def summary_row(self) -> dict[str, Any]:
        """Flat row for reports."""
        return {
            "teacher_id": self.teacher_id,
            "teacher_name": self.teacher_name,
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "number_of_students": self.number_of_students,
            "teaching_days": self.teaching_day_count,
            "base_salary": str(self.base_salary),
            "lateness_deduction": str(self.lateness_deduction_total),
            "absence_deduction": str(self.absence_deduction_total),
            "bonuses": str(self.bonus_total),
            "net_salary": str(self.net_salary),
            "anomalies": len(self.anomalies),
        }


@dataclass(frozen=True)
class BatchResult:
    breakdowns: dict[str, CompensationBreakdown]
    summary: BatchSummary
