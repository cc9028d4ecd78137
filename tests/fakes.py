"""In-memory repositories and builders shared by the test suite."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from src.compensation_engine.compensation_engine.absence.service import AbsenceProcessingService
from src.compensation_engine.compensation_engine.attendance.model import ScheduledSlot, SessionEvent, Student, Teacher
from src.compensation_engine.compensation_engine.attendance.service import SignalExtractor
from src.compensation_engine.compensation_engine.cache.service import ResultCache
from src.compensation_engine.compensation_engine.core.enums import DeductionType, ReviewState
from src.compensation_engine.compensation_engine.deductions.model import DeductionRecord
from src.compensation_engine.compensation_engine.lateness.service import LatenessProcessingService
from src.compensation_engine.compensation_engine.payroll.model import BonusRecord
from src.compensation_engine.compensation_engine.payroll.service import CompensationService
from src.compensation_engine.compensation_engine.policy.model import (
    LatenessTierRow,
    PackageDeductionRow,
    PackageSalaryRow,
    PolicySnapshot,
)
from src.compensation_engine.compensation_engine.policy.service import PolicyService
from src.compensation_engine.compensation_engine.waivers.model import Waiver
from src.compensation_engine.compensation_engine.waivers.service import WaiverService


class InMemoryAttendance:
    def __init__(self, teachers=(), students=(), events=()):
        self.teachers = {t.teacher_id: t for t in teachers}
        self.students = list(students)
        self.events = list(events)

    def get_teacher(self, teacher_id: str) -> Optional[Teacher]:
        return self.teachers.get(teacher_id)

    def list_teacher_ids(self):
        return sorted(self.teachers)

    def list_students_for_teacher(self, *, teacher_id: str, start: date, end: date):
        taught = {e.student_id for e in self.list_session_events(teacher_id=teacher_id, start=start, end=end)}
        return [s for s in self.students if s.teacher_id == teacher_id or s.student_id in taught]

    def list_session_events(self, *, teacher_id: str, start: date, end: date):
        return [e for e in self.events if e.teacher_id == teacher_id and start <= e.started_at.date() <= end]


class InMemoryPolicies:
    def __init__(self, snapshot: PolicySnapshot):
        self.snapshot = snapshot
        self.loads = 0

    def load_snapshot(self, *, as_of: date) -> PolicySnapshot:
        self.loads += 1
        return self.snapshot


class InMemoryWaivers:
    def __init__(self, waivers=()):
        self.waivers = list(waivers)

    def list_waivers(self, *, teacher_id: str, start: date, end: date, deduction_type=None):
        return [
            w
            for w in self.waivers
            if teacher_id in w.teacher_ids
            and w.start_date <= end
            and w.end_date >= start
            and (deduction_type is None or w.deduction_type == deduction_type)
        ]

    def create_waiver(self, waiver: Waiver) -> int:
        waiver_id = len(self.waivers) + 1
        self.waivers.append(replace(waiver, waiver_id=waiver_id))
        return waiver_id


class InMemoryDeductionRecords:
    def __init__(self, records=()):
        self.records: dict[int, DeductionRecord] = {}
        self.create_records(list(records))

    def list_records(self, *, teacher_id: str, start: date, end: date, deduction_type=None):
        return [
            r
            for r in self.records.values()
            if r.teacher_id == teacher_id
            and start <= r.record_date <= end
            and (deduction_type is None or r.deduction_type == deduction_type)
        ]

    def has_records_for(self, *, teacher_id: str, day: date, deduction_type: DeductionType) -> bool:
        return bool(self.list_records(teacher_id=teacher_id, start=day, end=day, deduction_type=deduction_type))

    def create_records(self, records) -> int:
        for rec in records:
            record_id = len(self.records) + 1
            self.records[record_id] = replace(rec, record_id=record_id)
        return len(records)

    def mark_waived(self, record_id: int, *, reason: str, waived_at: datetime, admin_id: str) -> bool:
        rec = self.records.get(record_id)
        if rec is None:
            return False
        self.records[record_id] = replace(
            rec,
            original_amount=rec.original_amount if rec.original_amount is not None else rec.amount,
            amount=Decimal("0"),
            review_state=ReviewState.WAIVED,
            waiver_reason=reason,
            adjusted_at=waived_at,
            adjusted_by=admin_id,
        )
        return True


@dataclass
class InMemoryBonuses:
    bonuses: list[BonusRecord] = field(default_factory=list)

    def list_bonuses(self, *, teacher_id: str, start: date, end: date):
        return [b for b in self.bonuses if b.teacher_id == teacher_id and start <= b.awarded_on <= end]


def make_snapshot(
    *,
    version: str = "v1",
    include_sundays: str = "false",
    effective_months: str = "",
    rates=(("Gold", "3000"),),
    deductions=(("Gold", "30", "25"),),
    tiers=((1, 4, 7, "10"), (2, 8, 14, "20"), (3, 15, 21, "30")),
    excused_threshold=3,
) -> PolicySnapshot:
    return PolicySnapshot(
        version=version,
        settings={"include_sundays": include_sundays, "absence_effective_months": effective_months},
        package_salaries=[PackageSalaryRow(package_name=p, salary_per_student=r) for p, r in rates],
        package_deductions=[
            PackageDeductionRow(package_name=p, lateness_base_amount=late, absence_base_amount=absent)
            for p, late, absent in deductions
        ],
        lateness_tiers=[
            LatenessTierRow(
                tier=t,
                start_minute=s,
                end_minute=e,
                deduction_percent=pct,
                excused_threshold=excused_threshold if t == 1 else None,
            )
            for t, s, e, pct in tiers
        ],
    )


def session(teacher_id: str, student_id: int, at: datetime) -> SessionEvent:
    return SessionEvent(teacher_id=teacher_id, student_id=student_id, started_at=at)


@dataclass
class Harness:
    attendance: InMemoryAttendance
    policies: InMemoryPolicies
    waivers: InMemoryWaivers
    records: InMemoryDeductionRecords
    bonuses: InMemoryBonuses
    cache: ResultCache
    waiver_service: WaiverService
    service: CompensationService
    absence_processing: AbsenceProcessingService
    lateness_processing: LatenessProcessingService


def build_harness(
    *,
    teachers=(Teacher(teacher_id="T1", name="Abebe"),),
    students=(),
    events=(),
    snapshot: Optional[PolicySnapshot] = None,
    waivers=(),
    records=(),
    bonuses=(),
    today: date = date(2024, 10, 1),
    proration_mode: str = "period",
    max_workers: int = 1,
) -> Harness:
    attendance = InMemoryAttendance(teachers, students, events)
    policies = InMemoryPolicies(snapshot or make_snapshot())
    waiver_repo = InMemoryWaivers(waivers)
    record_repo = InMemoryDeductionRecords(records)
    bonus_repo = InMemoryBonuses(list(bonuses))
    cache = ResultCache()

    policy_service = PolicyService(policies)
    extractor = SignalExtractor(attendance, timezone="Africa/Addis_Ababa")
    waiver_service = WaiverService(waiver_repo, record_repo, cache=cache)
    service = CompensationService(
        attendance,
        policy_service,
        extractor,
        waiver_service,
        bonus_repo,
        cache=cache,
        proration_mode=proration_mode,
        max_workers=max_workers,
        clock=lambda: today,
    )
    absence_processing = AbsenceProcessingService(
        attendance,
        extractor,
        policy_service,
        waiver_service,
        record_repo,
        cache=cache,
        max_workers=max_workers,
    )
    lateness_processing = LatenessProcessingService(
        attendance,
        extractor,
        policy_service,
        waiver_service,
        record_repo,
        cache=cache,
        max_workers=max_workers,
    )
    return Harness(
        attendance=attendance,
        policies=policies,
        waivers=waiver_repo,
        records=record_repo,
        bonuses=bonus_repo,
        cache=cache,
        waiver_service=waiver_service,
        service=service,
        absence_processing=absence_processing,
        lateness_processing=lateness_processing,
    )


def gold_student(student_id: int = 1, *, day_pattern: Optional[str] = "All days", time_slot: Optional[str] = "08:00", **kwargs) -> Student:
    return Student(
        student_id=student_id,
        name=kwargs.pop("name", f"Student {student_id}"),
        teacher_id=kwargs.pop("teacher_id", "T1"),
        package=kwargs.pop("package", "Gold"),
        day_pattern=day_pattern,
        slots=(ScheduledSlot(time_slot=time_slot),) if time_slot is not None else (),
        **kwargs,
    )
