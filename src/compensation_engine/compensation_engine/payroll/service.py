from __future__ import annotations

import logging
import threading
from datetime import date
from decimal import Decimal
from typing import Callable, Optional, Sequence, Union

from ..absence.model import AbsenceOutcome
from ..absence.service import AbsenceEngine
from ..attendance.model import StudentDaySignal, Teacher
from ..attendance.repository import AttendanceRepository
from ..attendance.service import SignalExtractor
from ..cache.model import CacheKey
from ..cache.service import ResultCache
from ..common.batch import run_batch
from ..common.datetime_utils import today_local
from ..common.money import ZERO, money_sum, round_money
from ..common.validators import require_date_range, require_non_empty
from ..core.constants import DEFAULT_BATCH_MAX_WORKERS
from ..core.enums import AbsenceReason, ProrationMode
from ..core.exceptions import ConfigurationError, DataAnomaly, TeacherNotFoundError
from ..lateness.model import LatenessOutcome
from ..lateness.service import LatenessEngine
from ..policy.model import Policy
from ..policy.service import PolicyService
from ..waivers.model import WaiverIndex
from ..waivers.service import WaiverService
from .calculator.base import ProrationCalculator
from .calculator.calendar_month_calculator import CalendarMonthProrationCalculator
from .calculator.period_calculator import PeriodProrationCalculator
from .model import BatchResult, CompensationBreakdown, StudentContribution, TeachingDayItem
from .repository import BonusRepository

logger = logging.getLogger(__name__)


def calculator_for(mode: Union[ProrationMode, str]) -> ProrationCalculator:
    try:
        mode = ProrationMode(mode)
    except ValueError as e:
        raise ConfigurationError(f"Unknown proration mode: {mode!r}") from e
    if mode == ProrationMode.CALENDAR_MONTH:
        return CalendarMonthProrationCalculator()
    return PeriodProrationCalculator()


class CompensationService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        policies: PolicyService,
        extractor: SignalExtractor,
        waivers: WaiverService,
        bonuses: BonusRepository,
        *,
        cache: Optional[ResultCache] = None,
        lateness_engine: Optional[LatenessEngine] = None,
        absence_engine: Optional[AbsenceEngine] = None,
        proration_mode: Union[ProrationMode, str] = ProrationMode.PERIOD,
        max_workers: int = DEFAULT_BATCH_MAX_WORKERS,
        clock: Callable[[], date] = today_local,
    ):
        self._attendance = attendance
        self._policies = policies
        self._extractor = extractor
        self._waivers = waivers
        self._bonuses = bonuses
        self._cache = cache or ResultCache()
        self._lateness = lateness_engine or LatenessEngine()
        self._absence = absence_engine or AbsenceEngine()
        self._proration_mode = ProrationMode(proration_mode)
        self._calculator = calculator_for(self._proration_mode)
        self._max_workers = int(max_workers)
        self._clock = clock

    def calculate_teacher_salary(self, teacher_id: str, start: date, end: date) -> CompensationBreakdown:
        return self._calculate(teacher_id, start, end, policy=None)

    def calculate_all_teacher_salaries(
        self,
        start: date,
        end: date,
        *,
        teacher_ids: Optional[Sequence[str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchResult:
        """Compute every teacher with one policy load; failures are recorded, never raised."""

        require_date_range(start, end)
        policy = self._policies.get_policy(end)
        ids = list(teacher_ids) if teacher_ids is not None else list(self._attendance.list_teacher_ids())

        results, summary = run_batch(
            ids,
            lambda teacher_id: self._calculate(teacher_id, start, end, policy=policy),
            max_workers=self._max_workers,
            cancel_event=cancel_event,
            label="salary-batch",
        )
        return BatchResult(breakdowns={tid: results[tid] for tid in ids if tid in results}, summary=summary)

    def clear_cache(self, teacher_id: Optional[str] = None) -> None:
        if teacher_id is None:
            self._cache.invalidate_all()
        else:
            self._cache.invalidate_teacher(teacher_id)

    def detect_absences_for_date(self, teacher_id: str, day: date) -> list[AbsenceOutcome]:
        teacher_id = require_non_empty(teacher_id, "teacher_id")
        self._get_teacher(teacher_id)
        today = self._clock()
        policy = self._policies.get_policy(day)
        signals = self._extractor.get_daily_signals(teacher_id, day, day)
        waivers = self._waivers.index_for(teacher_id, day, day)
        return self._absence.compute_day(signals, policy, teacher_id, today=today, waivers=waivers)

    def _get_teacher(self, teacher_id: str) -> Teacher:
        teacher = self._attendance.get_teacher(teacher_id)
        if teacher is None:
            raise TeacherNotFoundError(f"Unknown teacher: {teacher_id}")
        return teacher

    def _calculate(
        self, teacher_id: str, start: date, end: date, *, policy: Optional[Policy]
    ) -> CompensationBreakdown:
        teacher_id = require_non_empty(teacher_id, "teacher_id")
        require_date_range(start, end)
        teacher = self._get_teacher(teacher_id)
        policy = policy or self._policies.get_policy(end)
        today = self._clock()

        key = CacheKey(teacher_id=teacher_id, period_start=start, period_end=end)
        with self._cache.lock_for(key):
            cached, hit = self._cache.get(key, policy.version, today=today)
            if hit:
                return cached
            generation = self._cache.generation(teacher_id)
            breakdown = self._compute(teacher, start, end, policy, today)
            self._cache.put(key, breakdown, policy.version, today=today, generation=generation)
            return breakdown

    def _compute(
        self, teacher: Teacher, start: date, end: date, policy: Policy, today: date
    ) -> CompensationBreakdown:
        teacher_id = teacher.teacher_id
        signals = self._extractor.get_daily_signals(teacher_id, start, end)
        waivers = self._waivers.index_for(teacher_id, start, end)
        working_days = self._calculator.working_days(start=start, end=end, policy=policy)
        if working_days == 0:
            logger.warning("No working days for teacher %s in %s..%s", teacher_id, start, end)

        by_student: dict[int, list[StudentDaySignal]] = {}
        for signal in signals:
            by_student.setdefault(signal.student_id, []).append(signal)

        students: list[StudentContribution] = []
        teaching_days: list[TeachingDayItem] = []
        lateness_items: list[LatenessOutcome] = []
        absence_items: list[AbsenceOutcome] = []
        anomalies: list[str] = []

        for student_id, student_signals in by_student.items():
            contribution, days, late, absent, flags = self._student_pass(
                teacher_id, student_signals, policy, working_days, today, waivers
            )
            students.append(contribution)
            teaching_days.extend(days)
            lateness_items.extend(late)
            absence_items.extend(absent)
            anomalies.extend(flags)

        bonuses = tuple(self._bonuses.list_bonuses(teacher_id=teacher_id, start=start, end=end))

        base_salary = round_money(money_sum(d.daily_rate for d in teaching_days))
        lateness_total = money_sum(i.deduction_amount for i in lateness_items)
        absence_total = money_sum(i.deduction_amount for i in absence_items)
        bonus_total = money_sum(b.amount for b in bonuses)
        net_salary = base_salary - lateness_total - absence_total + bonus_total
        taught = sum(1 for s in students if s.teaching_days > 0)

        logger.info(
            "Teacher %s %s..%s: base=%s lateness=%s absence=%s bonuses=%s net=%s (%d students, %d anomalies)",
            teacher_id,
            start.isoformat(),
            end.isoformat(),
            base_salary,
            lateness_total,
            absence_total,
            bonus_total,
            net_salary,
            taught,
            len(anomalies),
        )

        return CompensationBreakdown(
            teacher_id=teacher_id,
            teacher_name=teacher.name,
            period_start=start,
            period_end=end,
            policy_version=policy.version,
            proration_mode=self._proration_mode,
            working_days=working_days,
            base_salary=base_salary,
            lateness_deduction_total=lateness_total,
            absence_deduction_total=absence_total,
            bonus_total=bonus_total,
            net_salary=net_salary,
            number_of_students=taught,
            teaching_day_count=len({d.day for d in teaching_days}),
            students=tuple(students),
            teaching_days=tuple(teaching_days),
            lateness_items=tuple(lateness_items),
            absence_items=tuple(absence_items),
            bonuses=bonuses,
            anomalies=tuple(anomalies),
        )

    def _student_pass(
        self,
        teacher_id: str,
        signals: list[StudentDaySignal],
        policy: Policy,
        working_days: int,
        today: date,
        waivers: WaiverIndex,
    ):
        first = signals[0]
        anomalies: list[str] = []

        rate_missing = False
        try:
            monthly_rate = policy.monthly_rate(first.package)
        except DataAnomaly as e:
            logger.warning("Teacher %s, student %s: %s; paying 0", teacher_id, first.student_id, e)
            anomalies.append(f"student {first.student_id}: no monthly rate for package {first.package!r}")
            monthly_rate, rate_missing = ZERO, True
        daily_rate = self._calculator.daily_rate(monthly_rate, working_days)

        scheduled = [s for s in signals if s.scheduled]
        time_missing = any(s.time_missing for s in scheduled)
        time_unparseable = any(s.time_unparseable for s in scheduled)
        if first.pattern_unrecognized:
            anomalies.append(f"student {first.student_id}: unrecognized day package")
        if time_missing:
            anomalies.append(f"student {first.student_id}: no time slot")
        if time_unparseable:
            anomalies.append(f"student {first.student_id}: unparseable time slot")

        days: list[TeachingDayItem] = []
        late: list[LatenessOutcome] = []
        absent: list[AbsenceOutcome] = []

        for signal in signals:
            if signal.has_session and policy.counts_day(signal.day):
                days.append(
                    TeachingDayItem(day=signal.day, student_id=signal.student_id, package=signal.package, daily_rate=daily_rate)
                )

            outcome = self._lateness.evaluate(signal, policy, teacher_id, waivers=waivers)
            if outcome is not None and (outcome.deduction_amount > ZERO or outcome.waived):
                late.append(outcome)
                if outcome.base_defaulted:
                    anomalies.append(f"student {signal.student_id}: default lateness base used on {signal.day}")

            if signal.scheduled and signal.day < today:
                result = self._absence.compute(signal, policy, teacher_id, today=today, waivers=waivers)
                if result.is_absent or result.reason_code == AbsenceReason.WAIVED:
                    absent.append(result)
                    if result.base_defaulted:
                        anomalies.append(f"student {signal.student_id}: default absence base used on {signal.day}")

        contribution = StudentContribution(
            student_id=first.student_id,
            student_name=first.student_name,
            package=first.package,
            status=first.status,
            monthly_rate=monthly_rate,
            daily_rate=daily_rate,
            teaching_days=len(days),
            base_amount=round_money(daily_rate * Decimal(len(days))),
            rate_missing=rate_missing,
            pattern_unrecognized=first.pattern_unrecognized,
            time_missing=time_missing,
            time_unparseable=time_unparseable,
        )
        return contribution, days, late, absent, anomalies
