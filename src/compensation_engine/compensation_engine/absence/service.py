from __future__ import annotations

import logging
import threading
from datetime import date, timedelta
from typing import Optional, Sequence

from ..attendance.model import StudentDaySignal
from ..attendance.repository import AttendanceRepository
from ..attendance.service import SignalExtractor
from ..cache.service import ResultCache
from ..common.batch import BatchSummary, Skip, run_batch
from ..common.datetime_utils import today_local
from ..common.money import ZERO, round_money
from ..common.validators import require_past_date
from ..core.constants import DEFAULT_ABSENCE_LOOKBACK_DAYS, DEFAULT_BATCH_MAX_WORKERS
from ..core.enums import AbsenceReason, DeductionType, ReviewState
from ..deductions.model import DeductionRecord
from ..deductions.repository import DeductionRecordRepository
from ..policy.model import Policy
from ..policy.service import PolicyService
from ..waivers.model import WaiverIndex
from ..waivers.service import WaiverService
from .model import AbsenceOutcome

logger = logging.getLogger(__name__)


class AbsenceEngine:
    """Decides, per student and past day, whether the teacher was absent.

    Rules run in a fixed order and the first match wins: Sunday exclusion,
    effective-month gating, schedule, waiver, then the presence of a session.
    """

    def compute(
        self,
        signal: StudentDaySignal,
        policy: Policy,
        teacher_id: str,
        *,
        today: date,
        waivers: Optional[WaiverIndex] = None,
    ) -> AbsenceOutcome:
        require_past_date(signal.day, today)

        def outcome(reason: AbsenceReason, **kwargs) -> AbsenceOutcome:
            return AbsenceOutcome(
                teacher_id=teacher_id,
                student_id=signal.student_id,
                day=signal.day,
                is_absent=reason == AbsenceReason.NO_SESSION,
                reason_code=reason,
                student_name=signal.student_name,
                package=signal.package,
                **kwargs,
            )

        if not policy.counts_day(signal.day):
            return outcome(AbsenceReason.SUNDAY_EXCLUDED)
        if not policy.is_effective_month(signal.day):
            return outcome(AbsenceReason.MONTH_NOT_EFFECTIVE)
        if not signal.scheduled:
            return outcome(AbsenceReason.NOT_SCHEDULED)

        if waivers is not None:
            waived, reason = waivers.is_waived(signal.day, DeductionType.ABSENCE)
            if waived:
                return outcome(AbsenceReason.WAIVED, waiver_reason=reason)

        if signal.has_session:
            return outcome(AbsenceReason.PRESENT)

        base, defaulted = policy.absence_base(signal.package)
        if defaulted:
            logger.warning(
                "No absence base configured for package %r (student %s); using default %s",
                signal.package,
                signal.student_id,
                base,
            )
        return outcome(AbsenceReason.NO_SESSION, deduction_amount=round_money(base), base_defaulted=defaulted)

    def compute_day(
        self,
        signals: Sequence[StudentDaySignal],
        policy: Policy,
        teacher_id: str,
        *,
        today: date,
        waivers: Optional[WaiverIndex] = None,
    ) -> list[AbsenceOutcome]:
        return [self.compute(s, policy, teacher_id, today=today, waivers=waivers) for s in signals]


class AbsenceProcessingService:
    """Periodic job: materializes absence deduction records for every teacher."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        extractor: SignalExtractor,
        policies: PolicyService,
        waivers: WaiverService,
        records: DeductionRecordRepository,
        *,
        engine: Optional[AbsenceEngine] = None,
        cache: Optional[ResultCache] = None,
        max_workers: int = DEFAULT_BATCH_MAX_WORKERS,
    ):
        self._attendance = attendance
        self._extractor = extractor
        self._policies = policies
        self._waivers = waivers
        self._records = records
        self._engine = engine or AbsenceEngine()
        self._cache = cache
        self._max_workers = int(max_workers)

    @staticmethod
    def trailing_days(today: date, days: int = DEFAULT_ABSENCE_LOOKBACK_DAYS) -> list[date]:
        """The `days` dates before `today`, oldest first."""
        return [today - timedelta(days=offset) for offset in range(max(days, 0), 0, -1)]

    def process_absences(
        self,
        days: Sequence[date],
        *,
        today: Optional[date] = None,
        cancel_event: Optional[threading.Event] = None,
        teacher_ids: Optional[Sequence[str]] = None,
    ) -> BatchSummary:
        """Evaluate every (teacher, day) pair and store absence records.

        Pairs for today or later, and pairs that already have absence records,
        are skipped.
        """

        today = today or today_local()
        past_days = sorted({d for d in days if d < today})
        if len(past_days) != len(set(days)):
            logger.info("Ignoring %d date(s) on or after %s", len(set(days)) - len(past_days), today.isoformat())
        if not past_days:
            return BatchSummary()

        policy = self._policies.get_policy(past_days[-1])
        teachers = list(teacher_ids) if teacher_ids is not None else list(self._attendance.list_teacher_ids())
        pairs = [(teacher_id, day) for teacher_id in teachers for day in past_days]

        def work(pair: tuple[str, date]) -> int:
            teacher_id, day = pair
            if self._records.has_records_for(teacher_id=teacher_id, day=day, deduction_type=DeductionType.ABSENCE):
                raise Skip()
            return self._process_teacher_day(teacher_id, day, policy, today)

        _, summary = run_batch(
            pairs,
            work,
            max_workers=self._max_workers,
            cancel_event=cancel_event,
            label="absence-processing",
        )
        return summary

    def _process_teacher_day(self, teacher_id: str, day: date, policy: Policy, today: date) -> int:
        signals = self._extractor.get_daily_signals(teacher_id, day, day)
        waivers = self._waivers.index_for(teacher_id, day, day)
        outcomes = self._engine.compute_day(signals, policy, teacher_id, today=today, waivers=waivers)

        records = [
            DeductionRecord(
                record_id=None,
                teacher_id=teacher_id,
                deduction_type=DeductionType.ABSENCE,
                record_date=day,
                student_id=o.student_id,
                amount=o.deduction_amount,
                reason_code=o.reason_code.value,
                review_state=ReviewState.PENDING,
            )
            for o in outcomes
            if o.is_absent and o.deduction_amount > ZERO
        ]
        created = self._records.create_records(records)
        if created:
            logger.info(
                "Teacher %s absent on %s for %d student(s)", teacher_id, day.isoformat(), created
            )
            if self._cache is not None:
                self._cache.invalidate_teacher(teacher_id)
        return created
