from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from ..attendance.model import StudentDaySignal
from ..attendance.repository import AttendanceRepository
from ..attendance.service import SignalExtractor
from ..cache.service import ResultCache
from ..common.batch import BatchSummary, Skip, run_batch
from ..common.datetime_utils import today_local
from ..common.money import ZERO, percent_of, to_decimal
from ..core.constants import DEFAULT_BATCH_MAX_WORKERS
from ..core.enums import DeductionType, ReviewState
from ..deductions.model import DeductionRecord
from ..deductions.repository import DeductionRecordRepository
from ..policy.model import LatenessTier, Policy
from ..policy.service import PolicyService
from ..waivers.model import WaiverIndex
from ..waivers.service import WaiverService
from .factory import LatenessStrategyFactory
from .model import LatenessOutcome
from .strategies.base import LatenessDecision

logger = logging.getLogger(__name__)

_SIXTY = Decimal("60")


def minutes_late(scheduled: datetime, actual: datetime) -> int:
    """Whole minutes between scheduled and actual start, half-up, never negative."""
    seconds = to_decimal((actual - scheduled).total_seconds())
    minutes = (seconds / _SIXTY).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return max(0, int(minutes))


def compute_lateness(
    scheduled: datetime,
    actual: datetime,
    tiers: Sequence[LatenessTier],
    excused_threshold: int,
    *,
    factory: Optional[LatenessStrategyFactory] = None,
) -> LatenessDecision:
    late = minutes_late(scheduled, actual)
    strategy = (factory or LatenessStrategyFactory()).for_minutes(
        minutes_late=late, tiers=tiers, excused_threshold=excused_threshold
    )
    return strategy.decide(late)


class LatenessEngine:
    def __init__(self, *, strategy_factory: Optional[LatenessStrategyFactory] = None):
        self._factory = strategy_factory or LatenessStrategyFactory()

    def evaluate(
        self,
        signal: StudentDaySignal,
        policy: Policy,
        teacher_id: str,
        *,
        waivers: Optional[WaiverIndex] = None,
    ) -> Optional[LatenessOutcome]:
        """Price one scheduled-and-present day; None when lateness does not apply."""

        if not signal.scheduled or signal.actual_start is None or signal.scheduled_at is None:
            return None

        decision = compute_lateness(
            signal.scheduled_at,
            signal.actual_start,
            policy.lateness_tiers,
            policy.excused_threshold_minutes,
            factory=self._factory,
        )
        base, defaulted = policy.lateness_base(signal.package)
        amount = percent_of(base, decision.deduction_percent)

        waived, reason = (False, None)
        if amount > ZERO and waivers is not None:
            waived, reason = waivers.is_waived(signal.day, DeductionType.LATENESS)
        if waived:
            amount = ZERO

        if defaulted and decision.deduction_percent > ZERO:
            logger.warning(
                "No lateness base configured for package %r (student %s); using default %s",
                signal.package,
                signal.student_id,
                base,
            )

        return LatenessOutcome(
            teacher_id=teacher_id,
            student_id=signal.student_id,
            student_name=signal.student_name,
            day=signal.day,
            package=signal.package,
            scheduled_at=signal.scheduled_at,
            actual_start=signal.actual_start,
            minutes_late=decision.minutes_late,
            tier_label=decision.tier_label,
            deduction_percent=decision.deduction_percent,
            base_amount=base,
            deduction_amount=amount,
            base_defaulted=defaulted,
            waived=waived,
            waiver_reason=reason,
        )


class LatenessProcessingService:
    """Periodic job: stores one lateness record per late student-day.

    Only tiers that carry a deduction are recorded. Students already recorded
    for a teacher and day are left alone, so the job can run several times a
    day as sessions start.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        extractor: SignalExtractor,
        policies: PolicyService,
        waivers: WaiverService,
        records: DeductionRecordRepository,
        *,
        engine: Optional[LatenessEngine] = None,
        cache: Optional[ResultCache] = None,
        max_workers: int = DEFAULT_BATCH_MAX_WORKERS,
    ):
        self._attendance = attendance
        self._extractor = extractor
        self._policies = policies
        self._waivers = waivers
        self._records = records
        self._engine = engine or LatenessEngine()
        self._cache = cache
        self._max_workers = int(max_workers)

    @staticmethod
    def recent_days(today: date, days: int = 1) -> list[date]:
        """The `days` dates ending with `today`, oldest first."""
        return [today - timedelta(days=offset) for offset in range(max(days, 0) - 1, -1, -1)]

    def process_lateness(
        self,
        days: Sequence[date],
        *,
        today: Optional[date] = None,
        cancel_event: Optional[threading.Event] = None,
        teacher_ids: Optional[Sequence[str]] = None,
    ) -> BatchSummary:
        today = today or today_local()
        eligible = sorted({d for d in days if d <= today})
        if len(eligible) != len(set(days)):
            logger.info("Ignoring %d date(s) after %s", len(set(days)) - len(eligible), today.isoformat())
        if not eligible:
            return BatchSummary()

        policy = self._policies.get_policy(eligible[-1])
        teachers = list(teacher_ids) if teacher_ids is not None else list(self._attendance.list_teacher_ids())
        pairs = [(teacher_id, day) for teacher_id in teachers for day in eligible]

        _, summary = run_batch(
            pairs,
            lambda pair: self._process_teacher_day(pair[0], pair[1], policy),
            max_workers=self._max_workers,
            cancel_event=cancel_event,
            label="lateness-processing",
        )
        return summary

    def _process_teacher_day(self, teacher_id: str, day: date, policy: Policy) -> int:
        signals = self._extractor.get_daily_signals(teacher_id, day, day)
        waivers = self._waivers.index_for(teacher_id, day, day)
        outcomes = [
            outcome
            for outcome in (self._engine.evaluate(s, policy, teacher_id, waivers=waivers) for s in signals)
            if outcome is not None and outcome.deduction_percent > ZERO
        ]
        if not outcomes:
            return 0

        recorded = {
            r.student_id
            for r in self._records.list_records(
                teacher_id=teacher_id, start=day, end=day, deduction_type=DeductionType.LATENESS
            )
        }
        pending = [o for o in outcomes if o.student_id not in recorded]
        if not pending:
            raise Skip()

        created = self._records.create_records([_to_record(o) for o in pending])
        logger.info("Teacher %s late on %s for %d student(s)", teacher_id, day.isoformat(), created)
        if created and self._cache is not None:
            self._cache.invalidate_teacher(teacher_id)
        return created


def _to_record(outcome: LatenessOutcome) -> DeductionRecord:
    waived = outcome.waived
    return DeductionRecord(
        record_id=None,
        teacher_id=outcome.teacher_id,
        deduction_type=DeductionType.LATENESS,
        record_date=outcome.day,
        student_id=outcome.student_id,
        amount=outcome.deduction_amount,
        reason_code=outcome.tier_label,
        review_state=ReviewState.WAIVED if waived else ReviewState.PENDING,
        original_amount=percent_of(outcome.base_amount, outcome.deduction_percent) if waived else None,
        waiver_reason=outcome.waiver_reason,
        scheduled_at=outcome.scheduled_at,
        actual_start=outcome.actual_start,
        minutes_late=outcome.minutes_late,
        tier_label=outcome.tier_label,
    )
