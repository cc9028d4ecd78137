from datetime import date, datetime, time
from decimal import Decimal

import pytest

from src.compensation_engine.compensation_engine.absence.service import AbsenceEngine
from src.compensation_engine.compensation_engine.attendance.model import StudentDaySignal
from src.compensation_engine.compensation_engine.core.enums import AbsenceReason, DeductionType, StudentStatus
from src.compensation_engine.compensation_engine.core.exceptions import RangeError
from src.compensation_engine.compensation_engine.policy.service import build_policy
from src.compensation_engine.compensation_engine.waivers.model import Waiver, WaiverIndex

from tests.fakes import make_snapshot

WEDNESDAY = date(2024, 9, 4)
SUNDAY = date(2024, 9, 8)
TODAY = date(2024, 10, 1)


def _signal(day=WEDNESDAY, *, scheduled=True, actual=None, package="Gold"):
    return StudentDaySignal(
        day=day,
        student_id=1,
        student_name="A",
        package=package,
        status=StudentStatus.ACTIVE,
        scheduled=scheduled,
        scheduled_time=time(8, 0),
        actual_start=actual,
    )


def _absence_waiver(start, end):
    return WaiverIndex(
        "T1",
        [
            Waiver(
                waiver_id=1,
                teacher_ids=frozenset({"T1", "T2"}),
                deduction_type=DeductionType.ABSENCE,
                start_date=start,
                end_date=end,
                reason="Public holiday",
            )
        ],
    )


def test_scheduled_day_without_session_is_absence_with_package_base():
    outcome = AbsenceEngine().compute(_signal(), build_policy(make_snapshot()), "T1", today=TODAY)

    assert outcome.is_absent
    assert outcome.reason_code == AbsenceReason.NO_SESSION
    assert outcome.deduction_amount == Decimal("25.00")


def test_session_means_present():
    outcome = AbsenceEngine().compute(
        _signal(actual=datetime(2024, 9, 4, 8, 0)), build_policy(make_snapshot()), "T1", today=TODAY
    )

    assert not outcome.is_absent
    assert outcome.reason_code == AbsenceReason.PRESENT
    assert outcome.deduction_amount == 0


@pytest.mark.parametrize("day", [TODAY, date(2024, 10, 2)])
def test_today_and_future_are_rejected(day):
    with pytest.raises(RangeError):
        AbsenceEngine().compute(_signal(day), build_policy(make_snapshot()), "T1", today=TODAY)


def test_sunday_is_excluded_unless_enabled():
    engine = AbsenceEngine()

    excluded = engine.compute(_signal(SUNDAY), build_policy(make_snapshot()), "T1", today=TODAY)
    included = engine.compute(_signal(SUNDAY), build_policy(make_snapshot(include_sundays="true")), "T1", today=TODAY)

    assert excluded.reason_code == AbsenceReason.SUNDAY_EXCLUDED
    assert not excluded.is_absent
    assert included.is_absent


def test_month_outside_effective_months_is_not_absence():
    policy = build_policy(make_snapshot(effective_months="10,11"))
    outcome = AbsenceEngine().compute(_signal(), policy, "T1", today=TODAY)

    assert outcome.reason_code == AbsenceReason.MONTH_NOT_EFFECTIVE


def test_sunday_and_month_gates_compose():
    policy = build_policy(make_snapshot(effective_months="10"))
    outcome = AbsenceEngine().compute(_signal(SUNDAY), policy, "T1", today=TODAY)

    assert outcome.reason_code == AbsenceReason.SUNDAY_EXCLUDED
    assert not outcome.is_absent


def test_unscheduled_day_is_not_absence():
    outcome = AbsenceEngine().compute(_signal(scheduled=False), build_policy(make_snapshot()), "T1", today=TODAY)
    assert outcome.reason_code == AbsenceReason.NOT_SCHEDULED


def test_waiver_suppresses_absence_and_keeps_reason():
    outcome = AbsenceEngine().compute(
        _signal(), build_policy(make_snapshot()), "T1", today=TODAY, waivers=_absence_waiver(WEDNESDAY, WEDNESDAY)
    )

    assert outcome.reason_code == AbsenceReason.WAIVED
    assert outcome.waiver_reason == "Public holiday"
    assert outcome.deduction_amount == 0


def test_waiver_for_other_days_does_not_apply():
    outcome = AbsenceEngine().compute(
        _signal(),
        build_policy(make_snapshot()),
        "T1",
        today=TODAY,
        waivers=_absence_waiver(date(2024, 9, 5), date(2024, 9, 6)),
    )
    assert outcome.is_absent


def test_lateness_waiver_does_not_cover_absence():
    waivers = WaiverIndex(
        "T1",
        [
            Waiver(
                waiver_id=1,
                teacher_ids=frozenset({"T1"}),
                deduction_type=DeductionType.LATENESS,
                start_date=WEDNESDAY,
                end_date=WEDNESDAY,
                reason="Traffic",
            )
        ],
    )
    outcome = AbsenceEngine().compute(_signal(), build_policy(make_snapshot()), "T1", today=TODAY, waivers=waivers)
    assert outcome.is_absent


def test_unknown_package_uses_default_absence_base():
    outcome = AbsenceEngine().compute(_signal(package="Bronze"), build_policy(make_snapshot()), "T1", today=TODAY)

    assert outcome.base_defaulted
    assert outcome.deduction_amount == Decimal("25.00")
