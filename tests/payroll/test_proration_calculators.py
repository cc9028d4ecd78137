from datetime import date
from decimal import Decimal

import pytest

from src.compensation_engine.compensation_engine.core.enums import ProrationMode
from src.compensation_engine.compensation_engine.core.exceptions import ConfigurationError
from src.compensation_engine.compensation_engine.common.money import round_money
from src.compensation_engine.compensation_engine.payroll.calculator.calendar_month_calculator import (
    CalendarMonthProrationCalculator,
)
from src.compensation_engine.compensation_engine.payroll.calculator.period_calculator import PeriodProrationCalculator
from src.compensation_engine.compensation_engine.payroll.service import calculator_for
from src.compensation_engine.compensation_engine.policy.service import build_policy

from tests.fakes import make_snapshot


def test_period_counts_days_without_sundays():
    policy = build_policy(make_snapshot())
    # March 2024 has five Sundays
    assert PeriodProrationCalculator().working_days(start=date(2024, 3, 1), end=date(2024, 3, 31), policy=policy) == 26


def test_period_counts_sundays_when_enabled():
    policy = build_policy(make_snapshot(include_sundays="true"))
    assert PeriodProrationCalculator().working_days(start=date(2024, 3, 1), end=date(2024, 3, 31), policy=policy) == 31


def test_period_only_counts_inside_the_range():
    policy = build_policy(make_snapshot())
    assert PeriodProrationCalculator().working_days(start=date(2024, 3, 10), end=date(2024, 3, 20), policy=policy) == 9


def test_calendar_month_uses_whole_month_of_start():
    policy = build_policy(make_snapshot())
    calc = CalendarMonthProrationCalculator()
    assert calc.working_days(start=date(2024, 3, 10), end=date(2024, 3, 20), policy=policy) == 26


def test_daily_rate_is_unrounded_and_total_rounds_once():
    rate = PeriodProrationCalculator().daily_rate(Decimal("3000"), 26)

    assert rate != round_money(rate)
    assert round_money(rate * 20) == Decimal("2307.69")


def test_zero_working_days_gives_zero_rate():
    assert PeriodProrationCalculator().daily_rate(Decimal("3000"), 0) == 0


def test_calculator_for_modes():
    assert isinstance(calculator_for("period"), PeriodProrationCalculator)
    assert isinstance(calculator_for(ProrationMode.CALENDAR_MONTH), CalendarMonthProrationCalculator)
    with pytest.raises(ConfigurationError):
        calculator_for("fortnight")
