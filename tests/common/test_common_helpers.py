import threading
from datetime import date, time, timedelta
from decimal import Decimal

import pytest

from src.compensation_engine.compensation_engine.common.batch import Skip, run_batch
from src.compensation_engine.compensation_engine.common.datetime_utils import iter_days, parse_time_of_day
from src.compensation_engine.compensation_engine.common.money import percent_of, round_money, to_decimal
from src.compensation_engine.compensation_engine.common.validators import require_past_date
from src.compensation_engine.compensation_engine.core.exceptions import RangeError
from src.compensation_engine.compensation_engine.database.mysql_base import normalize_mysql_time


def test_round_money_is_half_up():
    assert round_money(Decimal("2.345")) == Decimal("2.35")
    assert round_money(Decimal("2.344")) == Decimal("2.34")


def test_percent_of_rounds_each_instance():
    assert percent_of(Decimal("25"), Decimal("10")) == Decimal("2.50")
    assert percent_of(Decimal("33.33"), Decimal("15")) == Decimal("5.00")


def test_to_decimal_avoids_float_noise():
    assert to_decimal(0.1) == Decimal("0.1")
    with pytest.raises(ValueError):
        to_decimal("abc")


@pytest.mark.parametrize(
    "value,expected",
    [
        ("08:00", time(8, 0)),
        ("8:05", time(8, 5)),
        ("08:00:30", time(8, 0, 30)),
        ("4:30 PM", time(16, 30)),
        ("12:15 am", time(0, 15)),
        ("12:15 PM", time(12, 15)),
        ("09:00-10:00", time(9, 0)),
    ],
)
def test_parse_time_of_day(value, expected):
    assert parse_time_of_day(value) == expected


@pytest.mark.parametrize("value", ["noon", "25:00", "13:00 PM"])
def test_parse_time_of_day_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_time_of_day(value)


def test_iter_days_is_inclusive():
    assert list(iter_days(date(2024, 2, 28), date(2024, 3, 1))) == [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]


def test_require_past_date():
    require_past_date(date(2024, 9, 30), date(2024, 10, 1))
    with pytest.raises(RangeError):
        require_past_date(date(2024, 10, 1), date(2024, 10, 1))


def test_normalize_mysql_time_variants():
    assert normalize_mysql_time(timedelta(hours=8, minutes=30)) == time(8, 30)
    assert normalize_mysql_time("14:05:00") == time(14, 5)
    assert normalize_mysql_time(None) is None


def test_run_batch_isolates_failures_and_counts_skips():
    def work(n):
        if n == 2:
            raise ValueError("bad item")
        if n == 3:
            raise Skip()
        return n * 10

    results, summary = run_batch([1, 2, 3, 4], work, max_workers=2)

    assert results == {1: 10, 4: 40}
    assert (summary.processed, summary.skipped, summary.errored) == (2, 1, 1)
    assert summary.failures[0].item_key == "2"
    assert not summary.cancelled


def test_run_batch_honours_cancellation():
    cancel = threading.Event()

    def work(n):
        cancel.set()
        return n

    results, summary = run_batch([1, 2, 3], work, cancel_event=cancel)

    assert results == {1: 1}
    assert summary.cancelled
