from datetime import date
from decimal import Decimal

import pytest

from src.compensation_engine.compensation_engine.core.exceptions import ConfigurationError, DataAnomaly
from src.compensation_engine.compensation_engine.policy.model import LatenessTierRow, PackageSalaryRow, PolicySnapshot
from src.compensation_engine.compensation_engine.policy.service import PolicyService, build_policy

from tests.fakes import InMemoryPolicies, make_snapshot


def test_snapshot_becomes_typed_policy():
    policy = build_policy(make_snapshot(effective_months="9, 10"))

    assert policy.version == "v1"
    assert policy.package_rates == {"Gold": Decimal("3000")}
    assert policy.lateness_base("Gold") == (Decimal("30"), False)
    assert policy.absence_base("Gold") == (Decimal("25"), False)
    assert [t.start_minute for t in policy.lateness_tiers] == [4, 8, 15]
    assert policy.excused_threshold_minutes == 3
    assert not policy.include_sundays
    assert policy.absence_effective_months == frozenset({9, 10})


def test_lowest_excused_threshold_wins():
    snapshot = make_snapshot()
    rows = [
        LatenessTierRow(tier=1, start_minute=4, end_minute=7, deduction_percent="10", excused_threshold=5),
        LatenessTierRow(tier=2, start_minute=8, end_minute=14, deduction_percent="20", excused_threshold=2),
    ]
    policy = build_policy(PolicySnapshot(version="v", settings=snapshot.settings, lateness_tiers=rows))

    assert policy.excused_threshold_minutes == 2


def test_default_threshold_when_no_row_defines_one():
    policy = build_policy(make_snapshot(excused_threshold=None))
    assert policy.excused_threshold_minutes == 3


def test_missing_deduction_terms_fall_back_to_defaults():
    policy = build_policy(make_snapshot(deductions=()))

    assert policy.lateness_base("Gold") == (Decimal("30"), True)
    assert policy.absence_base("Gold") == (Decimal("25"), True)


def test_missing_rate_is_a_data_anomaly():
    policy = build_policy(make_snapshot())
    with pytest.raises(DataAnomaly):
        policy.monthly_rate("Platinum")


def test_blank_rate_is_treated_as_not_configured():
    snapshot = PolicySnapshot(version="v", package_salaries=[PackageSalaryRow(package_name="Gold", salary_per_student="")])
    assert build_policy(snapshot).package_rates == {}


@pytest.mark.parametrize(
    "tiers",
    [
        ((1, 4, 10, "10"), (2, 8, 14, "20")),
        ((1, 9, 4, "10"),),
        ((1, 4, 7, "150"),),
        ((1, 4, 7, "ten"),),
    ],
)
def test_invalid_tiers_are_rejected(tiers):
    with pytest.raises(ConfigurationError):
        build_policy(make_snapshot(tiers=tiers))


def test_invalid_rate_is_rejected():
    with pytest.raises(ConfigurationError):
        build_policy(make_snapshot(rates=(("Gold", "-5"),)))


@pytest.mark.parametrize("months", ["13", "0", "May"])
def test_invalid_effective_months_are_rejected(months):
    with pytest.raises(ConfigurationError):
        build_policy(make_snapshot(effective_months=months))


def test_invalid_sunday_flag_is_rejected():
    with pytest.raises(ConfigurationError):
        build_policy(make_snapshot(include_sundays="sometimes"))


def test_sunday_rule():
    sunday = date(2024, 9, 8)
    assert not build_policy(make_snapshot()).counts_day(sunday)
    assert build_policy(make_snapshot(include_sundays="true")).counts_day(sunday)


def test_service_loads_a_fresh_snapshot_per_call():
    repo = InMemoryPolicies(make_snapshot())
    service = PolicyService(repo, default_lateness_base=Decimal("40"))

    policy = service.get_policy(date(2024, 9, 30))
    service.get_policy(date(2024, 9, 30))

    assert repo.loads == 2
    assert policy.default_lateness_base == Decimal("40")
