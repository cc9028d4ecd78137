from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from ..core.constants import (
    DEFAULT_ABSENCE_BASE,
    DEFAULT_EXCUSED_THRESHOLD,
    DEFAULT_LATENESS_BASE,
    SETTING_EFFECTIVE_MONTHS,
    SETTING_INCLUDE_SUNDAYS,
)
from ..core.exceptions import ConfigurationError
from ..common.money import to_decimal
from .model import LatenessTier, PackageDeduction, Policy, PolicySnapshot
from .repository import PolicyRepository

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off", ""}


def _parse_amount(value: object, label: str) -> Decimal:
    try:
        amount = to_decimal(value)
    except ValueError as e:
        raise ConfigurationError(f"{label}: {e}") from e
    if not amount.is_finite() or amount < 0:
        raise ConfigurationError(f"{label}: amount must be a non-negative number, got {value!r}")
    return amount


def _parse_minutes(value: object, label: str) -> int:
    try:
        minutes = int(str(value).strip())
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{label}: invalid minute value {value!r}") from e
    if minutes < 0:
        raise ConfigurationError(f"{label}: minutes must not be negative, got {minutes}")
    return minutes


def _parse_bool(value: Optional[str], label: str) -> bool:
    normalized = (value or "").strip().strip('"').lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{label}: expected true/false, got {value!r}")


def _parse_months(value: Optional[str]) -> frozenset[int]:
    months: set[int] = set()
    for token in (value or "").replace(";", ",").split(","):
        token = token.strip().strip('"[]')
        if not token:
            continue
        try:
            month = int(token)
        except ValueError as e:
            raise ConfigurationError(f"{SETTING_EFFECTIVE_MONTHS}: invalid month {token!r}") from e
        if not 1 <= month <= 12:
            raise ConfigurationError(f"{SETTING_EFFECTIVE_MONTHS}: month out of range {month}")
        months.add(month)
    return frozenset(months)


def _build_tiers(snapshot: PolicySnapshot) -> tuple[LatenessTier, ...]:
    tiers = []
    for row in snapshot.lateness_tiers:
        label = f"lateness tier {row.tier}"
        start = _parse_minutes(row.start_minute, label)
        end = _parse_minutes(row.end_minute, label)
        if end < start:
            raise ConfigurationError(f"{label}: end minute {end} is before start minute {start}")
        percent = _parse_amount(row.deduction_percent, label)
        if percent > 100:
            raise ConfigurationError(f"{label}: deduction percent {percent} exceeds 100")
        tiers.append(LatenessTier(start_minute=start, end_minute=end, deduction_percent=percent))

    tiers.sort(key=lambda t: (t.start_minute, t.end_minute))
    for previous, current in zip(tiers, tiers[1:]):
        if current.start_minute <= previous.end_minute:
            raise ConfigurationError(
                "Overlapping lateness tiers: "
                f"{previous.start_minute}-{previous.end_minute} and {current.start_minute}-{current.end_minute}"
            )
    return tuple(tiers)


def build_policy(
    snapshot: PolicySnapshot,
    *,
    default_excused_threshold: int = DEFAULT_EXCUSED_THRESHOLD,
    default_lateness_base: Decimal = DEFAULT_LATENESS_BASE,
    default_absence_base: Decimal = DEFAULT_ABSENCE_BASE,
) -> Policy:
    """Validate a raw snapshot into a typed Policy.

    Raises ConfigurationError on unparseable amounts, inverted or overlapping
    tiers, and malformed settings.
    """

    rates: dict[str, Decimal] = {}
    for row in snapshot.package_salaries:
        if row.salary_per_student is None or str(row.salary_per_student).strip() == "":
            # Treated as not configured; the aggregator flags the students.
            continue
        rates[row.package_name] = _parse_amount(row.salary_per_student, f"package salary {row.package_name!r}")

    deductions: dict[str, PackageDeduction] = {}
    for row in snapshot.package_deductions:
        label = f"package deduction {row.package_name!r}"
        deductions[row.package_name] = PackageDeduction(
            lateness_base=_parse_amount(row.lateness_base_amount, label),
            absence_base=_parse_amount(row.absence_base_amount, label),
        )

    thresholds = [
        _parse_minutes(row.excused_threshold, f"lateness tier {row.tier} excused threshold")
        for row in snapshot.lateness_tiers
        if row.excused_threshold is not None and str(row.excused_threshold).strip() != ""
    ]

    return Policy(
        version=snapshot.version,
        package_rates=rates,
        package_deductions=deductions,
        lateness_tiers=_build_tiers(snapshot),
        excused_threshold_minutes=min(thresholds) if thresholds else int(default_excused_threshold),
        include_sundays=_parse_bool(snapshot.settings.get(SETTING_INCLUDE_SUNDAYS), SETTING_INCLUDE_SUNDAYS),
        absence_effective_months=_parse_months(snapshot.settings.get(SETTING_EFFECTIVE_MONTHS)),
        default_lateness_base=to_decimal(default_lateness_base),
        default_absence_base=to_decimal(default_absence_base),
    )


class PolicyService:
    def __init__(
        self,
        policies: PolicyRepository,
        *,
        default_excused_threshold: int = DEFAULT_EXCUSED_THRESHOLD,
        default_lateness_base: Decimal = DEFAULT_LATENESS_BASE,
        default_absence_base: Decimal = DEFAULT_ABSENCE_BASE,
    ):
        self._policies = policies
        self._default_excused_threshold = int(default_excused_threshold)
        self._default_lateness_base = to_decimal(default_lateness_base)
        self._default_absence_base = to_decimal(default_absence_base)

    def get_policy(self, as_of: date) -> Policy:
        snapshot = self._policies.load_snapshot(as_of=as_of)
        policy = build_policy(
            snapshot,
            default_excused_threshold=self._default_excused_threshold,
            default_lateness_base=self._default_lateness_base,
            default_absence_base=self._default_absence_base,
        )
        logger.debug(
            "Policy %s loaded as of %s: %d package rates, %d deduction packages, %d lateness tiers, sundays=%s",
            policy.version,
            as_of.isoformat(),
            len(policy.package_rates),
            len(policy.package_deductions),
            len(policy.lateness_tiers),
            policy.include_sundays,
        )
        return policy
