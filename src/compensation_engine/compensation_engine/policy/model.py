from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from ..common.datetime_utils import is_sunday
from ..core.exceptions import DataAnomaly


@dataclass(frozen=True)
class PackageSalaryRow:
    """Raw per-package monthly rate as stored (string/number, unvalidated)."""

    package_name: str
    salary_per_student: object


@dataclass(frozen=True)
class PackageDeductionRow:
    package_name: str
    lateness_base_amount: object
    absence_base_amount: object


@dataclass(frozen=True)
class LatenessTierRow:
    tier: int
    start_minute: object
    end_minute: object
    deduction_percent: object
    excused_threshold: object = None


@dataclass(frozen=True)
class PolicySnapshot:
    """Everything the policy store returns for one load, before validation."""

    version: str
    settings: Mapping[str, str] = field(default_factory=dict)
    package_salaries: Sequence[PackageSalaryRow] = ()
    package_deductions: Sequence[PackageDeductionRow] = ()
    lateness_tiers: Sequence[LatenessTierRow] = ()


@dataclass(frozen=True)
class PackageDeduction:
    lateness_base: Decimal
    absence_base: Decimal


@dataclass(frozen=True)
class LatenessTier:
    start_minute: int
    end_minute: int
    deduction_percent: Decimal

    def contains(self, minutes: int) -> bool:
        return self.start_minute <= minutes <= self.end_minute


@dataclass(frozen=True)
class Policy:
    """Validated compensation policy, assembled once per request or batch."""

    version: str
    package_rates: Mapping[str, Decimal]
    package_deductions: Mapping[str, PackageDeduction]
    lateness_tiers: tuple[LatenessTier, ...]
    excused_threshold_minutes: int
    include_sundays: bool
    absence_effective_months: frozenset[int]
    default_lateness_base: Decimal
    default_absence_base: Decimal

    def monthly_rate(self, package: Optional[str]) -> Decimal:
        rate = self.package_rates.get(package or "")
        if rate is None:
            raise DataAnomaly(f"No monthly rate configured for package {package!r}")
        return rate

    def lateness_base(self, package: Optional[str]) -> tuple[Decimal, bool]:
        """Return (amount, defaulted)."""
        terms = self.package_deductions.get(package or "")
        if terms is None:
            return self.default_lateness_base, True
        return terms.lateness_base, False

    def absence_base(self, package: Optional[str]) -> tuple[Decimal, bool]:
        terms = self.package_deductions.get(package or "")
        if terms is None:
            return self.default_absence_base, True
        return terms.absence_base, False

    def counts_day(self, day: date) -> bool:
        """Sunday-inclusion rule shared by working-day counts and absence checks."""
        return self.include_sundays or not is_sunday(day)

    def is_effective_month(self, day: date) -> bool:
        return not self.absence_effective_months or day.month in self.absence_effective_months
