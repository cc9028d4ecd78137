"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_EXCUSED_THRESHOLD = 3
DEFAULT_LATENESS_BASE = Decimal("30")
DEFAULT_ABSENCE_BASE = Decimal("25")
DEFAULT_SCHOOL_TIMEZONE = "Africa/Addis_Ababa"
DEFAULT_BATCH_MAX_WORKERS = 4
DEFAULT_ABSENCE_LOOKBACK_DAYS = 1

SETTING_INCLUDE_SUNDAYS = "include_sundays"
SETTING_EFFECTIVE_MONTHS = "absence_effective_months"
