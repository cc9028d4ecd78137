import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "compensation"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "compensation_db"),
    "connection_timeout": int(os.getenv("DB_CONNECTION_TIMEOUT", "10")),
}

REDIS_URL = os.getenv("REDIS_URL") or None
REDIS_KEY_PREFIX = os.getenv("REDIS_KEY_PREFIX", "compensation:")
# 0 disables expiry; entries are then only dropped by invalidation
REDIS_CACHE_TTL = int(os.getenv("REDIS_CACHE_TTL", "86400")) or None

PRORATION_MODE = os.getenv("PRORATION_MODE", "period")
SCHOOL_TIMEZONE = os.getenv("SCHOOL_TIMEZONE", "Africa/Addis_Ababa")
BATCH_MAX_WORKERS = int(os.getenv("BATCH_MAX_WORKERS", "4"))

DEFAULT_LATENESS_BASE = os.getenv("DEFAULT_LATENESS_BASE", "30")
DEFAULT_ABSENCE_BASE = os.getenv("DEFAULT_ABSENCE_BASE", "25")
DEFAULT_EXCUSED_THRESHOLD = int(os.getenv("DEFAULT_EXCUSED_THRESHOLD", "3"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DEBUG = False
