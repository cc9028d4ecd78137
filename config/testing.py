import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "compensation_test"),
}

# Tests never talk to Redis
REDIS_URL = None
REDIS_KEY_PREFIX = "compensation:test:"
REDIS_CACHE_TTL = None

PRORATION_MODE = "period"
SCHOOL_TIMEZONE = "Africa/Addis_Ababa"
BATCH_MAX_WORKERS = 1

DEFAULT_LATENESS_BASE = "30"
DEFAULT_ABSENCE_BASE = "25"
DEFAULT_EXCUSED_THRESHOLD = 3

LOG_LEVEL = "WARNING"
DEBUG = False
TESTING = True
