from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional, Sized

from .connection import DatabaseConnection

_SECONDS_PER_DAY = 24 * 60 * 60


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[tuple[Any, Any]]:
    """Yield (connection, cursor) for one unit of work.

    Commits when the block exits normally and rolls back when it raises.
    """
    conn = conn_factory.connect()
    cur = None
    try:
        cur = conn.cursor(dictionary=dictionary)
        yield conn, cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        if cur is not None:
            cur.close()
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or ())


def in_clause(values: Sized) -> str:
    """Placeholder list for `IN (...)` filters."""
    return ", ".join("%s" for _ in range(len(values)))


def optional_int(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


def optional_decimal(value: Any) -> Optional[Decimal]:
    # DECIMAL columns arrive as Decimal, float or str depending on the connector build.
    return Decimal(str(value)) if value is not None else None


def normalize_mysql_date(value: Any) -> Optional[date]:
    if value is None or (isinstance(value, date) and not isinstance(value, datetime)):
        return value
    if isinstance(value, datetime):
        return value.date()
    return date.fromisoformat(str(value)[:10])


def normalize_mysql_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    return datetime.fromisoformat(str(value).strip())


def _time_from_seconds(seconds: int) -> time:
    seconds %= _SECONDS_PER_DAY
    return time(seconds // 3600, seconds % 3600 // 60, seconds % 60)


def normalize_mysql_time(value: Any) -> Optional[time]:
    """TIME columns come back as time, timedelta or 'HH:MM[:SS]' text."""
    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        return _time_from_seconds(int(value.total_seconds()))
    if isinstance(value, str):
        hours, sep, rest = value.strip().partition(":")
        if not sep:
            raise ValueError(f"Invalid time string: {value!r}")
        minutes, _, seconds = rest.partition(":")
        return _time_from_seconds(int(hours) * 3600 + int(minutes) * 60 + int(seconds or 0))
    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
