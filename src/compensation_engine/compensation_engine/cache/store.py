from __future__ import annotations

import json
import logging
import threading
from datetime import date
from typing import Optional, Protocol

import redis

from ..payroll.model import CompensationBreakdown
from .model import CacheEntry, CacheKey

logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        raise NotImplementedError

    def set(self, key: CacheKey, entry: CacheEntry) -> None:
        raise NotImplementedError

    def delete_teacher(self, teacher_id: str) -> int:
        raise NotImplementedError

    def clear(self) -> int:
        raise NotImplementedError


class InMemoryCacheStore(CacheStore):
    def __init__(self):
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: CacheKey, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[key] = entry

    def delete_teacher(self, teacher_id: str) -> int:
        with self._lock:
            keys = [k for k in self._entries if k.teacher_id == teacher_id]
            for k in keys:
                del self._entries[k]
            return len(keys)

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count


class RedisCacheStore(CacheStore):
    """Entries are JSON documents under `<prefix>entry:<teacher>:<start>:<end>`.

    A per-teacher set (`<prefix>teacher:<id>`) tracks keys for invalidation.
    Redis errors are logged and read as a miss.
    """

    def __init__(self, client: redis.Redis, *, prefix: str = "compensation:", ttl_seconds: Optional[int] = None):
        self._client = client
        self._prefix = prefix
        self._ttl = ttl_seconds

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisCacheStore":
        return cls(redis.Redis.from_url(url, decode_responses=True), **kwargs)

    def _entry_key(self, key: CacheKey) -> str:
        return f"{self._prefix}entry:{key.as_string()}"

    def _teacher_key(self, teacher_id: str) -> str:
        return f"{self._prefix}teacher:{teacher_id}"

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        try:
            raw = self._client.get(self._entry_key(key))
        except redis.RedisError as e:
            logger.error("Redis get error for %s: %s", key.as_string(), e)
            return None
        if not raw:
            return None
        try:
            payload = json.loads(raw)
            return CacheEntry(
                breakdown=CompensationBreakdown.from_dict(payload["breakdown"]),
                policy_version=payload["policy_version"],
                computed_on=date.fromisoformat(payload["computed_on"]),
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Discarding unreadable cache entry %s: %s", key.as_string(), e)
            return None

    def set(self, key: CacheKey, entry: CacheEntry) -> None:
        payload = json.dumps(
            {
                "breakdown": entry.breakdown.to_dict(),
                "policy_version": entry.policy_version,
                "computed_on": entry.computed_on.isoformat(),
            }
        )
        entry_key = self._entry_key(key)
        try:
            pipe = self._client.pipeline()
            if self._ttl:
                pipe.setex(entry_key, self._ttl, payload)
            else:
                pipe.set(entry_key, payload)
            pipe.sadd(self._teacher_key(key.teacher_id), entry_key)
            pipe.execute()
        except redis.RedisError as e:
            logger.error("Redis set error for %s: %s", key.as_string(), e)

    def delete_teacher(self, teacher_id: str) -> int:
        teacher_key = self._teacher_key(teacher_id)
        try:
            keys = list(self._client.smembers(teacher_key))
            removed = self._client.delete(*keys) if keys else 0
            self._client.delete(teacher_key)
            return int(removed)
        except redis.RedisError as e:
            logger.error("Redis delete error for teacher %s: %s", teacher_id, e)
            return 0

    def clear(self) -> int:
        removed = 0
        try:
            for k in self._client.scan_iter(match=f"{self._prefix}*"):
                removed += int(self._client.delete(k))
        except redis.RedisError as e:
            logger.error("Redis clear error: %s", e)
        return removed
