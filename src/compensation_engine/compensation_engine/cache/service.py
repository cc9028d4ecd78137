from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from typing import Iterator, Optional

from ..common.datetime_utils import today_local
from ..payroll.model import CompensationBreakdown
from .model import CacheEntry, CacheKey
from .store import CacheStore, InMemoryCacheStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Generation:
    """Invalidation counters observed before a computation started."""

    global_count: int
    teacher_count: int


@dataclass
class _KeyLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class ResultCache:
    """Breakdowns per (teacher, period), valid for one policy version.

    A period that had not ended on the day an entry was computed is only
    served on that same day, since later days add absence evaluations.

    Every invalidation bumps a counter; `put` drops a breakdown whose
    computation started before the latest invalidation of its teacher.
    """

    def __init__(self, store: Optional[CacheStore] = None):
        self._store = store or InMemoryCacheStore()
        self._locks: dict[CacheKey, _KeyLock] = {}
        self._locks_guard = threading.Lock()
        self._state_lock = threading.Lock()
        self._global_count = 0
        self._teacher_counts: dict[str, int] = {}

    @contextmanager
    def lock_for(self, key: CacheKey) -> Iterator[None]:
        """Serialize computations of one key; the lock is dropped once nobody holds or waits on it."""
        with self._locks_guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _KeyLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[key]

    def active_lock_count(self) -> int:
        with self._locks_guard:
            return len(self._locks)

    def generation(self, teacher_id: str) -> Generation:
        with self._state_lock:
            return Generation(self._global_count, self._teacher_counts.get(teacher_id, 0))

    def get(
        self, key: CacheKey, policy_version: str, *, today: Optional[date] = None
    ) -> tuple[Optional[CompensationBreakdown], bool]:
        entry = self._store.get(key)
        if entry is None:
            return None, False
        if entry.policy_version != policy_version:
            logger.debug("Cache entry %s stale: policy %s != %s", key.as_string(), entry.policy_version, policy_version)
            return None, False
        today = today or today_local()
        if entry.computed_on != today and key.period_end >= entry.computed_on:
            logger.debug("Cache entry %s stale: computed on %s for an open period", key.as_string(), entry.computed_on)
            return None, False
        logger.debug("Cache hit %s", key.as_string())
        return entry.breakdown, True

    def put(
        self,
        key: CacheKey,
        breakdown: CompensationBreakdown,
        policy_version: str,
        *,
        today: Optional[date] = None,
        generation: Optional[Generation] = None,
    ) -> bool:
        """Store a breakdown; False when an invalidation happened after `generation` was taken."""
        entry = CacheEntry(breakdown=breakdown, policy_version=policy_version, computed_on=today or today_local())
        with self._state_lock:
            current = Generation(self._global_count, self._teacher_counts.get(key.teacher_id, 0))
            if generation is not None and generation != current:
                logger.debug("Not caching %s: invalidated while it was computed", key.as_string())
                return False
            self._store.set(key, entry)
        return True

    def invalidate_teacher(self, teacher_id: str) -> int:
        with self._state_lock:
            self._teacher_counts[teacher_id] = self._teacher_counts.get(teacher_id, 0) + 1
            removed = self._store.delete_teacher(teacher_id)
        logger.info("Invalidated %d cached result(s) for teacher %s", removed, teacher_id)
        return removed

    def invalidate_all(self) -> int:
        with self._state_lock:
            self._global_count += 1
            removed = self._store.clear()
        logger.info("Invalidated all cached results (%d)", removed)
        return removed
