import json
import threading
from datetime import date
from decimal import Decimal

from src.compensation_engine.compensation_engine.cache.model import CacheKey
from src.compensation_engine.compensation_engine.cache.service import ResultCache
from src.compensation_engine.compensation_engine.cache.store import InMemoryCacheStore, RedisCacheStore
from src.compensation_engine.compensation_engine.core.enums import ProrationMode
from src.compensation_engine.compensation_engine.payroll.model import CompensationBreakdown

KEY = CacheKey(teacher_id="T1", period_start=date(2024, 9, 1), period_end=date(2024, 9, 30))


def _breakdown(teacher_id="T1", net="100.00"):
    return CompensationBreakdown(
        teacher_id=teacher_id,
        teacher_name="Abebe",
        period_start=date(2024, 9, 1),
        period_end=date(2024, 9, 30),
        policy_version="v1",
        proration_mode=ProrationMode.PERIOD,
        working_days=25,
        base_salary=Decimal(net),
        lateness_deduction_total=Decimal("0"),
        absence_deduction_total=Decimal("0"),
        bonus_total=Decimal("0"),
        net_salary=Decimal(net),
        number_of_students=1,
        teaching_day_count=1,
    )


def test_miss_then_hit():
    cache = ResultCache()
    today = date(2024, 10, 1)

    assert cache.get(KEY, "v1", today=today) == (None, False)
    cache.put(KEY, _breakdown(), "v1", today=today)

    breakdown, hit = cache.get(KEY, "v1", today=today)
    assert hit
    assert breakdown == _breakdown()


def test_other_policy_version_is_a_miss():
    cache = ResultCache()
    cache.put(KEY, _breakdown(), "v1", today=date(2024, 10, 1))

    assert cache.get(KEY, "v2", today=date(2024, 10, 1)) == (None, False)


def test_open_period_entry_expires_the_next_day():
    cache = ResultCache()
    cache.put(KEY, _breakdown(), "v1", today=date(2024, 9, 15))

    assert cache.get(KEY, "v1", today=date(2024, 9, 15))[1]
    assert not cache.get(KEY, "v1", today=date(2024, 9, 16))[1]


def test_closed_period_entry_stays_valid_on_later_days():
    cache = ResultCache()
    cache.put(KEY, _breakdown(), "v1", today=date(2024, 10, 1))

    assert cache.get(KEY, "v1", today=date(2024, 11, 5))[1]


def test_invalidate_teacher_only_drops_that_teacher():
    store = InMemoryCacheStore()
    cache = ResultCache(store)
    other = CacheKey(teacher_id="T2", period_start=KEY.period_start, period_end=KEY.period_end)
    cache.put(KEY, _breakdown(), "v1")
    cache.put(other, _breakdown("T2"), "v1")

    assert cache.invalidate_teacher("T1") == 1
    assert store.get(KEY) is None
    assert store.get(other) is not None
    assert cache.invalidate_all() == 1
    assert len(store) == 0


def test_lock_entries_are_dropped_once_released():
    cache = ResultCache()
    other = CacheKey(teacher_id="T2", period_start=KEY.period_start, period_end=KEY.period_end)

    with cache.lock_for(KEY):
        with cache.lock_for(other):
            assert cache.active_lock_count() == 2
        assert cache.active_lock_count() == 1

    assert cache.active_lock_count() == 0


def test_put_is_dropped_after_teacher_invalidation():
    cache = ResultCache()
    generation = cache.generation("T1")

    cache.invalidate_teacher("T1")

    assert not cache.put(KEY, _breakdown(), "v1", today=date(2024, 10, 1), generation=generation)
    assert cache.get(KEY, "v1", today=date(2024, 10, 1)) == (None, False)


def test_put_is_dropped_after_global_invalidation():
    cache = ResultCache()
    generation = cache.generation("T1")

    cache.invalidate_all()

    assert not cache.put(KEY, _breakdown(), "v1", today=date(2024, 10, 1), generation=generation)


def test_other_teacher_invalidation_does_not_block_put():
    cache = ResultCache()
    generation = cache.generation("T1")

    cache.invalidate_teacher("T2")

    assert cache.put(KEY, _breakdown(), "v1", today=date(2024, 10, 1), generation=generation)
    assert cache.get(KEY, "v1", today=date(2024, 10, 1))[1]


def test_concurrent_callers_compute_once():
    cache = ResultCache()
    computed = []
    barrier = threading.Barrier(4)

    def worker():
        barrier.wait()
        with cache.lock_for(KEY):
            _, hit = cache.get(KEY, "v1", today=date(2024, 10, 1))
            if not hit:
                computed.append(1)
                cache.put(KEY, _breakdown(), "v1", today=date(2024, 10, 1))

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert computed == [1]
    assert cache.active_lock_count() == 0


class FakeRedis:
    """Just enough of the redis-py client for the cache store."""

    def __init__(self):
        self.values = {}
        self.sets = {}

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value):
        self.values[key] = value

    def setex(self, key, ttl, value):
        self.values[key] = value

    def sadd(self, key, member):
        self.sets.setdefault(key, set()).add(member)

    def smembers(self, key):
        return set(self.sets.get(key, set()))

    def delete(self, *keys):
        removed = 0
        for k in keys:
            removed += int(self.values.pop(k, None) is not None or self.sets.pop(k, None) is not None)
        return removed

    def scan_iter(self, match):
        prefix = match.rstrip("*")
        return [k for k in list(self.values) + list(self.sets) if k.startswith(prefix)]

    def pipeline(self):
        client = self

        class _Pipe:
            def __init__(self):
                self.ops = []

            def __getattr__(self, name):
                return lambda *args: self.ops.append((name, args))

            def execute(self):
                for name, args in self.ops:
                    getattr(client, name)(*args)

        return _Pipe()


def test_redis_store_round_trips_json_entries():
    client = FakeRedis()
    cache = ResultCache(RedisCacheStore(client, prefix="test:", ttl_seconds=60))

    cache.put(KEY, _breakdown(), "v1", today=date(2024, 10, 1))

    raw = json.loads(client.values["test:entry:T1:2024-09-01:2024-09-30"])
    assert raw["policy_version"] == "v1"
    assert raw["breakdown"]["net_salary"] == "100.00"
    assert cache.get(KEY, "v1", today=date(2024, 10, 1)) == (_breakdown(), True)


def test_redis_store_invalidation_uses_teacher_index():
    client = FakeRedis()
    cache = ResultCache(RedisCacheStore(client, prefix="test:"))
    cache.put(KEY, _breakdown(), "v1")

    assert cache.invalidate_teacher("T1") == 1
    assert cache.get(KEY, "v1") == (None, False)
    assert client.sets == {}


def test_redis_store_ignores_corrupt_payloads():
    client = FakeRedis()
    client.values["test:entry:T1:2024-09-01:2024-09-30"] = "{not json"
    cache = ResultCache(RedisCacheStore(client, prefix="test:"))

    assert cache.get(KEY, "v1") == (None, False)
