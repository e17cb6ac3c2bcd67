import fnmatch

from courtbook.services import rules
from courtbook.services.slots.availability import get_base_blocks, get_day_availability
from courtbook.services.slots.intervals import TimeBlock
from courtbook.services.slots.invalidator import invalidate_court_cache
from courtbook.services.slots.redis_store import BlocksRedisStore

from .conftest import MONDAY, NOW


class MemoryRedis:
    """The handful of Redis commands the blocks cache uses."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl

    def get(self, key):
        return self.data.get(key)

    def scan_iter(self, match):
        return [k for k in list(self.data) if fnmatch.fnmatch(k, match)]

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed


class BrokenRedis:
    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise ConnectionError("redis down")
        return fail


def test_store_round_trips_price_override():
    store = BlocksRedisStore(MemoryRedis())
    blocks = [TimeBlock(540, 570), TimeBlock(570, 600, 35.0)]

    store.store_day_blocks(7, MONDAY, blocks)

    assert store.get_day_blocks(7, MONDAY) == blocks
    assert store.redis.ttls["blocks:day:7:2026-03-02"] == 86400
    assert store.get_day_blocks(7, NOW.date()) is None


def test_base_blocks_served_from_cache_after_first_read(db, court):
    redis = MemoryRedis()
    first = get_base_blocks(db, court.id, MONDAY, redis=redis)
    assert list(redis.data) == [f"blocks:day:{court.id}:2026-03-02"]

    # a stale entry wins until something invalidates it
    BlocksRedisStore(redis).store_day_blocks(court.id, MONDAY, first[:2])
    assert get_base_blocks(db, court.id, MONDAY, redis=redis) == first[:2]


def test_rule_change_invalidates_cached_days(db, court):
    redis = MemoryRedis()
    get_base_blocks(db, court.id, MONDAY, redis=redis)

    rules.create_rule(db, court.id, day_of_week=1, start_time=1080, end_time=1200, redis=redis)

    assert redis.data == {}
    assert len(get_base_blocks(db, court.id, MONDAY, redis=redis)) == 22


def test_invalidation_only_touches_one_court(court):
    redis = MemoryRedis()
    store = BlocksRedisStore(redis)
    store.store_day_blocks(1, MONDAY, [TimeBlock(540, 570)])
    store.store_day_blocks(2, MONDAY, [TimeBlock(540, 570)])

    assert invalidate_court_cache(redis, 1) == 1
    assert list(redis.data) == ["blocks:day:2:2026-03-02"]
    assert invalidate_court_cache(None, 2) == 0


def test_redis_outage_falls_back_to_live_rules(db, court):
    broken = BrokenRedis()

    body = get_day_availability(db, court.id, MONDAY, NOW, redis=broken)

    assert body["metadata"]["base_block_count"] == 18
    assert invalidate_court_cache(broken, court.id) == 0
