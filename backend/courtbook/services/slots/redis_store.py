# backend/courtbook/services/slots/redis_store.py
"""
Redis cache for base blocks.

Key format: blocks:day:{court_id}:{date}
Value: JSON list of [start, end, price_override].
Days without rules are not cached (NoAvailabilityRules is re-raised live).

Only rule-derived blocks are cached; reservations and blocked ranges
are always read live from the DB.
"""

import json
from datetime import date
from redis import Redis

from .config import BookingConfig, get_booking_config
from .intervals import TimeBlock


class BlocksRedisStore:
    """Redis storage wrapper for per-day base blocks."""

    KEY_PREFIX = "blocks:day"

    def __init__(self, redis: Redis, config: BookingConfig | None = None):
        self.redis = redis
        self.config = config or get_booking_config()

    def _key(self, court_id: int, dt: date) -> str:
        return f"{self.KEY_PREFIX}:{court_id}:{dt.isoformat()}"

    # ── Write ────────────────────────────────────────────────────────────

    def store_day_blocks(
        self,
        court_id: int,
        dt: date,
        blocks: list[TimeBlock],
    ) -> None:
        """Store base blocks for a day."""
        payload = json.dumps([[b.start, b.end, b.price_override] for b in blocks])
        self.redis.setex(self._key(court_id, dt), self.config.cache_ttl_seconds, payload)

    # ── Read ─────────────────────────────────────────────────────────────

    def get_day_blocks(self, court_id: int, dt: date) -> list[TimeBlock] | None:
        """Cached blocks, or None on cache miss."""
        raw = self.redis.get(self._key(court_id, dt))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        return [TimeBlock(start, end, price) for start, end, price in json.loads(raw)]

    # ── Delete ───────────────────────────────────────────────────────────

    def delete_day_blocks(
        self,
        court_id: int,
        dates: list[date] | None = None,
    ) -> int:
        """
        Delete cached blocks.

        Args:
            court_id: Court ID
            dates: Specific dates, or None to delete all for the court.

        Returns:
            Number of deleted keys.
        """
        if dates:
            keys = [self._key(court_id, dt) for dt in dates]
        else:
            pattern = f"{self.KEY_PREFIX}:{court_id}:*"
            keys = list(self.redis.scan_iter(match=pattern))

        if not keys:
            return 0

        return self.redis.delete(*keys)
