# backend/courtbook/services/slots/invalidator.py
"""
Cache invalidation for court base blocks.

Triggers:
✓ Availability rule created/updated/deactivated → invalidate all dates
✓ Rules seeded from opening hours → invalidate all dates

Does NOT trigger:
✗ Reservation created/confirmed/rejected/expired (read live)
✗ Blocked range created/deleted (read live)
"""

import logging
from redis import Redis

from .redis_store import BlocksRedisStore

logger = logging.getLogger(__name__)


def invalidate_court_cache(redis: Redis | None, court_id: int) -> int:
    """
    Drop every cached day for a court.

    Returns:
        Number of deleted cache keys (0 when caching is off)
    """
    if redis is None:
        return 0
    try:
        return BlocksRedisStore(redis).delete_day_blocks(court_id)
    except Exception as e:
        # entries still expire by TTL
        logger.error(f"Failed to invalidate blocks cache for court={court_id}: {e}")
        return 0
