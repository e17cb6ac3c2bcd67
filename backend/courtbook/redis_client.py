# backend/courtbook/redis_client.py

from redis import Redis

from .config import settings

redis_client = Redis.from_url(settings.redis_url, decode_responses=True)


def get_redis() -> Redis | None:
    """Redis dependency for the base-block cache (None disables caching)."""
    if not settings.cache_blocks:
        return None
    return redis_client
