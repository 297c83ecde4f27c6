# backend/salon_booking/redis_client.py
"""
Redis client construction.

The client is built lazily and handed to routers through the ``get_redis``
dependency so tests (or deployments without redis) can swap it out.
"""

from functools import lru_cache

from redis import Redis

from .config import settings


@lru_cache
def build_redis_client() -> Redis:
    return Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=2.0,
    )


def get_redis() -> Redis | None:
    """FastAPI dependency. None when caching is switched off."""
    if not settings.redis_cache_enabled:
        return None
    return build_redis_client()
