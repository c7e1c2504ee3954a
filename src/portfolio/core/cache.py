"""HTTP caching for market data requests using requests-cache and Redis.

yfinance performs its HTTP calls through ``requests``; installing a global
requests-cache session keeps repeated price syncs within a short window from
hitting Yahoo Finance again. When Redis is unreachable the cache is skipped
and quotes are always fetched live.
"""

import logging
from datetime import timedelta
from typing import Any

import requests_cache
from redis import Redis
from redis.exceptions import RedisError
from requests_cache.backends.redis import RedisCache

from portfolio.core.config import settings

logger = logging.getLogger(__name__)

CACHE_NAMESPACE = "portfolio-quotes"

# Quotes feed end-of-day prices, so a few minutes of staleness is acceptable
CACHE_EXPIRATION = {
    "chart": timedelta(minutes=10),
    "quote": timedelta(minutes=10),
    "default": timedelta(hours=1),
}


def get_redis_connection() -> "Redis[Any] | None":
    """
    Open a Redis connection for the HTTP cache.

    Returns:
        Redis client instance, or None if Redis cannot be reached
    """
    try:
        redis_client: Redis[Any] = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=False,  # requests-cache stores binary payloads
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        redis_client.ping()
        logger.info(f"Connected to Redis at {settings.REDIS_URL}")
        return redis_client
    except RedisError as e:
        logger.warning(f"Failed to connect to Redis: {e}. Quote caching disabled.")
        return None


def configure_market_data_cache() -> bool:
    """
    Install requests-cache for yfinance HTTP requests with a Redis backend.

    Returns:
        True if the cache was installed, False if Redis is unavailable

    Note:
        Called once during application startup.
    """
    redis_conn = get_redis_connection()
    if redis_conn is None:
        return False

    backend = RedisCache(namespace=CACHE_NAMESPACE, connection=redis_conn)
    requests_cache.install_cache(
        backend=backend,
        urls_expire_after={
            "*/v8/finance/chart/*": CACHE_EXPIRATION["chart"],
            "*/v7/finance/quote*": CACHE_EXPIRATION["quote"],
            "*": CACHE_EXPIRATION["default"],
        },
        stale_if_error=True,
    )
    logger.info(f"Configured market data cache (chart TTL {CACHE_EXPIRATION['chart']})")
    return True


def get_cache_stats() -> dict[str, Any]:
    """
    Report whether the HTTP cache is active.

    Returns:
        Dictionary with ``enabled``, and the backend name and size when enabled
    """
    if not requests_cache.is_installed():
        return {"enabled": False}

    cache = requests_cache.get_cache()
    stats: dict[str, Any] = {"enabled": True, "backend": type(cache).__name__}
    try:
        stats["size"] = len(cache.responses)
    except RedisError as e:
        logger.warning(f"Could not read cache size: {e}")
        stats["size"] = "unavailable"
    return stats
