"""Shared async Redis connection behind the cache, rate limit and view-dedup store."""
import logging

from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from sitecms.config import settings

logger = logging.getLogger(__name__)

_redis: Redis | None = None


def redacted(url: str) -> str:
    """``url`` without the credentials part, safe for logs."""
    scheme, sep, rest = url.partition("://")
    if "@" in rest:
        rest = rest.rsplit("@", 1)[1]
    return f"{scheme}{sep}{rest}"


async def get_redis() -> Redis:
    """Connect on first use and verify with PING. Raises when Redis is unreachable."""
    global _redis
    if _redis is None:
        client = from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=settings.REDIS_CONNECT_TIMEOUT_SECONDS,
        )
        try:
            await client.ping()
        except (RedisError, OSError):
            logger.warning("Redis unavailable at %s, using the in-memory store", redacted(settings.REDIS_URL))
            await client.aclose()
            raise
        logger.info("Redis connected: %s", redacted(settings.REDIS_URL))
        _redis = client
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
