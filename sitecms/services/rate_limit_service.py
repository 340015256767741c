"""Fixed-window request quotas per (action, requester IP)."""
from sitecms.config import settings
from sitecms.exceptions import RateLimitExceeded
from sitecms.utils.kv_store import get_store

LIMITS: dict[str, int] = {
    "contact": settings.RATE_LIMIT_CONTACT,
    "faq_vote": settings.RATE_LIMIT_FAQ_VOTE,
    "faq_read": settings.RATE_LIMIT_FAQ_READ,
    "resource_read": settings.RATE_LIMIT_RESOURCE_READ,
    "resource_lookup": settings.RATE_LIMIT_RESOURCE_LOOKUP,
    "share": settings.RATE_LIMIT_SHARE,
    "category_read": settings.RATE_LIMIT_CATEGORY_READ,
}


def limit_for(action: str) -> int:
    return LIMITS.get(action, settings.RATE_LIMIT_DEFAULT)


async def hit(action: str, identifier: str) -> int:
    """Count one request. Returns the remaining quota or raises RateLimitExceeded."""
    limit = limit_for(action)
    store = await get_store()
    count, seconds_left = await store.incr(
        f"ratelimit:{action}:{identifier}", settings.RATE_LIMIT_WINDOW_SECONDS
    )
    if count > limit:
        raise RateLimitExceeded(retry_after=seconds_left)
    return limit - count
