"""Read-through response cache with prefix invalidation.

Keys:
    cache:<entity>:list:<endpoint>:<sha1 of canonical params>
    cache:<entity>:detail:<slug>
    cache:<entity>:stats
"""
import hashlib
import json
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.config import settings
from sitecms.utils.kv_store import get_store

logger = structlog.get_logger()

# Entities whose cached payloads embed data owned by another entity.
DEPENDENTS: dict[str, tuple[str, ...]] = {
    "resource": ("resource_category",),
    "resource_category": ("resource",),
    "faq": ("faq_category",),
    "faq_category": ("faq",),
}


def canonical_params(params: Mapping[str, Any]) -> str:
    return json.dumps(dict(params), sort_keys=True, separators=(",", ":"), default=str)


def list_key(entity: str, endpoint: str, params: Mapping[str, Any]) -> str:
    digest = hashlib.sha1(canonical_params(params).encode("utf-8")).hexdigest()
    return f"cache:{entity}:list:{endpoint}:{digest}"


def detail_key(entity: str, slug: str) -> str:
    return f"cache:{entity}:detail:{slug}"


def stats_key(entity: str) -> str:
    return f"cache:{entity}:stats"


async def remember(key: str, loader: Callable[[], Awaitable[Any]], ttl: int | None = None) -> Any:
    """Return the cached JSON value for ``key`` or run ``loader`` and store its result."""
    store = await get_store()
    cached = await store.get(key)
    if cached is not None:
        return json.loads(cached)
    value = await loader()
    await store.set(key, json.dumps(value, default=str), ttl or settings.CACHE_TTL_SECONDS)
    return value


async def invalidate(entity: str) -> int:
    """Evict every key of ``entity`` and of the entities that embed it."""
    store = await get_store()
    deleted = 0
    for name in (entity, *DEPENDENTS.get(entity, ())):
        deleted += await store.delete_prefix(f"cache:{name}:")
    logger.debug("cache_invalidated", entity=entity, keys=deleted)
    return deleted


async def commit_and_invalidate(db: AsyncSession, entity: str) -> None:
    """Commit, then evict the keys of ``entity``."""
    await db.commit()
    await invalidate(entity)
