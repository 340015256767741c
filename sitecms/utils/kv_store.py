"""Key/value store shared by the response cache, rate limiter and view dedup.

Redis is the production backend. ``MemoryStore`` is the in-process fallback
used when Redis is unavailable or ``CACHE_BACKEND=memory`` (tests, local dev).
Both backends expose the same atomic primitives:

* ``add``  -- set-if-absent with expiry (view-count markers)
* ``incr`` -- increment that opens a fixed window on the first hit and
  reports the seconds left in it (rate limit counters)
* ``delete_prefix`` -- bulk eviction of every key under a prefix
"""
import logging
import math
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

from sitecms.config import settings
from sitecms.exceptions import StorageError
from sitecms.utils.redis_client import get_redis

logger = logging.getLogger(__name__)

_SCAN_BATCH = 500


class KeyValueStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl: int) -> None: ...

    async def add(self, key: str, ttl: int) -> bool: ...

    async def incr(self, key: str, window: int) -> tuple[int, int]: ...

    async def delete(self, *keys: str) -> int: ...

    async def delete_prefix(self, prefix: str) -> int: ...


@contextmanager
def _redis_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except RedisError as exc:
        logger.error("Redis %s failed: %s", operation, exc)
        raise StorageError("Cache store unavailable.") from exc


class RedisStore:
    def __init__(self, redis: Redis):
        self._redis = redis

    async def get(self, key: str) -> str | None:
        with _redis_errors("get"):
            return await self._redis.get(key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        with _redis_errors("set"):
            await self._redis.set(key, value, ex=ttl)

    async def add(self, key: str, ttl: int) -> bool:
        with _redis_errors("add"):
            return bool(await self._redis.set(key, "1", ex=ttl, nx=True))

    async def incr(self, key: str, window: int) -> tuple[int, int]:
        with _redis_errors("incr"):
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, window, nx=True)
                pipe.ttl(key)
                count, _, ttl = await pipe.execute()
        return int(count), int(ttl) if ttl and ttl > 0 else window

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        with _redis_errors("delete"):
            return int(await self._redis.delete(*keys))

    async def delete_prefix(self, prefix: str) -> int:
        deleted = 0
        batch: list[str] = []
        with _redis_errors("delete_prefix"):
            async for key in self._redis.scan_iter(match=f"{prefix}*", count=_SCAN_BATCH):
                batch.append(key)
                if len(batch) >= _SCAN_BATCH:
                    deleted += await self._redis.delete(*batch)
                    batch = []
            if batch:
                deleted += await self._redis.delete(*batch)
        return deleted


class MemoryStore:
    """In-process store. Operations never await, so each is atomic on the event loop."""

    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_interval: float = 60.0):
        self._clock = clock
        self._data: dict[str, tuple[str, float]] = {}
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval

    def __len__(self) -> int:
        return len(self._data)

    def _sweep(self) -> None:
        """Drop every expired key, at most once per sweep interval."""
        now = self._clock()
        if now < self._next_sweep:
            return
        self._next_sweep = now + self._sweep_interval
        expired = [key for key, (_, expires_at) in self._data.items() if expires_at <= now]
        for key in expired:
            del self._data[key]

    def _live(self, key: str) -> tuple[str, float] | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry[1] <= self._clock():
            del self._data[key]
            return None
        return entry

    async def get(self, key: str) -> str | None:
        entry = self._live(key)
        return entry[0] if entry else None

    async def set(self, key: str, value: str, ttl: int) -> None:
        self._sweep()
        self._data[key] = (value, self._clock() + ttl)

    async def add(self, key: str, ttl: int) -> bool:
        self._sweep()
        if self._live(key) is not None:
            return False
        self._data[key] = ("1", self._clock() + ttl)
        return True

    async def incr(self, key: str, window: int) -> tuple[int, int]:
        self._sweep()
        now = self._clock()
        entry = self._live(key)
        if entry is None:
            self._data[key] = ("1", now + window)
            return 1, window
        count = int(entry[0]) + 1
        self._data[key] = (str(count), entry[1])
        return count, max(1, math.ceil(entry[1] - now))

    async def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self._data.pop(key, None) is not None)

    async def delete_prefix(self, prefix: str) -> int:
        keys = [key for key in self._data if key.startswith(prefix)]
        for key in keys:
            del self._data[key]
        return len(keys)


_store: KeyValueStore | None = None


async def get_store() -> KeyValueStore:
    """Return the process-wide store, connecting to Redis on first use."""
    global _store
    if _store is None:
        if settings.CACHE_BACKEND == "memory":
            _store = MemoryStore()
        else:
            try:
                _store = RedisStore(await get_redis())
            except (RedisError, OSError, ValueError) as exc:
                logger.warning("Redis unavailable (%s), using in-process store", exc)
                _store = MemoryStore()
    return _store


def set_store(store: KeyValueStore | None) -> None:
    """Replace the process-wide store (tests, shutdown)."""
    global _store
    _store = store
