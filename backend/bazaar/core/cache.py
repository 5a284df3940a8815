"""Time-boxed snapshot caches for the normalized marketplace feed.

Both implementations share the same async contract so the feed can be wired
to a process-local cache in development and to redis when several workers
should share one snapshot.
"""

import logging
import time
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from pydantic import TypeAdapter, ValidationError
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from bazaar.schemas.listing import Listing

logger = logging.getLogger(__name__)

_LISTINGS = TypeAdapter(List[Listing])


class SnapshotCache(Protocol):
    async def get(self, key: str) -> Optional[List[Listing]]:
        ...

    async def set(self, key: str, listings: Sequence[Listing]) -> None:
        ...

    async def invalidate(self, key: str) -> None:
        ...


class MemorySnapshotCache:
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, List[Listing]]] = {}

    async def get(self, key: str) -> Optional[List[Listing]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, listings = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return None
        return list(listings)

    async def set(self, key: str, listings: Sequence[Listing]) -> None:
        self._entries[key] = (self._clock(), list(listings))

    async def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)


class RedisSnapshotCache:
    """Shared snapshot cache; an unreachable redis behaves like an empty cache."""

    def __init__(self, client: aioredis.Redis, ttl_seconds: int) -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int) -> "RedisSnapshotCache":
        return cls(aioredis.Redis.from_url(url), ttl_seconds)

    async def get(self, key: str) -> Optional[List[Listing]]:
        try:
            raw = await self.client.get(key)
        except RedisError:
            logger.warning("Snapshot cache read failed for %s", key, exc_info=True)
            return None
        if raw is None:
            return None
        try:
            return _LISTINGS.validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable snapshot under %s", key)
            await self.invalidate(key)
            return None

    async def set(self, key: str, listings: Sequence[Listing]) -> None:
        try:
            await self.client.set(key, _LISTINGS.dump_json(list(listings)), ex=self.ttl_seconds)
        except RedisError:
            logger.warning("Snapshot cache write failed for %s", key, exc_info=True)

    async def invalidate(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except RedisError:
            logger.warning("Snapshot cache invalidation failed for %s", key, exc_info=True)
