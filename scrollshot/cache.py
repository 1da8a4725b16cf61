"""Geometry caches keyed by page URL.

All backends share the same async ``get`` / ``set`` / ``clear`` surface so
the analyzer can be handed whichever one the process wants.
"""

from __future__ import annotations

import json
import logging
import time

import redis.asyncio as redis

from .models import PageGeometry

log = logging.getLogger(__name__)

KEY_PREFIX = 'geometry:'
DEFAULT_TTL_SECONDS = 60
DEFAULT_MAX_ENTRIES = 256


class MemoryGeometryCache:
    """In-process TTL cache. *clock* returns seconds and is injectable for tests.

    Expired entries are swept on every ``set`` and at most *max_entries* are
    kept; the oldest entry is evicted first.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock=time.monotonic,
                 max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: dict[str, tuple[float, PageGeometry]] = {}

    async def get(self, url: str) -> PageGeometry | None:
        entry = self._entries.get(url)
        if entry is None:
            return None
        stored_at, geometry = entry
        if self._clock() - stored_at > self._ttl:
            self._entries.pop(url, None)
            return None
        return geometry

    async def set(self, url: str, geometry: PageGeometry) -> bool:
        now = self._clock()
        self._evict_expired(now)
        # Re-insert so dict order stays oldest-first.
        self._entries.pop(url, None)
        while len(self._entries) >= self._max_entries:
            del self._entries[next(iter(self._entries))]
        self._entries[url] = (now, geometry)
        return True

    def _evict_expired(self, now: float) -> None:
        expired = [url for url, (stored_at, _) in self._entries.items() if now - stored_at > self._ttl]
        for url in expired:
            del self._entries[url]

    async def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class NullGeometryCache:
    """Never stores anything; every lookup is a miss."""

    async def get(self, url: str) -> PageGeometry | None:
        return None

    async def set(self, url: str, geometry: PageGeometry) -> bool:
        return False

    async def clear(self) -> None:
        return None


class RedisGeometryCache:
    """Geometry snapshots shared between processes through Redis."""

    def __init__(self, client: redis.Redis, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        self._client = client
        self._ttl = ttl_seconds

    async def get(self, url: str) -> PageGeometry | None:
        """Return the cached geometry, or ``None`` on miss / error."""
        try:
            raw = await self._client.get(f'{KEY_PREFIX}{url}')
        except redis.RedisError:
            log.warning('Geometry cache get failed for %s', url, exc_info=True)
            return None
        if raw is None:
            return None
        try:
            return PageGeometry.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError):
            log.warning('Discarding unreadable cached geometry for %s', url, exc_info=True)
            return None

    async def set(self, url: str, geometry: PageGeometry) -> bool:
        """Store *geometry* with the TTL. Returns ``False`` on error."""
        try:
            await self._client.set(
                f'{KEY_PREFIX}{url}',
                json.dumps(geometry.to_dict()),
                ex=max(1, int(self._ttl)),
            )
            return True
        except redis.RedisError:
            log.warning('Geometry cache set failed for %s', url, exc_info=True)
            return False

    async def clear(self) -> None:
        try:
            async for key in self._client.scan_iter(match=f'{KEY_PREFIX}*'):
                await self._client.delete(key)
        except redis.RedisError:
            log.warning('Geometry cache clear failed', exc_info=True)


def create_geometry_cache(settings):
    """Pick a cache backend from *settings* (Redis when REDIS_URL is set)."""
    if settings.cache_ttl_seconds <= 0:
        return NullGeometryCache()
    if settings.redis_url:
        safe_url = settings.redis_url.split('@')[-1]
        log.info('Using Redis geometry cache at %s', safe_url)
        client = redis.from_url(settings.redis_url, decode_responses=True)
        return RedisGeometryCache(client, ttl_seconds=settings.cache_ttl_seconds)
    return MemoryGeometryCache(ttl_seconds=settings.cache_ttl_seconds)
