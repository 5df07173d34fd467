"""Small in-process TTL cache for rarely changing lookups."""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional


class TTLCache:
    def __init__(self) -> None:
        # key -> (value, expires_at)
        self._store: Dict[str, tuple[Any, float]] = {}
        self._lock = asyncio.Lock()

    def _live_value(self, key: str, now: float) -> Optional[Any]:
        item = self._store.get(key)
        if not item:
            return None
        value, exp = item
        if exp and exp < now:
            self._store.pop(key, None)
            return None
        return value

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl_seconds: int,
    ) -> Any:
        """Return the cached value for ``key`` or await ``loader`` and cache it.

        The lock is held across the load so concurrent misses share one lookup.
        """

        async with self._lock:
            now = time.time()
            cached = self._live_value(key, now)
            if cached is not None:
                return cached
            value = await loader()
            if value is not None and ttl_seconds > 0:
                self._store[key] = (value, now + int(ttl_seconds))
            return value

    async def invalidate(self, key: str) -> bool:
        async with self._lock:
            return self._store.pop(key, None) is not None


cache = TTLCache()
