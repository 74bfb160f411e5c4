"""In-process TTL cache for slow-changing read results.

Uses cachetools.TTLCache, one instance per caller, no cross-process
sharing. Misses always go to the store; there is no stale fallback, so a
store failure surfaces to the caller.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from cachetools import TTLCache  # type: ignore[import-untyped]

# Sentinel object to distinguish "not in cache" from cached None values
_MISSING = object()


class AsyncTTLCache:
    """TTL cache used from coroutines running on one event loop."""

    def __init__(
        self,
        maxsize: int = 128,
        ttl: float = 60.0,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)

    def get(self, key: str) -> Any:
        """Return fresh value or ``_MISSING``."""
        return self._cache.get(key, _MISSING)

    def set(self, key: str, value: Any) -> None:
        self._cache[key] = value

    def invalidate(self, key: str) -> None:
        self._cache.pop(key, None)
