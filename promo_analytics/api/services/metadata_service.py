"""Metadata service: filter dimensions for the dashboard."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from promo_analytics.shared.cache import _MISSING, AsyncTTLCache
from promo_analytics.shared.repositories import EventRepository

logger = logging.getLogger(__name__)

DEFAULT_META_CACHE_TTL = 60.0

_DIMENSIONS_KEY = "dimensions"

# Dimensions change only when new events arrive; ingestion invalidates this
_dimensions_cache = AsyncTTLCache(maxsize=4, ttl=DEFAULT_META_CACHE_TTL)


def configure_dimensions_cache(
    ttl: float = DEFAULT_META_CACHE_TTL,
    timer: Callable[[], float] = time.monotonic,
) -> None:
    """Replace the dimensions cache (and drop anything it held)."""
    global _dimensions_cache
    _dimensions_cache = AsyncTTLCache(maxsize=4, ttl=ttl, timer=timer)
    logger.debug(f"Dimensions cache TTL set to {ttl}s")


def invalidate_dimensions() -> None:
    _dimensions_cache.invalidate(_DIMENSIONS_KEY)


class MetadataService:
    """Distinct campaign and game ids seen in events.

    Registrations are not a source: a campaign that only ever received
    registrations does not appear in the filters.
    """

    def __init__(self, event_repo: EventRepository) -> None:
        self.event_repo = event_repo

    async def list_dimensions(self) -> dict:
        cached = _dimensions_cache.get(_DIMENSIONS_KEY)
        if cached is not _MISSING:
            return cached

        result = {
            "campaigns": await self.event_repo.list_campaigns(),
            "games": await self.event_repo.list_games(),
        }
        _dimensions_cache.set(_DIMENSIONS_KEY, result)
        logger.debug(
            f"Dimensions refreshed: {len(result['campaigns'])} campaigns, "
            f"{len(result['games'])} games"
        )
        return result
