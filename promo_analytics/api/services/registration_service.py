"""Registration lookup for the admin dashboard."""

from __future__ import annotations

import logging
from dataclasses import asdict

from promo_analytics.shared.models import Registration
from promo_analytics.shared.repositories import RegistrationRepository

logger = logging.getLogger(__name__)

RECENT_LIMIT = 1000


def _matches_text(row: Registration, needle: str) -> bool:
    return any(needle in (value or "").lower() for value in (row.name, row.email, row.phone))


class RegistrationService:
    """Filter the most recent registrations in process."""

    def __init__(self, registration_repo: RegistrationRepository) -> None:
        self.registration_repo = registration_repo

    async def query_registrations(
        self,
        q: str | None = None,
        campaign_id: str | None = None,
        game_id: str | None = None,
    ) -> dict:
        """Newest 1000 registrations, then campaign, game and free-text filters.

        The text filter is a case-insensitive substring match against name,
        email or phone. Filters apply after the cap, so older matches beyond
        the newest 1000 rows are never returned.
        """
        needle = (q or "").strip().lower()
        campaign_id = (campaign_id or "").strip()
        game_id = (game_id or "").strip()

        rows = await self.registration_repo.list_recent(RECENT_LIMIT)

        if campaign_id:
            rows = [r for r in rows if (r.campaign_id or "") == campaign_id]
        if game_id:
            rows = [r for r in rows if (r.game_id or "") == game_id]
        if needle:
            rows = [r for r in rows if _matches_text(r, needle)]

        return {"rows": [asdict(r) for r in rows]}
