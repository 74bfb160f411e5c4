"""Stats service: daily-bucketed funnel metrics and conversion rates.

Events count by the UTC day of their client timestamp, registrations by
the UTC day of their server creation time. The series always covers the
full trailing window ending today, zero-filled where nothing happened.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone

from promo_analytics.shared.repositories import EventRepository, RegistrationRepository

logger = logging.getLogger(__name__)

MIN_DAYS = 1
MAX_DAYS = 365
DEFAULT_DAYS = 28

# event_name -> bucket field; every other event name is ignored for metrics
EVENT_METRICS: dict[str, str] = {
    "game_start": "starts",
    "win": "wins",
    "banner_view": "views",
    "page_view": "views",
}

METRIC_FIELDS = ("views", "starts", "wins", "regs")

FUNNEL_STAGES = (
    ("Views", "views"),
    ("Starts", "starts"),
    ("Wins", "wins"),
    ("Registrations", "regs"),
)


def clamp_days(days: int) -> int:
    """Clamp a window length into [MIN_DAYS, MAX_DAYS]."""
    return max(MIN_DAYS, min(MAX_DAYS, int(days)))


def day_key(ts: datetime) -> str:
    """UTC calendar date of ``ts`` as ``YYYY-MM-DD``. Naive values are taken as UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).date().isoformat()


def safe_rate(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator else 0.0


def empty_bucket(key: str) -> dict:
    return {"date": key, "starts": 0, "wins": 0, "views": 0, "regs": 0}


def window_days(days: int, today: date) -> list[str]:
    """The ``days`` consecutive UTC dates ending at ``today``, oldest first."""
    return [(today - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]


def build_stats(
    events: Iterable[tuple[str, datetime]],
    registrations: Iterable[datetime],
    days: int,
    today: date,
) -> dict:
    """Bucket already-windowed rows by UTC day and derive totals, rates and funnel.

    ``events`` yields ``(event_name, client_ts)`` pairs, ``registrations``
    yields creation timestamps. Totals are summed from the emitted series
    so they always equal the series sums.
    """
    by_day: dict[str, dict] = {}

    for event_name, client_ts in events:
        field = EVENT_METRICS.get(event_name)
        if field is None:
            continue
        key = day_key(client_ts)
        by_day.setdefault(key, empty_bucket(key))[field] += 1

    for created_at in registrations:
        key = day_key(created_at)
        by_day.setdefault(key, empty_bucket(key))["regs"] += 1

    series = [by_day.get(key) or empty_bucket(key) for key in window_days(days, today)]

    totals = {name: sum(bucket[name] for bucket in series) for name in METRIC_FIELDS}

    rates = {
        "winRate": safe_rate(totals["wins"], totals["starts"]),
        "regRateFromStarts": safe_rate(totals["regs"], totals["starts"]),
        "regRateFromWins": safe_rate(totals["regs"], totals["wins"]),
    }

    funnel = [{"label": label, "value": totals[name]} for label, name in FUNNEL_STAGES]

    return {"totals": totals, "rates": rates, "series": series, "funnel": funnel}


class StatsService:
    """Read-only aggregation over the event store."""

    def __init__(
        self,
        event_repo: EventRepository,
        registration_repo: RegistrationRepository,
    ) -> None:
        self.event_repo = event_repo
        self.registration_repo = registration_repo

    async def compute_stats(
        self,
        days: int = DEFAULT_DAYS,
        campaign_id: str | None = None,
        game_id: str | None = None,
        now: datetime | None = None,
    ) -> dict:
        """Compute totals, rates, the daily series and the funnel for a trailing window.

        Args:
            days: Window length in days, clamped into [1, 365]
            campaign_id: Exact-match campaign filter (empty means no filter)
            game_id: Exact-match game filter (empty means no filter)
            now: Reference time, defaults to the current UTC time
        """
        days = clamp_days(days)
        now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
        since = now - timedelta(days=days)
        campaign_id = campaign_id or None
        game_id = game_id or None

        events = await self.event_repo.list_metric_events(
            since, EVENT_METRICS.keys(), campaign_id=campaign_id, game_id=game_id
        )
        registrations = await self.registration_repo.list_created_since(
            since, campaign_id=campaign_id, game_id=game_id
        )

        logger.debug(
            f"Stats window days={days} campaign={campaign_id} game={game_id}: "
            f"{len(events)} events, {len(registrations)} registrations"
        )

        return build_stats(
            ((e.event_name, e.client_ts) for e in events),
            registrations,
            days,
            now.date(),
        )
