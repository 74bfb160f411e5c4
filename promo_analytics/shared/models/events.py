"""Data models for the events table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

EVENT_NAME_MAX_LENGTH = 80


@dataclass
class Event:
    """A stored campaign event record."""

    id: int
    received_at: datetime
    event_name: str
    client_ts: datetime | None = None
    campaign_id: str | None = None
    game_id: str | None = None
    session_id: str | None = None
    anonymous_user_id: str | None = None
    props: str = "{}"  # JSON text


@dataclass
class NewEvent:
    """A normalized event waiting to be inserted (no id / received_at yet)."""

    event_name: str
    client_ts: datetime | None = None
    campaign_id: str | None = None
    game_id: str | None = None
    session_id: str | None = None
    anonymous_user_id: str | None = None
    props: str = "{}"


@dataclass
class MetricEvent:
    """The two columns the stats aggregation reads from an event row."""

    event_name: str
    client_ts: datetime
