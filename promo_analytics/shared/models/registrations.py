"""Data models for the registrations table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Registration:
    """A lead submitted through the campaign registration form."""

    id: int
    created_at: datetime
    name: str
    email: str
    phone: str
    session_id: str | None = None
    campaign_id: str | None = None
    game_id: str | None = None
    score: int | None = None
    duration_ms: int | None = None


@dataclass
class NewRegistration:
    """A validated registration waiting to be inserted."""

    name: str
    email: str
    phone: str
    session_id: str | None = None
    campaign_id: str | None = None
    game_id: str | None = None
    score: int | None = None
    duration_ms: int | None = None
