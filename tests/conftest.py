"""Shared fixtures: in-memory repositories that honour the SQL repositories' contract."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

import pytest

from promo_analytics.api.services import metadata_service
from promo_analytics.shared.errors import StoreError
from promo_analytics.shared.models import (
    Event,
    MetricEvent,
    NewEvent,
    NewRegistration,
    Registration,
)


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class InMemoryEventRepository:
    """Mirrors EventRepository; ``fail_next_insert`` simulates an aborted transaction."""

    def __init__(self) -> None:
        self.events: list[Event] = []
        self.fail_next_insert = False

    async def insert_events(self, received_at: datetime, events: Sequence[NewEvent]) -> int:
        if self.fail_next_insert:
            self.fail_next_insert = False
            raise StoreError("Failed to store events: ConnectionDoesNotExistError")
        start = len(self.events)
        self.events.extend(
            Event(id=start + i + 1, received_at=received_at, **vars(e))
            for i, e in enumerate(events)
        )
        return len(events)

    async def list_metric_events(
        self,
        since: datetime,
        event_names: Iterable[str],
        campaign_id: str | None = None,
        game_id: str | None = None,
    ) -> list[MetricEvent]:
        names = set(event_names)
        return [
            MetricEvent(event_name=e.event_name, client_ts=e.client_ts)
            for e in self.events
            if e.client_ts is not None
            and e.client_ts >= since
            and e.event_name in names
            and (campaign_id is None or e.campaign_id == campaign_id)
            and (game_id is None or e.game_id == game_id)
        ]

    async def list_campaigns(self) -> list[str]:
        return sorted({e.campaign_id for e in self.events if e.campaign_id})

    async def list_games(self) -> list[str]:
        return sorted({e.game_id for e in self.events if e.game_id})

    def add(self, event_name: str, client_ts: datetime | None = None, **tags: str | None) -> None:
        self.events.append(
            Event(
                id=len(self.events) + 1,
                received_at=datetime.now(timezone.utc),
                event_name=event_name,
                client_ts=client_ts,
                **tags,
            )
        )


class InMemoryRegistrationRepository:
    """Mirrors RegistrationRepository."""

    def __init__(self) -> None:
        self.rows: list[Registration] = []
        self.fail = False

    async def create(self, created_at: datetime, entry: NewRegistration) -> Registration:
        if self.fail:
            raise StoreError("Failed to store registration: PostgresConnectionError")
        row = Registration(id=len(self.rows) + 1, created_at=created_at, **vars(entry))
        self.rows.append(row)
        return row

    async def list_recent(self, limit: int = 1000) -> list[Registration]:
        ordered = sorted(self.rows, key=lambda r: (r.created_at, r.id), reverse=True)
        return ordered[:limit]

    async def list_created_since(
        self,
        since: datetime,
        campaign_id: str | None = None,
        game_id: str | None = None,
    ) -> list[datetime]:
        return [
            r.created_at
            for r in self.rows
            if r.created_at >= since
            and (campaign_id is None or r.campaign_id == campaign_id)
            and (game_id is None or r.game_id == game_id)
        ]

    def add(
        self,
        created_at: datetime,
        name: str = "Jane Doe",
        email: str = "jane@example.com",
        phone: str = "5551234",
        **extra,
    ) -> Registration:
        row = Registration(
            id=len(self.rows) + 1,
            created_at=created_at,
            name=name,
            email=email,
            phone=phone,
            **extra,
        )
        self.rows.append(row)
        return row


@pytest.fixture()
def event_repo() -> InMemoryEventRepository:
    return InMemoryEventRepository()


@pytest.fixture()
def registration_repo() -> InMemoryRegistrationRepository:
    return InMemoryRegistrationRepository()


@pytest.fixture(autouse=True)
def _reset_dimensions_cache():
    metadata_service.configure_dimensions_cache()
    yield
    metadata_service.configure_dimensions_cache()
