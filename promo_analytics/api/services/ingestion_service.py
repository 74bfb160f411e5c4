"""Ingestion service: validates and stores event batches and registrations."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from promo_analytics.api.services.metadata_service import invalidate_dimensions
from promo_analytics.shared.errors import ValidationError
from promo_analytics.shared.models import EVENT_NAME_MAX_LENGTH, NewEvent, NewRegistration
from promo_analytics.shared.repositories import EventRepository, RegistrationRepository

logger = logging.getLogger(__name__)

DEFAULT_MAX_BATCH_SIZE = 500

REQUIRED_REGISTRATION_FIELDS = ("name", "email", "phone")

# score / duration_ms are BIGINT columns
BIGINT_MIN = -(2**63)
BIGINT_MAX = 2**63 - 1


def parse_client_ts(value: Any) -> datetime | None:
    """Parse a client ISO-8601 timestamp best-effort; unparseable values become None.

    ``Z`` suffixes are accepted and naive values are taken as UTC.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        ts = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def clean_text(value: Any) -> str:
    """``str()`` the value and drop NUL characters, which Postgres text cannot hold."""
    return str(value).replace("\x00", "")


def _optional_str(value: Any) -> str | None:
    """Empty / missing tags are stored as NULL."""
    if value is None:
        return None
    return clean_text(value) or None


def _finite_int(value: Any) -> int | None:
    """Keep finite numbers that fit a BIGINT (bools are not numbers here)."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    number = int(value)
    if not BIGINT_MIN <= number <= BIGINT_MAX:
        return None
    return number


def normalize_event(raw: Any) -> NewEvent | None:
    """Turn one raw client event into a storable row, or None when it has no name."""
    if not isinstance(raw, Mapping) or not raw.get("event_name"):
        return None
    event_name = clean_text(raw["event_name"])[:EVENT_NAME_MAX_LENGTH]
    if not event_name:
        return None
    props = raw.get("props") or {}
    return NewEvent(
        event_name=event_name,
        client_ts=parse_client_ts(raw.get("client_ts")),
        campaign_id=_optional_str(raw.get("campaign_id")),
        game_id=_optional_str(raw.get("game_id")),
        session_id=_optional_str(raw.get("session_id")),
        anonymous_user_id=_optional_str(raw.get("anonymous_user_id")),
        # json.dumps escapes NUL as \u0000, so props text never carries a raw NUL
        props=json.dumps(props, default=str),
    )


class IngestionService:
    """Write-side operations for events and registrations."""

    def __init__(
        self,
        event_repo: EventRepository,
        registration_repo: RegistrationRepository,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
    ) -> None:
        self.event_repo = event_repo
        self.registration_repo = registration_repo
        self.max_batch_size = max_batch_size

    async def ingest_events(self, batch: Any) -> dict:
        """Store a batch of raw events atomically.

        Elements without an ``event_name`` are dropped. ``accepted`` reports
        the length of the submitted batch, not the number of stored rows.

        Raises:
            ValidationError: batch is not a list or exceeds ``max_batch_size``
            StoreError: the transaction failed; nothing from the batch is stored
        """
        if not isinstance(batch, list) or len(batch) > self.max_batch_size:
            raise ValidationError("Invalid events batch")

        rows = [row for row in (normalize_event(raw) for raw in batch) if row is not None]
        dropped = len(batch) - len(rows)

        stored = await self.event_repo.insert_events(datetime.now(timezone.utc), rows)
        if stored:
            invalidate_dimensions()

        if dropped:
            logger.debug(f"Dropped {dropped} event(s) without event_name")
        logger.info(f"Ingested {stored}/{len(batch)} event(s)")
        return {"accepted": len(batch)}

    async def register_entry(self, fields: Mapping[str, Any]) -> dict:
        """Store one registration.

        Raises:
            ValidationError: name, email or phone is missing or empty
            StoreError: the insert failed
        """
        contact = {
            name: clean_text(fields[name]) if fields.get(name) else ""
            for name in REQUIRED_REGISTRATION_FIELDS
        }
        if not all(contact.values()):
            raise ValidationError("Missing fields")

        entry = NewRegistration(
            **contact,
            session_id=_optional_str(fields.get("session_id")),
            campaign_id=_optional_str(fields.get("campaign_id")),
            game_id=_optional_str(fields.get("game_id")),
            score=_finite_int(fields.get("score")),
            duration_ms=_finite_int(fields.get("duration_ms")),
        )
        registration = await self.registration_repo.create(datetime.now(timezone.utc), entry)

        logger.info(
            f"Registration {registration.id} stored "
            f"(campaign={entry.campaign_id}, game={entry.game_id})"
        )
        return {"ok": True}
