import json
from datetime import datetime, timezone

import pytest

from promo_analytics.api.services import IngestionService, MetadataService
from promo_analytics.api.services.ingestion_service import normalize_event, parse_client_ts
from promo_analytics.shared.errors import StoreError, ValidationError


@pytest.fixture()
def service(event_repo, registration_repo) -> IngestionService:
    return IngestionService(event_repo, registration_repo)


# ── Event batches ──────────────────────────────────────────────


@pytest.mark.asyncio
async def test_oversized_batch_is_rejected_and_nothing_stored(service, event_repo):
    batch = [{"event_name": "page_view"} for _ in range(501)]

    with pytest.raises(ValidationError):
        await service.ingest_events(batch)

    assert event_repo.events == []


@pytest.mark.asyncio
async def test_batch_at_limit_is_accepted(service, event_repo):
    result = await service.ingest_events([{"event_name": "page_view"}] * 500)

    assert result == {"accepted": 500}
    assert len(event_repo.events) == 500


@pytest.mark.asyncio
@pytest.mark.parametrize("batch", [None, {"event_name": "win"}, "win", 3])
async def test_non_list_batch_is_rejected(service, batch):
    with pytest.raises(ValidationError):
        await service.ingest_events(batch)


@pytest.mark.asyncio
async def test_nameless_elements_are_dropped(service, event_repo):
    result = await service.ingest_events(
        [{"event_name": "game_start"}, {}, {"event_name": "win"}]
    )

    assert result == {"accepted": 3}
    assert [e.event_name for e in event_repo.events] == ["game_start", "win"]


@pytest.mark.asyncio
async def test_non_mapping_and_empty_names_are_dropped(service, event_repo):
    await service.ingest_events([None, "win", {"event_name": ""}, {"event_name": "win"}])

    assert len(event_repo.events) == 1


@pytest.mark.asyncio
async def test_batch_shares_one_received_at(service, event_repo):
    await service.ingest_events([{"event_name": "a"}, {"event_name": "b"}])

    assert event_repo.events[0].received_at == event_repo.events[1].received_at
    assert event_repo.events[0].received_at.tzinfo is not None


@pytest.mark.asyncio
async def test_failed_transaction_stores_nothing(service, event_repo):
    event_repo.fail_next_insert = True

    with pytest.raises(StoreError):
        await service.ingest_events([{"event_name": "win"}, {"event_name": "win"}])

    assert event_repo.events == []


@pytest.mark.asyncio
async def test_ingest_refreshes_dimensions(service, event_repo):
    meta = MetadataService(event_repo)
    assert await meta.list_dimensions() == {"campaigns": [], "games": []}

    await service.ingest_events([{"event_name": "page_view", "campaign_id": "spring"}])

    assert (await meta.list_dimensions())["campaigns"] == ["spring"]


# ── Row normalization ──────────────────────────────────────────


def test_normalize_event_truncates_and_serializes():
    row = normalize_event(
        {
            "event_name": "x" * 120,
            "client_ts": "2024-01-01T10:00:00Z",
            "campaign_id": "spring",
            "game_id": "",
            "session_id": "abc",
            "props": {"score": 7, "level": "hard"},
        }
    )

    assert row.event_name == "x" * 80
    assert row.client_ts == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
    assert row.campaign_id == "spring"
    assert row.game_id is None
    assert row.anonymous_user_id is None
    assert json.loads(row.props) == {"score": 7, "level": "hard"}


def test_normalize_event_defaults_props_to_empty_object():
    assert normalize_event({"event_name": "win"}).props == "{}"


def test_normalize_event_stringifies_name():
    assert normalize_event({"event_name": 42}).event_name == "42"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2024-01-01T00:00:00Z", datetime(2024, 1, 1, tzinfo=timezone.utc)),
        ("2024-01-01T00:00:00.123Z", datetime(2024, 1, 1, 0, 0, 0, 123000, tzinfo=timezone.utc)),
        ("2024-01-01T00:00:00", datetime(2024, 1, 1, tzinfo=timezone.utc)),
        ("yesterday", None),
        ("", None),
        (None, None),
        (1704067200, None),
    ],
)
def test_parse_client_ts(value, expected):
    assert parse_client_ts(value) == expected


# ── Registrations ──────────────────────────────────────────────


VALID_ENTRY = {"name": "Bob", "email": "bob@x.com", "phone": "555 0100"}


@pytest.mark.asyncio
async def test_register_entry_stores_row(service, registration_repo):
    result = await service.register_entry(
        {**VALID_ENTRY, "campaign_id": "spring", "game_id": "wheel", "session_id": "s1"}
    )

    assert result == {"ok": True}
    row = registration_repo.rows[0]
    assert (row.name, row.email, row.phone) == ("Bob", "bob@x.com", "555 0100")
    assert (row.campaign_id, row.game_id, row.session_id) == ("spring", "wheel", "s1")
    assert row.created_at.tzinfo is not None


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["name", "email", "phone"])
async def test_register_entry_requires_contact_fields(service, registration_repo, missing):
    with pytest.raises(ValidationError):
        await service.register_entry({**VALID_ENTRY, missing: ""})
    with pytest.raises(ValidationError):
        await service.register_entry({k: v for k, v in VALID_ENTRY.items() if k != missing})

    assert registration_repo.rows == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1200, 1200),
        (12.9, 12),
        ("12", None),
        (float("nan"), None),
        (float("inf"), None),
        (True, None),
        (None, None),
    ],
)
async def test_register_entry_keeps_only_finite_numbers(
    service, registration_repo, value, expected
):
    await service.register_entry({**VALID_ENTRY, "score": value, "duration_ms": value})

    row = registration_repo.rows[0]
    assert row.score == expected
    assert row.duration_ms == expected


@pytest.mark.asyncio
async def test_register_entry_surfaces_store_errors(service, registration_repo):
    registration_repo.fail = True

    with pytest.raises(StoreError):
        await service.register_entry(VALID_ENTRY)


@pytest.mark.asyncio
@pytest.mark.parametrize("value", [1e20, -1e20, 2**63, -(2**63) - 1, 10**30])
async def test_register_entry_drops_numbers_outside_bigint(service, registration_repo, value):
    await service.register_entry({**VALID_ENTRY, "score": value, "duration_ms": value})

    row = registration_repo.rows[0]
    assert row.score is None
    assert row.duration_ms is None


@pytest.mark.asyncio
async def test_register_entry_keeps_bigint_bounds(service, registration_repo):
    await service.register_entry({**VALID_ENTRY, "score": 2**63 - 1, "duration_ms": -(2**63)})

    row = registration_repo.rows[0]
    assert row.score == 2**63 - 1
    assert row.duration_ms == -(2**63)


@pytest.mark.asyncio
async def test_register_entry_coerces_numeric_contact_fields(service, registration_repo):
    await service.register_entry({"name": "Bob", "email": "bob@x.com", "phone": 5550100})

    assert registration_repo.rows[0].phone == "5550100"


# ── NUL characters ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_nul_characters_are_stripped_from_events(service, event_repo):
    await service.ingest_events(
        [
            {"event_name": "game_start"},
            {
                "event_name": "win\x00",
                "campaign_id": "spr\x00ing",
                "session_id": "\x00",
                "props": {"note": "a\x00b"},
            },
        ]
    )

    assert [e.event_name for e in event_repo.events] == ["game_start", "win"]
    stored = event_repo.events[1]
    assert stored.campaign_id == "spring"
    assert stored.session_id is None
    assert "\x00" not in stored.props
    assert json.loads(stored.props) == {"note": "a\x00b"}


@pytest.mark.asyncio
async def test_event_named_only_nul_is_dropped(service, event_repo):
    result = await service.ingest_events([{"event_name": "\x00\x00"}, {"event_name": "win"}])

    assert result == {"accepted": 2}
    assert [e.event_name for e in event_repo.events] == ["win"]


@pytest.mark.asyncio
async def test_nul_characters_are_stripped_from_registrations(service, registration_repo):
    await service.register_entry(
        {"name": "Bo\x00b", "email": "bob@x.com\x00", "phone": "555", "game_id": "wh\x00eel"}
    )

    row = registration_repo.rows[0]
    assert (row.name, row.email, row.game_id) == ("Bob", "bob@x.com", "wheel")


@pytest.mark.asyncio
async def test_contact_field_of_only_nul_counts_as_missing(service, registration_repo):
    with pytest.raises(ValidationError):
        await service.register_entry({**VALID_ENTRY, "phone": "\x00"})

    assert registration_repo.rows == []
