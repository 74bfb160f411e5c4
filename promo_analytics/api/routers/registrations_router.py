"""Registration form and lookup API routes"""

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from promo_analytics.api.core.dependencies import (
    get_ingestion_service,
    get_registration_service,
)
from promo_analytics.api.services import IngestionService, RegistrationService
from promo_analytics.shared.errors import StoreError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/registrations", tags=["registrations"])


# ============================================
# Request / Response Models
# ============================================


class RegistrationRequest(BaseModel):
    # Any JSON scalar; the service stores str(value)
    session_id: Any = None
    campaign_id: Any = None
    game_id: Any = None
    name: Any = None
    email: Any = None
    phone: Any = None
    # Kept only when the client sends a finite JSON number
    score: Any = None
    duration_ms: Any = None


class OkResponse(BaseModel):
    ok: bool


class RegistrationRow(BaseModel):
    id: int
    created_at: datetime
    session_id: str | None
    campaign_id: str | None
    game_id: str | None
    name: str
    email: str
    phone: str
    score: int | None
    duration_ms: int | None


class RegistrationList(BaseModel):
    rows: list[RegistrationRow]


# ============================================
# Endpoints
# ============================================


@router.post("", response_model=OkResponse)
async def create_registration(
    body: RegistrationRequest,
    service: IngestionService = Depends(get_ingestion_service),
) -> OkResponse:
    """Store a registration form submission"""
    try:
        await service.register_entry(body.model_dump())
        return OkResponse(ok=True)

    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except StoreError as e:
        logger.exception(f"Failed to store registration: {e}")
        raise HTTPException(status_code=500, detail="Failed to store registration") from None


@router.get("", response_model=RegistrationList)
async def list_registrations(
    q: str = "",
    campaign_id: str = "",
    game_id: str = "",
    service: RegistrationService = Depends(get_registration_service),
) -> RegistrationList:
    """
    Most recent registrations (max 1000) for the dashboard

    Args:
        q: Case-insensitive text matched against name, email or phone
        campaign_id: Exact campaign filter
        game_id: Exact game filter
    """
    try:
        result = await service.query_registrations(q, campaign_id, game_id)
        return RegistrationList(**result)

    except StoreError as e:
        logger.exception(f"Failed to list registrations: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch registrations") from None
