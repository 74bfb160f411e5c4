"""Event ingestion API routes"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from promo_analytics.api.core.dependencies import get_ingestion_service
from promo_analytics.api.services import IngestionService
from promo_analytics.shared.errors import StoreError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/events", tags=["events"])


# ============================================
# Request / Response Models
# ============================================


class IngestRequest(BaseModel):
    # Validated by the service: must be a list of at most max_batch_size items
    events: Any = None


class IngestResponse(BaseModel):
    ok: bool
    ingested: int


# ============================================
# Endpoints
# ============================================


@router.post("", response_model=IngestResponse)
async def ingest_events(
    body: IngestRequest,
    service: IngestionService = Depends(get_ingestion_service),
) -> IngestResponse:
    """Store a batch of client events atomically"""
    try:
        result = await service.ingest_events(body.events)
        return IngestResponse(ok=True, ingested=result["accepted"])

    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except StoreError as e:
        logger.exception(f"Failed to ingest events: {e}")
        raise HTTPException(status_code=500, detail="Failed to store events") from None
