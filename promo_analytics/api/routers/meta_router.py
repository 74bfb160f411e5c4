"""Dashboard filter metadata API routes"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from promo_analytics.api.core.dependencies import get_metadata_service
from promo_analytics.api.services import MetadataService
from promo_analytics.shared.errors import StoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/meta", tags=["meta"])


class Dimensions(BaseModel):
    campaigns: list[str]
    games: list[str]


@router.get("", response_model=Dimensions)
async def get_meta(service: MetadataService = Depends(get_metadata_service)) -> Dimensions:
    """Distinct campaign and game ids seen in events"""
    try:
        return Dimensions(**await service.list_dimensions())

    except StoreError as e:
        logger.exception(f"Failed to list dimensions: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch metadata") from None
