"""Campaign statistics API routes"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from promo_analytics.api.core.dependencies import get_stats_service
from promo_analytics.api.services import StatsService
from promo_analytics.api.services.stats_service import DEFAULT_DAYS, clamp_days
from promo_analytics.shared.errors import StoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stats", tags=["stats"])


# ============================================
# Response Models
# ============================================


class Totals(BaseModel):
    views: int
    starts: int
    wins: int
    regs: int


class Rates(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    win_rate: float = Field(alias="winRate")
    reg_rate_from_starts: float = Field(alias="regRateFromStarts")
    reg_rate_from_wins: float = Field(alias="regRateFromWins")


class DailyBucket(BaseModel):
    date: str
    starts: int
    wins: int
    views: int
    regs: int


class FunnelStage(BaseModel):
    label: str
    value: int


class StatsResponse(BaseModel):
    totals: Totals
    rates: Rates
    series: list[DailyBucket]
    funnel: list[FunnelStage]


# ============================================
# Endpoints
# ============================================


@router.get("", response_model=StatsResponse)
async def get_stats(
    days: str = "",
    campaign_id: str = "",
    game_id: str = "",
    service: StatsService = Depends(get_stats_service),
) -> StatsResponse:
    """
    Daily funnel metrics and conversion rates for a trailing window

    Args:
        days: Number of days to look back, clamped to 1-365 (empty or missing: 28)
        campaign_id: Exact campaign filter
        game_id: Exact game filter
    """
    try:
        window = clamp_days(int(days)) if days.strip() else DEFAULT_DAYS
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid days") from None

    try:
        stats = await service.compute_stats(window, campaign_id.strip(), game_id.strip())
        return StatsResponse(**stats)

    except StoreError as e:
        logger.exception(f"Failed to compute stats: {e}")
        raise HTTPException(status_code=500, detail="Failed to compute statistics") from None
