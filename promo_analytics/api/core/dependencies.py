"""Dependency injection utilities for FastAPI"""

import logging

import asyncpg
from fastapi import Depends, HTTPException, Request

from promo_analytics.api.core.database import get_database_manager
from promo_analytics.api.services import (
    IngestionService,
    MetadataService,
    RegistrationService,
    StatsService,
)
from promo_analytics.shared.repositories import EventRepository, RegistrationRepository

logger = logging.getLogger(__name__)


# ============================================
# Store Dependencies
# ============================================


def get_db_pool() -> asyncpg.Pool:
    try:
        db_manager = get_database_manager()
    except RuntimeError:
        raise HTTPException(status_code=503, detail="Database not ready") from None
    if not db_manager.is_connected:
        raise HTTPException(status_code=503, detail="Database not ready")
    return db_manager.pool


def get_event_repository(pool: asyncpg.Pool = Depends(get_db_pool)) -> EventRepository:
    return EventRepository(pool)


def get_registration_repository(
    pool: asyncpg.Pool = Depends(get_db_pool),
) -> RegistrationRepository:
    return RegistrationRepository(pool)


# ============================================
# Service Dependencies
# ============================================


def get_ingestion_service(
    request: Request,
    event_repo: EventRepository = Depends(get_event_repository),
    registration_repo: RegistrationRepository = Depends(get_registration_repository),
) -> IngestionService:
    """Get IngestionService instance (dependency injection)"""
    return IngestionService(
        event_repo,
        registration_repo,
        max_batch_size=request.app.state.settings.max_batch_size,
    )


def get_stats_service(
    event_repo: EventRepository = Depends(get_event_repository),
    registration_repo: RegistrationRepository = Depends(get_registration_repository),
) -> StatsService:
    """Get StatsService instance (dependency injection)"""
    return StatsService(event_repo, registration_repo)


def get_metadata_service(
    event_repo: EventRepository = Depends(get_event_repository),
) -> MetadataService:
    """Get MetadataService instance (dependency injection)"""
    return MetadataService(event_repo)


def get_registration_service(
    registration_repo: RegistrationRepository = Depends(get_registration_repository),
) -> RegistrationService:
    """Get RegistrationService instance (dependency injection)"""
    return RegistrationService(registration_repo)
