"""Services layer - Business logic

Services are constructed with their repositories and accessed through
dependency injection.
"""

from .ingestion_service import IngestionService
from .metadata_service import MetadataService
from .registration_service import RegistrationService
from .stats_service import StatsService

__all__ = [
    "IngestionService",
    "MetadataService",
    "RegistrationService",
    "StatsService",
]
