"""Process-wide holder for the DatabaseManager created in the app lifespan."""

from promo_analytics.api.core.config import Settings
from promo_analytics.shared.database import DatabaseManager, PoolConfig

_db_manager: DatabaseManager | None = None


def get_database_manager() -> DatabaseManager:
    """Get the database manager created at startup"""
    if _db_manager is None:
        raise RuntimeError("Database manager not initialized")
    return _db_manager


def init_database_manager(settings: Settings) -> DatabaseManager:
    """Create the database manager from settings (does not connect)"""
    global _db_manager
    _db_manager = DatabaseManager(
        settings.database_url,
        PoolConfig(
            min_size=settings.db_min_size,
            max_size=settings.db_max_size,
            command_timeout=settings.db_command_timeout,
            ssl=settings.db_ssl,
        ),
    )
    return _db_manager


def reset_database_manager() -> None:
    """Forget the current manager (called after shutdown)"""
    global _db_manager
    _db_manager = None
