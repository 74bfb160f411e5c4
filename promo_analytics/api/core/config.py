"""Application configuration using Pydantic Settings"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=Path.cwd() / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(..., description="PostgreSQL database URL")
    db_min_size: int = Field(default=1, ge=0, description="Minimum pooled connections")
    db_max_size: int = Field(default=10, ge=1, description="Maximum pooled connections")
    db_command_timeout: float = Field(default=15.0, gt=0, description="Per-query timeout (s)")
    db_ssl: str | None = Field(default=None, description="asyncpg ssl mode, e.g. 'require'")
    run_migrations: bool = Field(default=True, description="Apply pending migrations on startup")

    # Environment
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")
    allowed_origins: str = Field(
        default="*", description="Comma-separated CORS origins, '*' allows any"
    )

    # Ingestion limits
    max_batch_size: int = Field(default=500, ge=1, description="Max events per ingest batch")
    max_body_bytes: int = Field(default=512 * 1024, ge=1, description="Max JSON body size")

    # Caching
    meta_cache_ttl: float = Field(
        default=60.0, gt=0, description="Seconds /api/meta dimensions stay cached"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(f"Invalid log level '{v}', defaulting to INFO")
            return "INFO"
        return v_upper

    @property
    def cors_origins(self) -> list[str]:
        """Parsed CORS origins; ``["*"]`` when every origin is allowed"""
        origins = [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        if not origins or "*" in origins:
            return ["*"]
        return origins

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()  # type: ignore[call-arg]
