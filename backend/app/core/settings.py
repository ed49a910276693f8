# backend/app/core/settings.py
"""
PlantOps - Configuration Management with pydantic-settings

- Loads from environment and root .env
- Validates and normalizes values
- Cached singleton via get_settings()
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# backend/app/core/settings.py -> <repo>/.env
_ENV_FILE = Path(__file__).resolve().parent.parent.parent.parent / ".env"

UNRESOLVED_ITEM_POLICIES = ("skip", "fail")


class Settings(BaseSettings):
    """
    Application settings with validation.

    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===================
    # Application Settings
    # ===================
    PROJECT_NAME: str = "PlantOps"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    ENVIRONMENT: str = Field(default="development", description="Deployment environment")

    # ===================
    # Database Settings
    # ===================
    DB_HOST: str = Field(default="localhost", description="PostgreSQL host")
    DB_PORT: int = Field(default=5432, description="PostgreSQL port")
    DB_NAME: str = Field(default="plantops", description="Database name")
    DB_USER: str = Field(default="postgres", description="Database user")
    DB_PASSWORD: str = Field(default="postgres", description="Database password")
    DATABASE_URL: Optional[str] = Field(
        default=None, description="Full database URL (overrides DB_* settings)"
    )

    @property
    def database_url(self) -> str:
        """Build PostgreSQL database URL from components or use explicit URL."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    # ===================
    # CORS Settings
    # ===================
    ALLOWED_ORIGINS: List[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        description="Allowed CORS origins",
    )

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # ===================
    # Logging
    # ===================
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or text
    LOG_FILE: Optional[str] = None

    # ===================
    # MRP Settings (safe defaults)
    # ===================
    MRP_DEFAULT_HORIZON_DAYS: int = Field(default=30, ge=1)
    MRP_MAX_HORIZON_DAYS: int = Field(default=365, ge=1)
    MRP_MAX_BOM_DEPTH: int = Field(
        default=50, ge=1, description="Deepest BOM level the explosion will follow"
    )
    # Off keeps available_quantity at 0 for every requirement row
    MRP_NET_AGAINST_INVENTORY: bool = False
    MRP_UNRESOLVED_ITEM_POLICY: str = Field(
        default="skip", description="skip or fail when a BOM component has no item record"
    )
    MRP_SINGLE_FLIGHT: bool = Field(
        default=True, description="Reject a new run while another run is in progress"
    )
    MRP_STALE_RUN_MINUTES: int = Field(
        default=60, ge=1, description="Age after which a 'running' run is considered orphaned"
    )

    @field_validator("MRP_UNRESOLVED_ITEM_POLICY")
    @classmethod
    def validate_unresolved_policy(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if v not in UNRESOLVED_ITEM_POLICIES:
            raise ValueError(
                f"MRP_UNRESOLVED_ITEM_POLICY must be one of {UNRESOLVED_ITEM_POLICIES}, got '{v}'"
            )
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Singleton settings loader (cached)."""
    return Settings()


# Convenience alias for modules that read settings at import time
settings = get_settings()
