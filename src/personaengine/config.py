"""Engine settings loaded from environment variables and .env files."""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class EngineSettings(BaseSettings):
    """Runtime configuration for the persona engine.

    Environment Variables:
        POINT_BUDGET: Total points shared by the three traits (default: 11)
        ANIMATION_DURATION: Weight transition length in seconds (default: 0.15)
        CHART_SIZE: Radar chart canvas size in pixels (default: 280)
        CHART_RADIUS: Radar chart base radius in pixels (default: 85)
        BACKEND_URL: Persona backend base URL (default: unset, sync disabled)
        BACKEND_API_KEY: Bearer token for the backend (optional)
        BACKEND_TIMEOUT: Backend request timeout in seconds (default: 5.0)
        BACKEND_MAX_RETRIES: Attempts for transient backend failures (default: 3)

    Example:
        >>> settings = EngineSettings()
        >>> settings = EngineSettings(point_budget=12)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    point_budget: int = Field(
        default=11,
        ge=6,
        le=18,
        description="Total points shared by the three traits",
    )

    animation_duration: float = Field(
        default=0.15,
        gt=0,
        le=10.0,
        description="Weight transition duration in seconds",
    )

    chart_size: float = Field(default=280.0, gt=0, description="Chart canvas size")
    chart_radius: float = Field(default=85.0, gt=0, description="Chart base radius")

    backend_url: str | None = Field(
        default=None,
        description="Persona backend base URL; sync is disabled when unset",
    )
    backend_api_key: SecretStr | None = Field(default=None, description="Backend token")
    backend_timeout: float = Field(default=5.0, gt=0, description="Request timeout")
    backend_max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for transient backend failures",
    )

    @field_validator("backend_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: object) -> object:
        """Normalize the backend URL so paths can be appended."""
        if isinstance(v, str):
            v = v.strip().rstrip("/")
            return v or None
        return v

    def __repr__(self) -> str:
        """Representation that never exposes the backend token."""
        return (
            f"EngineSettings("
            f"point_budget={self.point_budget}, "
            f"animation_duration={self.animation_duration}s, "
            f"chart={self.chart_size}/{self.chart_radius}, "
            f"backend_url={self.backend_url or 'not set'}, "
            f"backend_key={'*****' if self.backend_api_key else 'not set'}"
            f")"
        )


@lru_cache
def get_engine_settings() -> EngineSettings:
    """Return the cached settings singleton.

    Call ``get_engine_settings.cache_clear()`` to reload from the environment.
    """
    settings = EngineSettings()
    logger.info("Loaded engine settings: %s", settings)
    return settings
