"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables (prefix ``GEODISCOVERY_``) and .env files.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RankingWeights(BaseModel):
    """Tunable ranking parameters.

    Override with nested env vars, e.g. ``GEODISCOVERY_RANKING__PROMOTION=0.1``.
    """

    proximity: float = Field(default=0.40, ge=0)
    quality: float = Field(default=0.30, ge=0)
    popularity: float = Field(default=0.15, ge=0)
    promotion: float = Field(default=0.15, ge=0)

    # Review count at which the popularity signal reaches 1.0
    popularity_saturation: int = Field(default=500, ge=1)
    # Promotion weights above this contribute no further boost
    promotion_cap: int = Field(default=100, ge=1)
    # Quality signal of a 1-star listing; ratings map linearly onto [floor, 1]
    rated_quality_floor: float = Field(default=0.2, gt=0, lt=1)
    # Quality signal for listings without reviews, below every rated listing
    unrated_quality_prior: float = Field(default=0.1, gt=0, lt=1)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_unrated_below_rated(self) -> RankingWeights:
        if self.unrated_quality_prior >= self.rated_quality_floor:
            raise ValueError("unrated_quality_prior must be less than rated_quality_floor")
        return self


class Settings(BaseSettings):
    """Application settings."""

    # Paths
    data_dir: Path = Path("data")
    db_path: Path = Path("data/geodiscovery.db")

    # Search
    search_default_radius_km: float = 10.0
    search_max_radius_km: float = 1000.0
    search_default_limit: int = 20
    search_max_limit: int = 100
    map_default_limit: int = 100
    map_max_limit: int = 500
    catalog_timeout_seconds: float = 5.0

    # Operating region (Belarus national envelope)
    region_min_lat: float = 51.0
    region_max_lat: float = 56.0
    region_min_lon: float = 23.0
    region_max_lon: float = 33.0

    # Ranking
    ranking: RankingWeights = Field(default_factory=RankingWeights)

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    api_rate_limit_per_minute: int = 120
    # Front-end origins allowed by CORS (JSON list in the environment)
    api_cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ]
    )

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="GEODISCOVERY_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
