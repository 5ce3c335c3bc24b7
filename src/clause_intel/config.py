"""
Configuration management for Clause Intel.

Loads settings from environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: str = "INFO"

    # ==========================================================================
    # Storage
    # ==========================================================================
    database_url: str = Field(
        default="sqlite:///./clause_intel.db",
        description="SQLAlchemy URL of the corpus database",
    )
    database_echo: bool = False

    # ==========================================================================
    # API Configuration
    # ==========================================================================
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = Field(default_factory=list)

    # ==========================================================================
    # Clustering
    # ==========================================================================
    kmeans_max_iter: int = 50
    min_clusters: int = 5
    max_clusters: int = 15

    # ==========================================================================
    # Projection
    # ==========================================================================
    power_iteration_max_iter: int = 200

    # None draws fresh entropy on every run
    random_seed: int | None = None

    # ==========================================================================
    # Summaries and Search
    # ==========================================================================
    sample_titles_per_cluster: int = 5
    top_clause_types: int = 5
    similar_clauses_limit: int = 10
    similar_agreements_limit: int = 5

    @field_validator("min_clusters", "max_clusters", "kmeans_max_iter", "power_iteration_max_iter")
    @classmethod
    def check_positive(cls, v: int) -> int:
        """Reject non-positive iteration and cluster bounds."""
        if v < 1:
            raise ValueError("must be at least 1")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
