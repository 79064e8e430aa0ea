"""
Configuration settings for the mastery engine.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are read with the ENGINE_ prefix (e.g. ENGINE_LOG_LEVEL=DEBUG).
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Encompassing Graph
    # ========================================
    graph_include_lesson_encompassing: bool = Field(
        default=True,
        description="Build lesson -> earlier lesson edges",
    )
    graph_adjacent_lesson_weight: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Base weight for the immediately preceding lesson (divided by distance)",
    )
    graph_min_weight: float = Field(
        default=0.05,
        ge=0.0,
        le=1.0,
        description="Edges below this weight are dropped during construction",
    )
    graph_same_lesson_item_weight: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Weak mutual credit between items taught in the same lesson",
    )
    graph_cross_book_weight: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Flat weight from a later book's lessons to earlier books' lessons",
    )

    # ─── Co-occurrence ──────────────────────────────────────────────────────────
    cooccurrence_max_count: int = Field(
        default=10,
        gt=0,
        description="Co-occurrence count that maps to weight 1.0",
    )
    cooccurrence_min_weight: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Minimum normalized co-occurrence weight to emit an edge",
    )

    # ========================================
    # Practice / Challenge
    # ========================================
    challenge_timer_seconds: int = Field(
        default=30,
        description="Answer timer for challenge exercises",
    )
    calibration_min_session_ratings: int = Field(
        default=3,
        description="Rated answers needed before a session reports calibration",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    def get_graph_options(self) -> dict[str, float | bool]:
        """Get encompassing graph build options as keyword arguments."""
        return {
            "include_lesson_encompassing": self.graph_include_lesson_encompassing,
            "adjacent_lesson_weight": self.graph_adjacent_lesson_weight,
            "min_weight": self.graph_min_weight,
            "same_lesson_item_weight": self.graph_same_lesson_item_weight,
            "cross_book_weight": self.graph_cross_book_weight,
        }

    def get_engine_config(self) -> dict[str, Any]:
        """Get the full engine configuration as a dictionary."""
        return {
            "graph": self.get_graph_options(),
            "cooccurrence": {
                "max_count": self.cooccurrence_max_count,
                "min_weight": self.cooccurrence_min_weight,
            },
            "practice": {
                "challenge_timer_seconds": self.challenge_timer_seconds,
                "calibration_min_session_ratings": self.calibration_min_session_ratings,
            },
            "logging": {
                "level": self.log_level,
                "file": self.log_file,
            },
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
