"""
Unified configuration for verdict.

This module provides a single Settings class that consolidates all
environment variables used by the evaluation engine, the history store
and the LLM judge.
"""

from __future__ import annotations

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine project root for .env file loading (allows running from any CWD)
PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """
    Unified settings for verdict.

    Environment variables are loaded from .env file and can be overridden
    by actual environment variables.
    """

    # Service identification
    SERVICE_NAME: str = "verdict"

    # PostgreSQL (history backend)
    POSTGRES_DSN: str = "host=localhost port=5432 dbname=postgres user=postgres password=postgres"

    # Evaluation history
    HISTORY_BACKEND: str = "memory"  # memory | postgres
    HISTORY_RETENTION_DAYS: int | None = None
    HISTORY_RETENTION_COUNT: int | None = None
    HISTORY_CLEANUP_MODE: str = "eager"  # eager | manual

    # Score -> label cutoffs used by Evaluator.calculate_label
    LABEL_THRESHOLD_GOOD: float = 0.8
    LABEL_THRESHOLD_AVERAGE: float = 0.6

    # LLM judge (OpenAI)
    OPENAI_MODEL_ID: str = "gpt-4o-mini"
    OPENAI_API_KEY: str = ""
    LLM_JUDGE_TEMPERATURE: float = 0.0

    model_config = SettingsConfigDict(
        env_file=PROJECT_ROOT / ".env",
        extra="ignore"
    )


# Global settings instance
settings = Settings()  # type: ignore
