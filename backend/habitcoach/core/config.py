"""Application configuration managed via environment variables."""
from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CoachTierRow(BaseModel):
    """One row of a configured daily coach-status table."""

    min_score: float = Field(..., ge=0, le=10)
    tier: Optional[str] = None
    emoji: str = ""
    message: str = ""
    color: str = "#9E9E9E"
    # true: score must be strictly above min_score
    strict: bool = False


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Habit Coach Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://habitcoach@localhost:5432/habitcoach"
    timezone: str = "Asia/Seoul"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "habitcoach"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o"
    llm_temperature: float = 0.5
    weekly_insights_llm_enabled: bool = False
    provider_error_markers: List[str] = [
        "API_KEY",
        "API key",
        "API 키",
        "401",
        "429",
        "quota",
        "RESOURCE_EXHAUSTED",
    ]
    # JSON list of CoachTierRow objects; empty or unset keeps the built-in table.
    coach_tiers: Optional[List[CoachTierRow]] = None


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
