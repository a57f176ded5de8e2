"""Configuration settings for the Transitoria analyzer."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Flat settings read from environment variables and an optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Analysis
    locale: str = Field(default="nl", validation_alias="TRANSITORIA_LOCALE")
    shift_threshold: float = Field(
        default=1.8,
        gt=0,
        validation_alias="SHIFT_THRESHOLD",
        description="Neighbor magnitude (x group average) that marks an empty month as shifted",
    )
    min_active_months: int = Field(
        default=3, ge=1, le=12, validation_alias="MIN_ACTIVE_MONTHS"
    )
    fallback_length: int = Field(default=15, ge=1, validation_alias="FALLBACK_LENGTH")
    missing_items_limit: int = Field(default=10, ge=0, validation_alias="MISSING_ITEMS_LIMIT")

    # Categorization and overview
    high_risk_score: float = Field(default=0.7, validation_alias="HIGH_RISK_SCORE")
    large_amount_threshold: float = Field(
        default=25000.0, validation_alias="LARGE_AMOUNT_THRESHOLD"
    )
    spread_threshold: float = Field(default=5000.0, validation_alias="SPREAD_THRESHOLD")

    # LLM
    google_api_key: SecretStr | None = Field(default=None, validation_alias="GOOGLE_API_KEY")
    gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
    llm_max_tokens: int = Field(default=2048, validation_alias="LLM_MAX_TOKENS")
    llm_temperature: float = Field(default=0.2, validation_alias="LLM_TEMPERATURE")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="LOG_FORMAT"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
