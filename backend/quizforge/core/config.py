# backend/quizforge/core/config.py
"""
Service configuration loaded from the environment (and .env if present).

Environment Variables:
    OPENAI_API_KEY: API key for the model provider (checked when a client is built)
    OPENAI_MODEL: chat model name (default: gpt-4o-mini)
    OPENAI_BASE_URL: optional OpenAI-compatible endpoint
    QUIZ_TEMPERATURE / QUIZ_TOP_P: sampling parameters sent on every attempt
    QUIZ_MAX_ATTEMPTS: attempts per generation call (default: 3)
    QUIZ_ATTEMPT_TIMEOUT: seconds before one attempt is abandoned (default: 60)
    LOG_LEVEL: logging level (default: INFO)
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    openai_base_url: str | None = Field(default=None, alias="OPENAI_BASE_URL")

    # Low randomness keeps the output closer to the requested format
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, alias="QUIZ_TEMPERATURE")
    top_p: float = Field(default=0.9, gt=0.0, le=1.0, alias="QUIZ_TOP_P")
    max_attempts: int = Field(default=3, ge=1, alias="QUIZ_MAX_ATTEMPTS")
    attempt_timeout: float | None = Field(default=60.0, gt=0, alias="QUIZ_ATTEMPT_TIMEOUT")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


@lru_cache
def get_settings() -> Settings:
    return Settings()
