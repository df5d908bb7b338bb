"""Application settings and configuration management."""
from __future__ import annotations

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")
    DB_TIMEOUT_S: float = 10.0

    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_BASE_URL: str = "https://api.openai.com"
    AI_TIMEOUT_S: float = 30.0
    AI_TEMPERATURE: float = 0.7

    QUESTION_AI_ATTEMPTS: int = Field(default=2, ge=1)
    RESUME_PROMPT_CHARS: int = 3000
    RESUME_DIGEST_CHARS: int = 5000

    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])
    UPLOAD_URL_PREFIX: str = "/uploads"

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")

    @property
    def ai_enabled(self) -> bool:
        return bool(self.OPENAI_API_KEY)


settings = Settings()
