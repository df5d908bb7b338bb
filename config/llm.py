from __future__ import annotations  # Configuration schema for the LLM route

from typing import Dict

from pydantic import BaseModel, Field

from .settings import Settings


class LlmRoute(BaseModel):  # LLM endpoint configuration
    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(ge=0.1)
    max_retries: int = Field(default=0, ge=0)
    api_key_env: str | None = None
    response_format: str | None = "json_object"
    extra_headers: Dict[str, str] = Field(default_factory=dict)


def openai_route(cfg: Settings) -> LlmRoute:  # Build the chat-completions route from settings
    return LlmRoute(
        name="openai",
        base_url=cfg.OPENAI_BASE_URL.rstrip("/"),
        endpoint="/v1/chat/completions",
        model=cfg.OPENAI_MODEL,
        timeout_s=cfg.AI_TIMEOUT_S,
        api_key_env="OPENAI_API_KEY",
    )
