from __future__ import annotations  # Re-export llm_gateway public API

from .llm_gateway import (
    AIUnavailableError,
    AiProvider,
    DisabledProvider,
    HttpClient,
    HttpResponse,
    LlmGatewayError,
    OpenAIJsonProvider,
    build_provider,
    clamp_score,
    normalize_content,
    normalize_rubric,
    parse_json_object,
    truncate_text,
)

__all__ = [
    "AIUnavailableError",
    "AiProvider",
    "DisabledProvider",
    "HttpClient",
    "HttpResponse",
    "LlmGatewayError",
    "OpenAIJsonProvider",
    "build_provider",
    "clamp_score",
    "normalize_content",
    "normalize_rubric",
    "parse_json_object",
    "truncate_text",
]
