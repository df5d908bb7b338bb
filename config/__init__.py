"""Configuration package for the interview engine."""
from .llm import LlmRoute, openai_route
from .settings import Settings, settings

__all__ = [
    "LlmRoute",
    "openai_route",
    "Settings",
    "settings",
]
