from __future__ import annotations  # JSON-completion gateway for the AI provider

import json
import logging
import os
import re
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

import httpx

from config import LlmRoute, Settings, openai_route


logger = logging.getLogger(__name__)  # Module logger setup


class HttpClient(Protocol):  # Minimal HTTP client protocol
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> "HttpResponse": ...


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class LlmGatewayError(RuntimeError):  # Base gateway error
    pass


class AIUnavailableError(LlmGatewayError):  # Raised when no provider credentials are configured
    def __init__(self, message: str = "AI provider is not configured") -> None:
        super().__init__(message)
        self.code = "AI_UNAVAILABLE"


class AiProvider(Protocol):  # Capability consumed by question generation, scoring and summaries
    @property
    def enabled(self) -> bool: ...

    @property
    def model(self) -> Optional[str]: ...

    def complete_json(self, system_prompt: str, user_prompt: str, max_tokens: int = 400) -> Dict[str, Any]: ...


class DisabledProvider:  # Provider used when no credentials are present
    enabled = False
    model = None

    def complete_json(self, system_prompt: str, user_prompt: str, max_tokens: int = 400) -> Dict[str, Any]:
        raise AIUnavailableError()


class OpenAIJsonProvider:  # OpenAI-compatible chat completions returning a JSON object
    enabled = True

    def __init__(
        self,
        route: LlmRoute,
        *,
        api_key: Optional[str] = None,
        client: Optional[HttpClient] = None,
        temperature: float = 0.7,
    ) -> None:
        self.route = route
        self._api_key = api_key
        self._client = client
        self.temperature = temperature

    @property
    def model(self) -> str:
        return self.route.model

    def complete_json(self, system_prompt: str, user_prompt: str, max_tokens: int = 400) -> Dict[str, Any]:
        messages = _normalize_messages(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ]
        )
        return self.chat(messages, max_tokens=max_tokens)

    def chat(self, messages: Sequence[Dict[str, str]], *, max_tokens: int = 400) -> Dict[str, Any]:
        cfg = self.route
        payload: Dict[str, Any] = {
            "model": cfg.model,
            "messages": list(messages),
            "max_tokens": max_tokens,
            "temperature": self.temperature,
        }
        if cfg.response_format:
            payload["response_format"] = {"type": cfg.response_format}
        headers = {"Content-Type": "application/json"}
        api_key = self._api_key or (os.getenv(cfg.api_key_env) if cfg.api_key_env else None)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        headers.update(cfg.extra_headers)

        preview = _preview(messages)
        if len(preview) > 120:
            preview = preview[:117] + "..."
        attempts = cfg.max_retries + 1
        last_error: Optional[Exception] = None
        for attempt in range(attempts):
            logger.info(
                "LLM request send route=%s model=%s attempt=%d/%d preview=%s",
                cfg.name,
                cfg.model,
                attempt + 1,
                attempts,
                preview,
            )
            try:
                return self._send(payload, headers)
            except LlmGatewayError as exc:
                logger.warning("LLM request failed route=%s attempt=%d: %s", cfg.name, attempt + 1, exc)
                last_error = exc
        raise LlmGatewayError("LLM request failed") from last_error

    def _send(self, payload: Dict[str, Any], headers: Dict[str, str]) -> Dict[str, Any]:
        cfg = self.route
        try:
            response, close_cb = _post(f"{cfg.base_url}{cfg.endpoint}", payload, headers, cfg.timeout_s, self._client)
        except Exception as exc:  # noqa: BLE001
            logger.error("LLM transport failure: %s", exc)
            raise LlmGatewayError("LLM transport failed") from exc
        try:
            if response.status_code >= 400:
                logger.error("LLM error status: %s", response.status_code)
                raise LlmGatewayError(f"LLM returned status {response.status_code}")
            try:
                data = response.json()
            except Exception as exc:  # noqa: BLE001
                logger.error("Invalid JSON payload from LLM: %s", exc)
                raise LlmGatewayError("LLM payload was not JSON") from exc
            return parse_json_object(_extract_content(data))
        finally:
            _close_safely(close_cb)


def build_provider(cfg: Settings) -> AiProvider:  # Construct the process-wide provider once at startup
    if not cfg.ai_enabled:
        logger.info("AI provider disabled; heuristic fallbacks will be used")
        return DisabledProvider()
    return OpenAIJsonProvider(
        openai_route(cfg),
        api_key=cfg.OPENAI_API_KEY,
        temperature=cfg.AI_TEMPERATURE,
    )


def parse_json_object(text: str) -> Dict[str, Any]:  # Decode model text into a JSON object
    cleaned = _strip_code_fences(text or "")
    if not cleaned:
        raise LlmGatewayError("AI response did not include textual output")
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise LlmGatewayError(f"Failed to parse AI response as JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise LlmGatewayError("AI response was not a JSON object")
    return parsed


def normalize_content(value: Any) -> str:  # Flatten string or structured message content
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        parts: List[str] = []
        for item in value:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict):
                parts.append(str(item.get("text") or item.get("content") or ""))
            else:
                parts.append(str(item))
        return "\n".join(parts)
    if value is None:
        return ""
    return str(value)


def normalize_rubric(value: Any) -> Optional[List[str]]:  # Canonical list form of rubric-like values
    if not value:
        return None
    if isinstance(value, (list, tuple)):
        cleaned = [str(item).strip() for item in value if str(item).strip()]
        return cleaned or None
    if isinstance(value, str):
        parts = [item.strip() for item in re.split(r"[\n,;-]+", value) if item.strip()]
        return parts or None
    return None


def clamp_score(value: Any) -> float:  # Bound a model-supplied score to [0, 10]
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return 0.0
    if numeric != numeric:
        return 0.0
    return max(0.0, min(10.0, numeric))


def truncate_text(text: Optional[str], limit: int = 1500) -> str:  # Bound prompt payload size
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."


def _post(url: str, payload: Dict[str, Any], headers: Dict[str, str], timeout: float, client: Optional[HttpClient]) -> Tuple[HttpResponse, Optional[Callable[[], None]]]:  # Dispatch HTTP request
    if client is not None:
        response = client.post(url, json=payload, headers=headers, timeout=timeout)
        return response, None
    http_client = httpx.Client(timeout=timeout)
    response = http_client.post(url, json=payload, headers=headers)
    return response, http_client.close


def _close_safely(close_cb: Optional[Callable[[], None]]) -> None:  # Close HTTP client callback when provided
    if close_cb is not None:
        close_cb()


def _normalize_messages(messages: Sequence[Dict[str, Any]]) -> list[Dict[str, str]]:  # Ensure message payload shape
    normalized: list[Dict[str, str]] = []
    for item in messages:
        if not isinstance(item, dict):
            raise TypeError("Each chat message must be a dict with role/content")
        role = str(item.get("role", "")).strip()
        if not role:
            raise ValueError("Chat message missing role")
        normalized.append({"role": role, "content": normalize_content(item.get("content"))})
    return normalized


def _preview(messages: Sequence[Dict[str, str]]) -> str:  # Build preview string for logging
    for message in messages:
        if message.get("role") == "system":
            continue
        text = message.get("content", "").strip()
        if text:
            return text.splitlines()[0]
    return ""


def _extract_content(data: Any) -> str:  # Extract message content from LLM response
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if content is not None:
                return normalize_content(content)
        if isinstance(data.get("content"), str):
            return data["content"]
    raise LlmGatewayError("LLM response missing content")


def _strip_code_fences(content: str) -> str:  # Remove common markdown fences from LLM output
    text = content.strip()
    if text.startswith("```"):
        lines = text.splitlines()
        if lines:
            lines = lines[1:]
            while lines and lines[0].strip() == "":
                lines = lines[1:]
            while lines and lines[-1].strip() == "":
                lines = lines[:-1]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            text = "\n".join(lines).strip()
    return text
