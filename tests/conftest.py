import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import pytest

os.environ.setdefault("ENABLE_FILE_LOGS", "0")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.settings import settings
from llm_gateway import AIUnavailableError, DisabledProvider, LlmGatewayError
from storage.migrate import migrate


Scripted = Union[Dict[str, Any], Exception, Callable[[str, str], Dict[str, Any]]]


class FakeProvider:
    """Scripted AI provider; each call consumes the next response or uses ``handler``."""

    def __init__(
        self,
        responses: Optional[List[Scripted]] = None,
        *,
        handler: Optional[Callable[[str, str], Dict[str, Any]]] = None,
        enabled: bool = True,
        model: str = "fake-model",
    ) -> None:
        self.enabled = enabled
        self.model = model
        self.responses = list(responses or [])
        self.handler = handler
        self.calls: List[Dict[str, Any]] = []

    def complete_json(self, system_prompt: str, user_prompt: str, max_tokens: int = 400) -> Dict[str, Any]:
        self.calls.append({"system": system_prompt, "user": user_prompt, "max_tokens": max_tokens})
        if not self.enabled:
            raise AIUnavailableError()
        if self.responses:
            item = self.responses.pop(0)
        elif self.handler is not None:
            item = self.handler
        else:
            raise LlmGatewayError("no scripted response")
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(system_prompt, user_prompt)
        return item


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture
def disabled_provider():
    return DisabledProvider()


@pytest.fixture
def fake_provider():
    return FakeProvider


@pytest.fixture
def resume_text():
    return (
        "Jane Doe\n"
        "jane.doe@example.com | +1 415 555 0100\n"
        "Senior Full Stack Engineer at Acme with 7 years of experience.\n"
        "Built React and TypeScript dashboards, Node.js services with Express, PostgreSQL and Docker.\n"
        "Set up GitHub Actions pipelines and Jest test suites.\n"
    )
