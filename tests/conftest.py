"""Pytest configuration and fixtures."""

import asyncio
import json
from typing import Callable, List, Optional, Union

import httpx
import pytest
from fastapi.testclient import TestClient

from viberecipe.config import settings
from viberecipe.main import app

Handler = Callable[[httpx.Request], httpx.Response]

SAMPLE_HTML = """
<html>
  <head><title>Pasta</title><style>body { color: red; }</style></head>
  <body>
    <nav>Home | Recipes | About</nav>
    <h1>Lemon   Pasta</h1>
    <script>var tracking = true;</script>
    <ul><li>200 g pasta</li><li>1 tsp salt</li></ul>
    <p>Boil the pasta.
       Season and serve.</p>
    <footer>Copyright 2024</footer>
  </body>
</html>
"""


class FakeGeminiService:
    """Stands in for GeminiService and returns canned responses in order."""

    def __init__(self, *responses: str, gate: Optional[asyncio.Event] = None, gated_text: str = ""):
        self.responses: List[str] = list(responses)
        self.text_calls: List[str] = []
        self.image_calls: List[tuple] = []
        self.gate = gate
        self.gated_text = gated_text

    def _next(self) -> str:
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    async def extract_from_text(self, text: str) -> str:
        self.text_calls.append(text)
        if self.gate is not None and text == self.gated_text:
            await self.gate.wait()
        return self._next()

    async def extract_from_image(self, image_data: bytes, mime_type: str) -> str:
        self.image_calls.append((image_data, mime_type))
        return self._next()


def json_response(payload: Union[dict, list], status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload), headers={"content-type": "application/json"})


@pytest.fixture
def mock_http() -> Callable[[Handler], httpx.AsyncClient]:
    """Factory for AsyncClients whose requests are answered by `handler`."""

    def factory(handler: Handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def client():
    """Create test client."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def no_server_gemini_key(monkeypatch):
    """Make sure only per-request keys are accepted."""
    monkeypatch.setattr(settings, "gemini_api_key", None)
