from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import Settings
from app.core.dependencies import get_http_client, get_settings
from app.main import app

TEST_API_KEY = "test-gemini-key"
TEST_API_BASE = "https://gemini.test/v1beta/models"


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the environment, with instant retries."""
    values: dict[str, Any] = {
        "gemini_api_key": TEST_API_KEY,
        "gemini_api_base": TEST_API_BASE,
        "upstream_base_retry_delay": 0.0,
        "upstream_max_jitter": 0.0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def gemini_image_body(data: str = "R0lGODlhAQABAAAAACw=", mime_type: str = "image/png") -> dict:
    return {
        "candidates": [
            {
                "content": {
                    "role": "model",
                    "parts": [
                        {"text": "Here is your sticker."},
                        {"inlineData": {"mimeType": mime_type, "data": data}},
                    ],
                },
                "finishReason": "STOP",
            }
        ]
    }


def gemini_blocked_body(probability: str = "HIGH") -> dict:
    return {
        "candidates": [
            {
                "finishReason": "SAFETY",
                "safetyRatings": [
                    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "probability": probability},
                ],
            }
        ]
    }


class FakeUpstream:
    """Scripted upstream for httpx.MockTransport.

    Each queued item is an exception to raise or a ``(status, body)`` pair;
    the last item repeats once the script runs out.
    """

    def __init__(self):
        self.script: list[Any] = []
        self.requests: list[httpx.Request] = []

    def queue(self, *items: Any) -> "FakeUpstream":
        self.script.extend(items)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        status, body = item
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def calls(self) -> int:
        return len(self.requests)


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
async def http_client(upstream: FakeUpstream) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=upstream.transport) as c:
        yield c


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
async def client(http_client: httpx.AsyncClient, test_settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_http_client] = lambda: http_client
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def valid_body() -> dict:
    return {
        "promptText": "Turn this photo into a cartoon sticker waving hello",
        "image": {"data": "iVBORw0KGgoAAAANSUhEUg==", "mimeType": "image/png"},
        "model": "gemini-2.5-flash-image-preview",
    }
