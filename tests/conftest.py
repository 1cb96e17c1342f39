import asyncio
import os
import sys

import httpx
import pytest
from fastapi.testclient import TestClient

# Project root — needed for `import route_planner` without an install
_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _root not in sys.path:
    sys.path.insert(0, _root)

from route_planner.config import Settings
from route_planner.main import create_app

UPSTREAM_URL = "https://openrouter.test/api/v1/chat/completions"

SAMPLE_PLAN = {
    "source": "Delhi",
    "destination": "Goa",
    "budget": 20000,
    "days": [
        {"day": 1, "activities": "Fly to Goa, evening at Baga Beach", "expenses": {"travel": 6000, "food": 800}},
        {"day": 2, "activities": ["Fort Aguada", "Old Goa churches"], "expenses": {"hotel": "2,500", "food": 700}},
    ],
}


def completion_envelope(content):
    return {
        "id": "gen-test",
        "model": "anthropic/claude-3-haiku",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
        ],
    }


class TrackingStream(httpx.AsyncByteStream):
    """Async byte stream that records whether it was closed."""

    def __init__(self, chunks, stall=False, fail=False):
        self.chunks = chunks
        self.stall = stall
        self.fail = fail
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.fail:
            raise httpx.ReadError("connection reset by peer")
        if self.stall:
            await asyncio.sleep(30)

    async def aclose(self):
        self.closed = True


class StubUpstream:
    """httpx.MockTransport handler that records requests and delegates to `respond`."""

    def __init__(self):
        self.calls = []
        self.respond = lambda request: httpx.Response(500, text="no stub configured")

    def __call__(self, request: httpx.Request):
        self.calls.append(request)
        return self.respond(request)


@pytest.fixture
def settings():
    return Settings(
        OPENROUTER_API_KEY="test-key",
        OPENROUTER_API_URL=UPSTREAM_URL,
        OPENROUTER_REFERER="http://localhost:8080",
        OPENROUTER_TITLE="Route Planner Tests",
        REQUEST_TIMEOUT_SECONDS=5,
        STREAM_DEADLINE_SECONDS=5,
        STREAMING_ENABLED=True,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def upstream():
    return StubUpstream()


@pytest.fixture
def make_client(upstream):
    """Build a TestClient around create_app with the stubbed upstream transport."""
    clients = []

    def _make(app_settings):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
        client = TestClient(create_app(app_settings, http_client))
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client, settings):
    return make_client(settings)
