"""Shared pytest fixtures for the workflow orchestrator test suite.

Provides:
- A scripted chat client (no Anthropic API calls)
- An HTTP client backed by httpx.MockTransport that records requests
- A WorkflowService wired to both
- FastAPI test client (httpx.AsyncClient over ASGITransport)
"""

import json
import os
from typing import AsyncGenerator, Callable, List, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Override settings BEFORE any app imports
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("ANTHROPIC_API_KEY", "")

from app.config import get_settings  # noqa: E402
from integrations.claude_client import ChatResponse  # noqa: E402
from integrations.http_client import HttpClient  # noqa: E402
from services.workflow_service import WorkflowService  # noqa: E402


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeChatClient:
    """Chat client returning queued replies and recording every call."""

    is_configured = True
    is_connected = False

    def __init__(self, replies: Optional[List[str]] = None, default: str = "ok"):
        self.replies = list(replies or [])
        self.default = default
        self.calls: list[dict] = []
        self.error: Optional[Exception] = None

    async def chat(self, messages, max_tokens, temperature):
        self.calls.append({"messages": messages, "max_tokens": max_tokens, "temperature": temperature})
        if self.error is not None:
            raise self.error
        content = self.replies.pop(0) if self.replies else self.default
        return ChatResponse(content=content, usage={"input_tokens": 1, "output_tokens": 1})

    async def disconnect(self):
        pass


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def last_json(self):
        return json.loads(self.requests[-1].content)


def echo_handler(request: httpx.Request) -> httpx.Response:
    """Echo method, path and JSON body back."""
    body = json.loads(request.content) if request.content else None
    return httpx.Response(
        200,
        json={"method": request.method, "path": request.url.path, "body": body},
    )


# ---------------------------------------------------------------------------
# Service fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport(echo_handler)


@pytest.fixture
def http_client(transport) -> HttpClient:
    return HttpClient(timeout=5.0, transport=transport)


@pytest.fixture
def service(chat_client, http_client) -> WorkflowService:
    return WorkflowService(chat_client=chat_client, http_client=http_client)


# ---------------------------------------------------------------------------
# App / HTTP client fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def app(service):
    """FastAPI app whose service dependency is the test service."""
    from app.dependencies import get_workflow_service, reset_workflow_service
    from app.main import create_app

    test_app = create_app()
    test_app.dependency_overrides[get_workflow_service] = lambda: service

    yield test_app

    test_app.dependency_overrides.clear()
    reset_workflow_service()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac
