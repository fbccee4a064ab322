"""
Shared fixtures: fake time/search services on an httpx MockTransport, a recording
chat model, and a TestClient with the collaborators swapped in.
"""
from __future__ import annotations

import json
import os

# Settings are read at import; keep test runs from writing app.log
os.environ["LOG_FILE"] = ""

import httpx
import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from relay.api.chat import get_http_client, get_model_factory, get_search_api_key
from relay.config import settings
from relay.limits import limiter
from relay.main import create_app

TIME_HOST = httpx.URL(settings.time_api_url).host
SEARCH_HOST = httpx.URL(settings.search_api_url).host
WORLD_TIME_BODY = {
    "timezone": "Etc/UTC",
    "datetime": "2026-10-19T15:04:05.123456+00:00",
    "utc_offset": "+00:00",
}


class FakeServices:
    """Stand-in for the time and search services; records every call."""

    def __init__(
        self,
        time_body: object = WORLD_TIME_BODY,
        time_status: int = 200,
        time_error: Exception | None = None,
        search_answer: str | None = "Sunny, 72F",
        search_status: int = 200,
        search_error: Exception | None = None,
    ) -> None:
        self.time_body = time_body
        self.time_status = time_status
        self.time_error = time_error
        self.search_answer = search_answer
        self.search_status = search_status
        self.search_error = search_error
        self.time_calls: list[httpx.Request] = []
        self.search_calls: list[dict] = []
        self.search_timeouts: list[dict] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == TIME_HOST:
            self.time_calls.append(request)
            if self.time_error is not None:
                raise self.time_error
            return httpx.Response(self.time_status, json=self.time_body)
        if request.url.host == SEARCH_HOST:
            self.search_calls.append(json.loads(request.content))
            self.search_timeouts.append(request.extensions["timeout"])
            if self.search_error is not None:
                raise self.search_error
            body = {"query": "", "results": []}
            if self.search_answer is not None:
                body["answer"] = self.search_answer
            return httpx.Response(self.search_status, json=body)
        return httpx.Response(404)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class RecordingChatModel:
    """Duck-typed chat model: records the messages it receives, replies or raises."""

    def __init__(self, reply: str = "Hello from the model", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[list] = []

    async def ainvoke(self, messages):
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.reply)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Counts live in the shared in-memory limiter; start every test from zero."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def services() -> FakeServices:
    return FakeServices()


@pytest.fixture
def model() -> RecordingChatModel:
    return RecordingChatModel()


@pytest.fixture
def make_client():
    """Build a TestClient wired to the given fakes."""

    def _make(
        services: FakeServices,
        model: RecordingChatModel,
        search_api_key: str | None = "test-key",
        model_factory=None,
    ) -> TestClient:
        app = create_app()

        async def _http_client():
            async with services.client() as client:
                yield client

        app.dependency_overrides[get_http_client] = _http_client
        app.dependency_overrides[get_search_api_key] = lambda: search_api_key
        app.dependency_overrides[get_model_factory] = lambda: model_factory or (lambda: model)
        return TestClient(app, raise_server_exceptions=False)

    return _make


@pytest.fixture
def client(make_client, services, model) -> TestClient:
    return make_client(services, model)
