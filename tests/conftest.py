"""
Shared fixtures for gateway tests.

Upstream services are simulated with ``httpx.MockTransport`` injected
into the gateway's ``httpx.AsyncClient``; no test touches the network.
"""

import inspect
from typing import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from gateway.core.config import Settings
from gateway.main import create_app

FINANCIAL_HOST = "stock.indianapi.in"
COMPLETION_HOST = "api.perplexity.ai"
COMPLETION_PATH = "/chat/completions"


def build_settings(**overrides) -> Settings:
    values = {
        "financial_api_key": "test-financial-key",
        "completion_api_key": "test-completion-key",
        "rate_limit_enabled": False,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


class UpstreamStub:
    """Scripted upstream: routes (host, path) to a responder and records calls."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Callable] = {}
        self.calls: list[httpx.Request] = []

    def add(self, host: str, path: str, responder: Callable) -> None:
        self.routes[(host, path)] = responder

    def financial(self, path: str, responder: Callable) -> None:
        self.add(FINANCIAL_HOST, path, responder)

    def completion(self, responder: Callable) -> None:
        self.add(COMPLETION_HOST, COMPLETION_PATH, responder)

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.calls if r.url.path == path]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        responder = self.routes.get((request.url.host, request.url.path))
        if responder is None:
            return httpx.Response(599, text="no stub for " + request.url.path)
        result = responder(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture
def build_client(upstream):
    """Factory for a TestClient over a fresh app; settings overrides as kwargs."""
    clients: list[TestClient] = []

    def build(raise_server_exceptions: bool = True, **overrides) -> TestClient:
        app = create_app(build_settings(**overrides), transport=upstream.transport())
        client = TestClient(app, raise_server_exceptions=raise_server_exceptions)
        client.__enter__()
        clients.append(client)
        return client

    yield build
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(build_client) -> TestClient:
    return build_client()
