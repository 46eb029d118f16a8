from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict

import httpx
import pytest

TEST_ROOT = Path(__file__).resolve().parent

# Overrides must be in the environment before test.settings is imported
try:  # pragma: no cover
    from dotenv import load_dotenv

    load_dotenv(TEST_ROOT / ".env", override=False)
    load_dotenv(TEST_ROOT / ".env.example", override=False)
except ImportError:
    pass

from test.settings import test_settings

OFFLINE_ALLOWED_HOSTS = frozenset({"mock", "localhost", "127.0.0.1"})


@pytest.fixture(scope="session")
def test_config():
    """Fixture providing test configuration from Pydantic settings model.

    Returns:
        TestSettings: Test configuration with all environment variables loaded
    """
    return test_settings


@pytest.fixture
def runtime_settings(test_config):
    """Runtime settings with short readiness polling and no settle delays."""
    return test_config.runtime_settings()


@pytest.fixture
def mock_http() -> Callable[[Dict[str, object]], httpx.AsyncClient]:
    """Build an ``httpx.AsyncClient`` answering ``http://mock/<path>`` from a route table of JSON bodies."""

    def factory(routes: Dict[str, object]) -> httpx.AsyncClient:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path not in routes:
                return httpx.Response(404, json={"error": f"no route for {request.url.path}"})
            return httpx.Response(200, json=routes[request.url.path])

        return httpx.AsyncClient(base_url="http://mock", transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture(autouse=True)
def _offline_http_guard(monkeypatch: pytest.MonkeyPatch):
    """Tool scripts get a real ``httpx.AsyncClient``; keep every test off the network."""
    original_send = httpx.AsyncClient.send
    original_sync_send = httpx.Client.send

    def _check(request: httpx.Request) -> None:
        if request.url.host not in OFFLINE_ALLOWED_HOSTS:
            raise RuntimeError(f"External HTTP blocked in tests: {request.url}")

    async def offline_send(self, request, *args, **kwargs):
        _check(request)
        return await original_send(self, request, *args, **kwargs)

    def offline_sync_send(self, request, *args, **kwargs):
        _check(request)
        return original_sync_send(self, request, *args, **kwargs)

    monkeypatch.setattr(httpx.AsyncClient, "send", offline_send)
    monkeypatch.setattr(httpx.Client, "send", offline_sync_send)
