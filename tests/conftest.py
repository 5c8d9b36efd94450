"""Shared fixtures: isolated config and httpx mock transports."""

import json
from typing import Callable

import httpx
import pytest

from roo_bridge import config
from roo_bridge.backend import BackendClient

CONFIG_ENV = (
    "ROO_BRIDGE_CONFIG",
    "HOST",
    "port",
    "PORT",
    "ROOLLM_URL",
    "ROOLLM_SPAWN",
    "LOG_LEVEL",
    "MicrosoftAppId",
    "MicrosoftAppPassword",
    "MicrosoftAppType",
    "MicrosoftAppTenantId",
)

BACKEND_URL = "http://backend.test/chat"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Run every test with no config file and no config environment."""
    for name in CONFIG_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    config.load_config.cache_clear()
    yield
    config.load_config.cache_clear()


def sse_body(*events, prefix: str = "data: ") -> bytes:
    """Encode events (dicts or raw strings) as newline-delimited stream frames."""
    lines = []
    for ev in events:
        lines.append(ev if isinstance(ev, str) else prefix + json.dumps(ev))
    return ("\n".join(lines) + "\n").encode("utf-8")


@pytest.fixture
def sse():
    return sse_body


@pytest.fixture
def make_backend() -> Callable[..., BackendClient]:
    """Build a BackendClient whose HTTP traffic goes to `handler`."""

    def _make(handler) -> BackendClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return BackendClient(url=BACKEND_URL, client=http)

    return _make


@pytest.fixture
def reply_backend(make_backend):
    """Backend that answers every message with reply frames echoing it."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return httpx.Response(
            200,
            content=sse_body(
                {"type": "status", "content": "thinking"},
                {"type": "reply", "content": "echo: "},
                {"type": "reply", "content": body["message"]},
            ),
        )

    return make_backend(handler)
