"""Shared test fixtures.

Keeps tests away from the real network and the user's data directories.
"""

from __future__ import annotations

import json
from unittest.mock import patch

import httpx
import pytest

from focusbloom.models.config_models import APIConfig, AppConfig
from focusbloom.services.storage import MemoryStore

API_BASE = "https://api.test/api"


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture()
def store():
    """Empty in-memory key-value store."""
    return MemoryStore()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def api_config():
    """API config pointing at a non-placeholder host, no retries or delays."""
    return APIConfig(
        base_url=API_BASE,
        timeout_ms=1000,
        retry_attempts=0,
        retry_delay_ms=0,
    )


@pytest.fixture()
def app_config(api_config):
    config = AppConfig(api=api_config)
    config.sync.probe_url = "https://probe.test/favicon.ico"
    config.sync.probe_timeout_ms = 200
    return config


@pytest.fixture()
def tmp_config_service(tmp_path):
    """Real ConfigService backed by a temporary directory."""
    from focusbloom.services.config_service import ConfigService, get_config_service

    get_config_service.cache_clear()
    with patch("focusbloom.services.config_service.user_data_dir", return_value=str(tmp_path)):
        svc = ConfigService(config_dir=tmp_path / "config")
        yield svc
    get_config_service.cache_clear()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Strip FOCUSBLOOM_* overrides from the environment."""
    from focusbloom.services.config_service import ENV_OVERRIDES

    for var in ENV_OVERRIDES:
        monkeypatch.delenv(var, raising=False)


class FakeBackend:
    """Session API and probe endpoint served through httpx.MockTransport."""

    def __init__(self):
        self.online = True
        self.api_requests: list = []
        self.next_id = 1

    def probe(self, request):
        return httpx.Response(200 if self.online else 503)

    def api(self, request):
        if not self.online:
            raise httpx.ConnectError("offline", request=request)
        self.api_requests.append(request)
        path = request.url.path.removeprefix("/api")
        if request.method == "POST" and path == "/sessions":
            body = json.loads(request.content)
            session = {
                "id": f"srv-{self.next_id}",
                "duration": body["duration"],
                "type": body["type"],
                "startTime": body["startTime"],
            }
            self.next_id += 1
            return httpx.Response(
                200, json={"success": True, "data": {"session": session}, "message": "Session created"}
            )
        if request.method == "GET" and path == "/sessions/stats":
            return httpx.Response(
                200, json={"success": True, "data": {"stats": {"totalSessions": 3}}}
            )
        if request.method == "GET" and path == "/sessions":
            return httpx.Response(200, json={"success": True, "data": {"sessions": []}})
        return httpx.Response(200, json={"success": True, "data": {}, "message": "OK"})

    def build(self, config, store):
        from focusbloom.services.container import ServiceContainer

        return ServiceContainer.create(
            config,
            store,
            api_transport=httpx.MockTransport(self.api),
            probe_transport=httpx.MockTransport(self.probe),
        )


@pytest.fixture()
def backend():
    return FakeBackend()


@pytest.fixture()
def cli_container(backend, app_config, store):
    """Patch command modules to build containers over a shared in-memory store."""

    def factory():
        return backend.build(app_config, store)

    with patch("focusbloom.commands.session.build_container", side_effect=factory), patch(
        "focusbloom.commands.sync.build_container", side_effect=factory
    ):
        yield backend
