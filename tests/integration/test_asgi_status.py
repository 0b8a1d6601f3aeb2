"""Integration tests for the ASGI status endpoint."""

from typing import Any

import httpx
import pytest

from statsrelay.adapters.frameworks.asgi import create_status_app
from statsrelay.adapters.transport.in_memory import InMemoryPayloadSender
from statsrelay.core.config import RelayConfig
from statsrelay.relay import Relay
from tests.support import REDIS_RULE_CONFIG


@pytest.fixture
def relay() -> Relay:
    """Relay with the redis rule and an in-memory sender."""
    config = RelayConfig.from_mapping({"rules": [REDIS_RULE_CONFIG]})
    return Relay(config, sender=InMemoryPayloadSender(), startup_time=1000)


def _client(relay: Relay) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=create_status_app(relay)),
        base_url="http://test",
    )


class TestStatusEndpoint:
    """Tests for GET /status."""

    @pytest.mark.asgi
    @pytest.mark.tier(2)
    async def test_status_returns_json_stats(self, relay: Relay) -> None:
        async with _client(relay) as client:
            response = await client.get("/status")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {
            "last_flush": 1000,
            "last_exception": 1000,
            "flush_time": None,
            "flush_length": None,
        }

    @pytest.mark.asgi
    @pytest.mark.tier(2)
    async def test_status_reflects_latest_flush(
        self, relay: Relay, redis_snapshot: dict[str, Any]
    ) -> None:
        relay.flush(12345, redis_snapshot)

        async with _client(relay) as client:
            response = await client.get("/status")

        assert response.json()["flush_length"] == relay.stats.flush_length
        assert response.json()["flush_length"] > 0

    @pytest.mark.asgi
    @pytest.mark.tier(2)
    async def test_unknown_path_returns_404(self, relay: Relay) -> None:
        async with _client(relay) as client:
            response = await client.get("/metrics")
        assert response.status_code == 404

    @pytest.mark.asgi
    @pytest.mark.tier(2)
    async def test_post_to_status_returns_405(self, relay: Relay) -> None:
        async with _client(relay) as client:
            response = await client.post("/status")
        assert response.status_code == 405

    @pytest.mark.asgi
    @pytest.mark.tier(2)
    async def test_status_error_returns_500(
        self, relay: Relay, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def broken(write: Any) -> None:
            raise RuntimeError("stats unavailable")

        monkeypatch.setattr(relay, "status", broken)
        async with _client(relay) as client:
            response = await client.get("/status")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal Server Error"}
