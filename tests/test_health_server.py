from __future__ import annotations

import asyncio

from aiohttp.test_utils import TestClient, TestServer

from adapters.health_server import HealthServer


def _get(path: str) -> tuple[int, dict]:
    async def scenario() -> tuple[int, dict]:
        server = HealthServer()
        async with TestClient(TestServer(server.build_app())) as client:
            response = await client.get(path)
            return response.status, await response.json()

    return asyncio.run(scenario())


def test_health_reports_uptime() -> None:
    status, body = _get("/health")

    assert status == 200
    assert body["status"] == "healthy"
    assert body["uptime"] >= 0
    assert "timestamp" in body


def test_index_reports_running() -> None:
    status, body = _get("/")

    assert status == 200
    assert body["status"] == "ok"
    assert "running" in body["message"]
