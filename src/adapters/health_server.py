"""Liveness endpoint served with aiohttp.

Runs inside the Telethon event loop; it reports process uptime only and has
no bearing on routing.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from aiohttp import web

LOGGER = logging.getLogger(__name__)

SERVICE_MESSAGE = "Telegram Translator Service is running"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class HealthServer:
    """Small HTTP server exposing ``/`` and ``/health``."""

    def __init__(self, host: str = "0.0.0.0", port: int = 3000) -> None:
        self._host = host
        self._port = port
        self._started = time.monotonic()
        self._runner: Optional[web.AppRunner] = None

    def uptime(self) -> float:
        return time.monotonic() - self._started

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/", self.handle_index)
        app.router.add_get("/health", self.handle_health)
        return app

    async def handle_index(self, request: web.Request) -> web.Response:
        return web.json_response(
            {"status": "ok", "message": SERVICE_MESSAGE, "timestamp": _timestamp()}
        )

    async def handle_health(self, request: web.Request) -> web.Response:
        return web.json_response(
            {"status": "healthy", "uptime": round(self.uptime(), 3), "timestamp": _timestamp()}
        )

    async def start(self) -> None:
        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._host, self._port)
        await site.start()
        LOGGER.info("Health endpoint available at http://%s:%d/health", self._host, self._port)

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
