"""Album aggregation with a quiescence timer.

Telegram delivers an album as a burst of separate messages sharing one
grouped_id, with no "last item" marker. Members are buffered per
(source_id, group_id) and the album is flushed once no new member has
arrived for ``window`` seconds.

``ingest`` has no await points, so appending a member and re-arming the timer
happen atomically with respect to the timer callback on the event loop. Each
album owns its own timer; independent albums never wait on each other.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from core.models import InboundMessage, PendingAlbum

LOGGER = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 1.0

FlushCallback = Callable[[PendingAlbum], Awaitable[None]]


class AlbumAggregator:
    """Collect album members and emit each completed album exactly once."""

    def __init__(self, on_flush: FlushCallback, window: float = DEFAULT_WINDOW_SECONDS) -> None:
        if window <= 0:
            raise ValueError("Album window must be positive")
        self._on_flush = on_flush
        self._window = window
        self._pending: dict[tuple[int, str], PendingAlbum] = {}
        self._flushing: set[asyncio.Task] = set()

    @property
    def window(self) -> float:
        return self._window

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def ingest(self, group_id: str, source_id: int, message: InboundMessage) -> PendingAlbum:
        """Buffer one album member and (re)arm the album's quiescence timer."""

        loop = asyncio.get_running_loop()
        key = (source_id, group_id)
        album = self._pending.get(key)
        if album is None:
            album = PendingAlbum(source_id=source_id, group_id=group_id)
            self._pending[key] = album
        elif album.timer is not None:
            album.timer.cancel()

        album.messages.append(message)
        album.last_activity = loop.time()
        album.timer = loop.call_later(self._window, self._expire, key)

        LOGGER.debug(
            "Collected message %s for group %s from source %s",
            len(album.messages),
            group_id,
            source_id,
        )
        return album

    def update_member(self, source_id: int, group_id: str, message: InboundMessage) -> bool:
        """Replace a buffered member (same message id); False if not buffered."""

        album = self._pending.get((source_id, group_id))
        if album is None:
            return False
        for index, member in enumerate(album.messages):
            if member.message_id == message.message_id:
                album.messages[index] = message
                return True
        return False

    def _expire(self, key: tuple[int, str]) -> None:
        album = self._pending.pop(key, None)
        if album is None:
            return
        album.timer = None
        task = asyncio.get_running_loop().create_task(self._flush(album))
        self._flushing.add(task)
        task.add_done_callback(self._flushing.discard)

    async def _flush(self, album: PendingAlbum) -> None:
        try:
            await self._on_flush(album)
        except Exception:
            LOGGER.exception(
                "Album flush failed for group %s from source %s",
                album.group_id,
                album.source_id,
            )

    async def join(self) -> None:
        """Wait for albums whose flush is already in progress."""

        while self._flushing:
            await asyncio.gather(*list(self._flushing), return_exceptions=True)

    def close(self) -> int:
        """Cancel pending timers; buffered albums are abandoned."""

        abandoned = len(self._pending)
        for album in self._pending.values():
            if album.timer is not None:
                album.timer.cancel()
        self._pending.clear()
        if abandoned:
            LOGGER.warning("Abandoned %s pending albums on shutdown", abandoned)
        return abandoned
