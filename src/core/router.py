"""Core message routing pipeline.

The router enforces a strict order for every unit of work:
1) Resolve the source to its route (unconfigured sources are ignored)
2) Album members go to the aggregator; the album resumes here once complete
3) Extract text (first member that has any) and media (all members)
4) Resolve the reply target through the source's correlation store
5) Translate the text with the route's prompt
6) Post to the route's destination
7) Record source -> destination ids for later replies and edits

This module is integration-agnostic. It only relies on ports for messaging
and translation, so adapters can be swapped without changes here.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from core.albums import DEFAULT_WINDOW_SECONDS, AlbumAggregator
from core.config import RouteConfig, RoutingConfig
from core.correlation import MessageCorrelationStore
from core.models import InboundMessage, PendingAlbum
from core.ports import MessagingPort, TranslatorPort
from core.prompts import PromptCatalog

LOGGER = logging.getLogger(__name__)

PREVIEW_CHARS = 80


def _preview(text: str) -> str:
    if not text:
        return "(no text)"
    flat = " ".join(text.split())
    if len(flat) <= PREVIEW_CHARS:
        return flat
    return f"{flat[:PREVIEW_CHARS]}..."


class MessageRouter:
    """Orchestrates aggregation, translation, forwarding and correlation."""

    def __init__(
        self,
        routing: RoutingConfig,
        prompts: PromptCatalog,
        translator: TranslatorPort,
        messenger: MessagingPort,
        album_window: float = DEFAULT_WINDOW_SECONDS,
        correlation_limit: Optional[int] = None,
    ) -> None:
        self._routing = routing
        self._prompts = prompts
        self._translator = translator
        self._messenger = messenger
        self._albums = AlbumAggregator(self._handle_album, window=album_window)
        # Telegram message ids are only unique per chat, so correlations are
        # sharded by source.
        self._correlations: dict[int, MessageCorrelationStore] = {
            route.source_id: MessageCorrelationStore(max_entries=correlation_limit)
            for route in routing.routes
        }
        self._locks: dict[int, asyncio.Lock] = {}

    @property
    def albums(self) -> AlbumAggregator:
        return self._albums

    def correlations(self, source_id: int) -> Optional[MessageCorrelationStore]:
        """Return the correlation store for a source (any peer id form)."""

        route = self._routing.route_for(source_id)
        if route is None:
            return None
        return self._correlations[route.source_id]

    def _lock_for(self, route: RouteConfig) -> asyncio.Lock:
        lock = self._locks.get(route.source_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[route.source_id] = lock
        return lock

    async def handle_new(self, message: InboundMessage) -> None:
        """Process one new source message."""

        route = self._routing.route_for(message.source_id)
        if route is None:
            return

        if message.group_id:
            self._albums.ingest(message.group_id, route.source_id, message)
            return

        async with self._lock_for(route):
            try:
                await self._forward(route, [message])
            except Exception:
                LOGGER.exception(
                    "Failed to forward message %s from source %s",
                    message.message_id,
                    route.source_id,
                )

    async def _handle_album(self, album: PendingAlbum) -> None:
        route = self._routing.route_for(album.source_id)
        if route is None:
            return

        LOGGER.info(
            "Processing grouped messages (%s items) for group %s from source %s",
            len(album.messages),
            album.group_id,
            route.source_id,
        )
        async with self._lock_for(route):
            try:
                await self._forward(route, album.messages, group_id=album.group_id)
            except Exception:
                LOGGER.exception(
                    "Failed to forward album %s (%s items) from source %s",
                    album.group_id,
                    len(album.messages),
                    route.source_id,
                )

    async def _forward(
        self,
        route: RouteConfig,
        members: Sequence[InboundMessage],
        group_id: Optional[str] = None,
    ) -> Optional[int]:
        """Translate and post one single message or completed album."""

        text = next((member.text for member in members if member.text), "")
        media = [member.media for member in members if member.has_media]
        head = members[0]

        if not text and not media:
            LOGGER.info(
                "Message %s from source %s has no text or media, skipping",
                head.message_id,
                route.source_id,
            )
            return None

        LOGGER.info(
            "New %s from source %s (%s media): %s",
            f"album {group_id}" if group_id else f"message {head.message_id}",
            route.source_id,
            len(media),
            _preview(text),
        )

        store = self._correlations[route.source_id]
        reply_to = self._resolve_reply(store, members, route)

        translated = ""
        if text:
            instruction = self._prompts.lookup(route.prompt_key)
            translated = await self._translator.translate(text, instruction)

        destination_id = await self._messenger.send(
            route.destination,
            translated,
            media=media or None,
            reply_to=reply_to,
        )

        # Every member points at the album head so edits/replies to any
        # member resolve to the captioned destination message.
        for member in members:
            store.record(member.message_id, destination_id)

        LOGGER.info(
            "Posted source %s/%s -> %s message %s",
            route.source_id,
            head.message_id,
            route.destination.describe(),
            destination_id,
        )
        return destination_id

    @staticmethod
    def _resolve_reply(
        store: MessageCorrelationStore,
        members: Sequence[InboundMessage],
        route: RouteConfig,
    ) -> Optional[int]:
        reply_to_id = next(
            (member.reply_to_id for member in members if member.reply_to_id is not None),
            None,
        )
        if reply_to_id is None:
            return None

        target = store.lookup(reply_to_id)
        if target is None:
            LOGGER.warning(
                "Message from source %s replies to %s, but no mapping found in destination",
                route.source_id,
                reply_to_id,
            )
            return None

        LOGGER.debug("Reply to source message %s maps to destination message %s", reply_to_id, target)
        return target

    async def handle_edit(self, message: InboundMessage) -> None:
        """Apply a source edit to the forwarded destination message."""

        route = self._routing.route_for(message.source_id)
        if route is None:
            return

        # The album has not been posted yet; patch the buffered member instead.
        if message.group_id and self._albums.update_member(
            route.source_id, message.group_id, message
        ):
            LOGGER.info(
                "Edited message %s updated in pending group %s", message.message_id, message.group_id
            )
            return

        async with self._lock_for(route):
            try:
                await self._apply_edit(route, message)
            except Exception:
                LOGGER.exception(
                    "Failed to apply edit of message %s from source %s",
                    message.message_id,
                    route.source_id,
                )

    async def _apply_edit(self, route: RouteConfig, message: InboundMessage) -> None:
        store = self._correlations[route.source_id]
        destination_id = store.lookup(message.message_id)
        if destination_id is None:
            LOGGER.warning(
                "No mapping found for edited message %s from source %s, skipping edit",
                message.message_id,
                route.source_id,
            )
            return

        # Only one album member carries the caption; an edit of a captionless
        # member must not wipe it.
        if message.group_id and not message.text:
            LOGGER.info(
                "Edited album member %s has no caption, leaving %s unchanged",
                message.message_id,
                destination_id,
            )
            return

        translated = ""
        if message.text:
            instruction = self._prompts.lookup(route.prompt_key)
            translated = await self._translator.translate(message.text, instruction)

        await self._messenger.edit(route.destination, destination_id, translated)
        LOGGER.info(
            "Message %s edited in %s (source %s/%s)",
            destination_id,
            route.destination.describe(),
            route.source_id,
            message.message_id,
        )

    async def join(self) -> None:
        """Wait for album flushes already in progress."""

        await self._albums.join()

    def close(self) -> None:
        self._albums.close()
