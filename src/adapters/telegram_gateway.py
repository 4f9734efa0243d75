"""Telethon messaging adapter.

Implements the core MessagingPort on top of a connected TelegramClient.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from telethon import utils

from core.config import Destination

LOGGER = logging.getLogger(__name__)


def _head_message_id(sent: Any) -> int:
    # send_file returns a list of messages for albums; the first carries the caption.
    if isinstance(sent, (list, tuple)):
        if not sent:
            raise RuntimeError("Telegram returned no messages for an album send")
        sent = sent[0]
    message_id = getattr(sent, "id", None)
    if message_id is None:
        raise RuntimeError("Telegram did not return a message id")
    return int(message_id)


class TelethonMessenger:
    """Messaging adapter that posts, edits and resolves via Telethon."""

    def __init__(self, client) -> None:
        self._client = client

    async def send(
        self,
        destination: Destination,
        text: str,
        media: Optional[Sequence[Any]] = None,
        reply_to: Optional[int] = None,
    ) -> int:
        """Post text (and media) to a channel or a forum topic."""

        # Forum topics are addressed by replying to the topic root message.
        reply_target = reply_to if reply_to is not None else destination.topic_id

        if media:
            files = list(media)
            sent = await self._client.send_file(
                destination.chat_id,
                files if len(files) > 1 else files[0],
                caption=text,
                reply_to=reply_target,
            )
        else:
            sent = await self._client.send_message(
                destination.chat_id,
                text,
                reply_to=reply_target,
            )
        return _head_message_id(sent)

    async def edit(self, destination: Destination, message_id: int, text: str) -> None:
        await self._client.edit_message(destination.chat_id, message_id, text)

    async def resolve_locator(self, locator: str) -> int:
        """Resolve a t.me link or @username to a marked peer id."""

        entity = await self._client.get_entity(locator)
        peer_id = utils.get_peer_id(entity)
        LOGGER.debug("Resolved %s to %s", locator, peer_id)
        return peer_id
