"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the core router.
"""

from __future__ import annotations

from typing import Any, Optional

from telethon.tl.custom import Message
from telethon.tl.types import MessageMediaWebPage

from core.models import InboundMessage


def _media_from_message(message: Message) -> Any:
    media = getattr(message, "media", None)
    # Link previews are rendered by Telegram from the text; they cannot be
    # re-sent as a file.
    if media is None or isinstance(media, MessageMediaWebPage):
        return None
    return media


def _reply_to_id_from_message(message: Message) -> Optional[int]:
    reply_to = getattr(message, "reply_to", None)
    if not reply_to:
        return None
    reply_to_msg_id = getattr(reply_to, "reply_to_msg_id", None)
    # In forum chats a message inside a topic "replies" to the topic root;
    # that is thread membership, not a reply.
    if getattr(reply_to, "forum_topic", False):
        top_id = getattr(reply_to, "reply_to_top_id", None)
        if top_id is None:
            return None
    return reply_to_msg_id


def _group_id_from_message(message: Message) -> Optional[str]:
    grouped_id = getattr(message, "grouped_id", None)
    if grouped_id is None:
        return None
    return str(grouped_id)


def build_inbound(message: Message) -> InboundMessage:
    """Build a core InboundMessage from a Telethon Message."""

    return InboundMessage(
        source_id=message.chat_id,
        message_id=message.id,
        text=getattr(message, "message", None) or "",
        media=_media_from_message(message),
        group_id=_group_id_from_message(message),
        reply_to_id=_reply_to_id_from_message(message),
    )
