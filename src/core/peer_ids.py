"""Helpers for working with Telegram peer ids."""

from __future__ import annotations

from typing import Optional

# Channel/supergroup peer ids are rendered as -100<channel_id>.
CHANNEL_PREFIX = "-100"
CHANNEL_OFFSET = 1000000000000


def parse_chat_id(raw: Optional[str]) -> Optional[int]:
    """Parse a configured chat id, returning None for blanks or garbage."""

    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def expand_chat_id_variants(raw_chat_id: int) -> set[int]:
    """Return equivalent chat id variants (peer id, chat id, channel id)."""

    variants: set[int] = {raw_chat_id}
    if raw_chat_id < 0:
        raw_text = str(raw_chat_id)
        if raw_text.startswith(CHANNEL_PREFIX):
            channel_part = raw_text[len(CHANNEL_PREFIX):]
            if channel_part.isdigit():
                variants.add(int(channel_part))
        else:
            variants.add(abs(raw_chat_id))
        return variants

    # raw_chat_id is positive: add PeerChat and PeerChannel-style ids.
    variants.add(-raw_chat_id)
    variants.add(-CHANNEL_OFFSET - raw_chat_id)
    return variants
