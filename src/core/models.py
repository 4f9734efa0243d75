"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class InboundMessage:
    """Minimal view of a source message used by the router."""

    source_id: int
    message_id: int
    text: str = ""
    # Opaque media payload, passed through to the messaging gateway untouched.
    media: Any = None
    group_id: Optional[str] = None
    reply_to_id: Optional[int] = None

    @property
    def has_media(self) -> bool:
        return self.media is not None


@dataclass
class PendingAlbum:
    """Album members collected while waiting for the quiescence window."""

    source_id: int
    group_id: str
    messages: list[InboundMessage] = field(default_factory=list)
    last_activity: float = 0.0
    timer: Optional[asyncio.TimerHandle] = field(default=None, repr=False, compare=False)

    @property
    def key(self) -> tuple[int, str]:
        return (self.source_id, self.group_id)
