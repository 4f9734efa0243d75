"""Ports (interfaces) used by the core router.

Ports define the minimal contracts for messaging and translation adapters so
that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from core.config import Destination


class LocatorResolverPort(Protocol):
    """Resolve a human-readable locator (t.me link, @username) to a peer id."""

    async def resolve_locator(self, locator: str) -> int:
        ...


class MessagingPort(LocatorResolverPort, Protocol):
    """Messaging operations required by the router."""

    async def send(
        self,
        destination: Destination,
        text: str,
        media: Optional[Sequence[Any]] = None,
        reply_to: Optional[int] = None,
    ) -> int:
        ...

    async def edit(self, destination: Destination, message_id: int, text: str) -> None:
        ...


class TranslatorPort(Protocol):
    """Translation operations required by the router."""

    async def translate(self, text: str, instruction: str) -> str:
        ...
