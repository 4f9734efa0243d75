"""Core routing dataclasses.

Environment parsing lives in core.routes; these dataclasses define the
shape the router expects so both configuration modes normalize to one
structure at load time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from core.peer_ids import expand_chat_id_variants

LOGGER = logging.getLogger(__name__)

MODE_LEGACY = "legacy"
MODE_MULTI_CHANNEL = "multi_channel"

DEFAULT_PROMPT_KEY = "default"


class ConfigError(RuntimeError):
    """Fatal configuration problem; the process cannot start."""


@dataclass(frozen=True)
class Destination:
    """Where translated posts go: a flat channel or a forum topic."""

    chat_id: int
    topic_id: Optional[int] = None

    @property
    def is_topic(self) -> bool:
        return self.topic_id is not None

    def describe(self) -> str:
        if self.topic_id is None:
            return f"chat {self.chat_id}"
        return f"chat {self.chat_id} / topic {self.topic_id}"


@dataclass(frozen=True)
class RouteConfig:
    """Routing policy for a single configured source."""

    source_id: int
    destination: Destination
    prompt_key: str = DEFAULT_PROMPT_KEY


@dataclass(frozen=True)
class RoutingConfig:
    """All configured routes plus an O(1) index by any peer id form."""

    mode: str
    routes: tuple[RouteConfig, ...]
    _index: dict[int, RouteConfig] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        index: dict[int, RouteConfig] = {}
        kept: list[RouteConfig] = []
        for route in self.routes:
            variants = expand_chat_id_variants(route.source_id)
            owner = next((index[v] for v in variants if v in index), None)
            if owner is not None:
                LOGGER.warning(
                    "Duplicate route for source %s ignored (already routed to %s)",
                    route.source_id,
                    owner.destination.describe(),
                )
                continue
            for variant in variants:
                index[variant] = route
            kept.append(route)
        object.__setattr__(self, "routes", tuple(kept))
        object.__setattr__(self, "_index", index)

    def route_for(self, chat_id: Optional[int]) -> Optional[RouteConfig]:
        """Return the route for a chat id as reported by Telegram, if any."""

        if chat_id is None:
            return None
        return self._index.get(chat_id)

    @property
    def source_ids(self) -> list[int]:
        return [route.source_id for route in self.routes]
