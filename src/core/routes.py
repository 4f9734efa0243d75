"""Routing configuration resolver.

Two mutually exclusive shapes are accepted from the environment:

- multi-channel: ``CHANNELS_CONFIG=sourceId:topicId:promptKey,...`` posting
  into topics of ``TARGET_GROUP_ID``
- legacy: one source channel mirrored into one target channel, given either
  as ids (``SOURCE_CHANNEL_ID``/``TARGET_CHANNEL_ID``) or as locators
  (``SOURCE_CHANNEL_URL``/``TARGET_CHANNEL_URL``) resolved via the gateway

Both are normalized into a RoutingConfig so the router never checks the mode.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from core.config import (
    DEFAULT_PROMPT_KEY,
    MODE_LEGACY,
    MODE_MULTI_CHANNEL,
    ConfigError,
    Destination,
    RouteConfig,
    RoutingConfig,
)
from core.peer_ids import parse_chat_id
from core.ports import LocatorResolverPort

LOGGER = logging.getLogger(__name__)

CHANNELS_CONFIG = "CHANNELS_CONFIG"
TARGET_GROUP_ID = "TARGET_GROUP_ID"
SOURCE_CHANNEL_ID = "SOURCE_CHANNEL_ID"
TARGET_CHANNEL_ID = "TARGET_CHANNEL_ID"
SOURCE_CHANNEL_URL = "SOURCE_CHANNEL_URL"
TARGET_CHANNEL_URL = "TARGET_CHANNEL_URL"
PROMPT_KEY = "PROMPT_KEY"


def _get(env: Mapping[str, str], key: str) -> Optional[str]:
    value = env.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_channels_config(raw: str, group_id: int) -> list[RouteConfig]:
    """Parse ``sourceId:topicId:promptKey`` triples, skipping bad entries."""

    routes: list[RouteConfig] = []
    for entry in raw.split(","):
        if not entry.strip():
            continue
        parts = [part.strip() for part in entry.split(":")]
        if len(parts) != 3 or not all(parts):
            LOGGER.warning("Invalid channel config entry: %s", entry.strip())
            continue
        source_raw, topic_raw, prompt_key = parts
        source_id = parse_chat_id(source_raw)
        topic_id = parse_chat_id(topic_raw)
        if source_id is None or topic_id is None:
            LOGGER.warning("Invalid channel config entry (non-numeric id): %s", entry.strip())
            continue
        routes.append(
            RouteConfig(
                source_id=source_id,
                destination=Destination(chat_id=group_id, topic_id=topic_id),
                prompt_key=prompt_key,
            )
        )
    return routes


class ConfigResolver:
    """Build the immutable RoutingConfig from environment-style settings."""

    def __init__(self, locator_resolver: Optional[LocatorResolverPort] = None) -> None:
        self._locator_resolver = locator_resolver

    async def resolve(self, env: Mapping[str, str]) -> RoutingConfig:
        channels_config = _get(env, CHANNELS_CONFIG)
        if channels_config:
            return self._resolve_multi_channel(env, channels_config)
        return await self._resolve_legacy(env)

    def _resolve_multi_channel(self, env: Mapping[str, str], channels_config: str) -> RoutingConfig:
        LOGGER.info("Using multi-channel configuration mode")
        raw_group = _get(env, TARGET_GROUP_ID)
        if raw_group is None:
            raise ConfigError(f"{TARGET_GROUP_ID} is required when using {CHANNELS_CONFIG}")
        group_id = parse_chat_id(raw_group)
        if group_id is None:
            raise ConfigError(f"{TARGET_GROUP_ID} must be an integer, got {raw_group!r}")

        routes = parse_channels_config(channels_config, group_id)
        if not routes:
            raise ConfigError(f"No valid channels configured in {CHANNELS_CONFIG}")

        routing = RoutingConfig(mode=MODE_MULTI_CHANNEL, routes=tuple(routes))
        for route in routing.routes:
            LOGGER.info(
                "Configured channel %s -> topic %s with prompt '%s'",
                route.source_id,
                route.destination.topic_id,
                route.prompt_key,
            )
        return routing

    async def _resolve_legacy(self, env: Mapping[str, str]) -> RoutingConfig:
        LOGGER.info("Using legacy single-channel mode")
        prompt_key = _get(env, PROMPT_KEY) or DEFAULT_PROMPT_KEY

        raw_source = _get(env, SOURCE_CHANNEL_ID)
        raw_target = _get(env, TARGET_CHANNEL_ID)
        if raw_source and raw_target:
            source_id = parse_chat_id(raw_source)
            target_id = parse_chat_id(raw_target)
            if source_id is None or target_id is None:
                raise ConfigError(
                    f"{SOURCE_CHANNEL_ID} and {TARGET_CHANNEL_ID} must be integers"
                )
            LOGGER.info("Using direct channel IDs - Source: %s, Target: %s", source_id, target_id)
            return self._legacy_routing(source_id, target_id, prompt_key)

        source_url = _get(env, SOURCE_CHANNEL_URL)
        target_url = _get(env, TARGET_CHANNEL_URL)
        if not source_url or not target_url:
            raise ConfigError(
                "Missing channel configuration. Provide either "
                f"{SOURCE_CHANNEL_ID} + {TARGET_CHANNEL_ID} or "
                f"{SOURCE_CHANNEL_URL} + {TARGET_CHANNEL_URL}"
            )
        if self._locator_resolver is None:
            raise ConfigError("Channel URLs require a connected messaging gateway to resolve")

        LOGGER.info("Resolving Telegram channel IDs from URLs...")
        try:
            source_id = await self._locator_resolver.resolve_locator(source_url)
            target_id = await self._locator_resolver.resolve_locator(target_url)
        except Exception as exc:
            raise ConfigError(f"Failed to resolve channel URLs: {exc}") from exc

        LOGGER.info(
            "Resolved source channel ID: %s, target channel ID: %s", source_id, target_id
        )
        return self._legacy_routing(source_id, target_id, prompt_key)

    @staticmethod
    def _legacy_routing(source_id: int, target_id: int, prompt_key: str) -> RoutingConfig:
        route = RouteConfig(
            source_id=source_id,
            destination=Destination(chat_id=target_id),
            prompt_key=prompt_key,
        )
        return RoutingConfig(mode=MODE_LEGACY, routes=(route,))
