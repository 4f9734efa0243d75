from __future__ import annotations

import asyncio
import logging

import pytest

from core.config import MODE_LEGACY, MODE_MULTI_CHANNEL, ConfigError, Destination
from core.routes import ConfigResolver, parse_channels_config


class FakeLocatorResolver:
    def __init__(self, ids: dict[str, int]) -> None:
        self._ids = ids
        self.calls: list[str] = []

    async def resolve_locator(self, locator: str) -> int:
        self.calls.append(locator)
        if locator not in self._ids:
            raise ValueError(f"Cannot find any entity corresponding to {locator}")
        return self._ids[locator]


def _resolve(env: dict[str, str], resolver=None):
    return asyncio.run(ConfigResolver(resolver).resolve(env))


def test_multi_channel_routes_to_topics() -> None:
    routing = _resolve(
        {
            "CHANNELS_CONFIG": "100:5:news, -100200:7:casual",
            "TARGET_GROUP_ID": "-100999",
        }
    )

    assert routing.mode == MODE_MULTI_CHANNEL
    assert len(routing.routes) == 2
    first = routing.route_for(100)
    assert first is not None
    assert first.destination == Destination(chat_id=-100999, topic_id=5)
    assert first.prompt_key == "news"
    second = routing.route_for(-100200)
    assert second is not None
    assert second.destination.topic_id == 7
    assert second.prompt_key == "casual"


def test_route_lookup_accepts_equivalent_peer_ids() -> None:
    routing = _resolve({"CHANNELS_CONFIG": "200:7:news", "TARGET_GROUP_ID": "-100999"})

    # Telethon reports channel chat ids in the marked -100 form.
    assert routing.route_for(-1000000000200) is routing.route_for(200)
    assert routing.route_for(201) is None


def test_malformed_entries_are_skipped(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        routing = _resolve(
            {
                "CHANNELS_CONFIG": "100:5:news,bad,101::news,abc:5:news,102:6:",
                "TARGET_GROUP_ID": "-100999",
            }
        )

    assert routing.source_ids == [100]
    assert "Invalid channel config entry" in caplog.text


def test_duplicate_source_keeps_first_route() -> None:
    routing = _resolve(
        {"CHANNELS_CONFIG": "100:5:news,-1000000000100:9:other", "TARGET_GROUP_ID": "1"}
    )

    assert len(routing.routes) == 1
    route = routing.route_for(100)
    assert route is not None
    assert route.destination.topic_id == 5


def test_multi_channel_requires_target_group() -> None:
    with pytest.raises(ConfigError, match="TARGET_GROUP_ID"):
        _resolve({"CHANNELS_CONFIG": "100:5:news"})


def test_multi_channel_rejects_non_numeric_group() -> None:
    with pytest.raises(ConfigError, match="TARGET_GROUP_ID"):
        _resolve({"CHANNELS_CONFIG": "100:5:news", "TARGET_GROUP_ID": "@group"})


def test_multi_channel_with_no_valid_entries_is_fatal() -> None:
    with pytest.raises(ConfigError, match="No valid channels"):
        _resolve({"CHANNELS_CONFIG": "bad,also:bad", "TARGET_GROUP_ID": "-100999"})


def test_legacy_direct_ids() -> None:
    resolver = FakeLocatorResolver({})
    routing = _resolve(
        {"SOURCE_CHANNEL_ID": "-100111", "TARGET_CHANNEL_ID": "-100222"}, resolver
    )

    assert routing.mode == MODE_LEGACY
    route = routing.route_for(-100111)
    assert route is not None
    assert route.destination == Destination(chat_id=-100222)
    assert route.prompt_key == "default"
    assert resolver.calls == []


def test_legacy_prompt_key_override() -> None:
    routing = _resolve(
        {"SOURCE_CHANNEL_ID": "1", "TARGET_CHANNEL_ID": "2", "PROMPT_KEY": "formal"}
    )
    assert routing.routes[0].prompt_key == "formal"


def test_legacy_locators_are_resolved_through_gateway() -> None:
    resolver = FakeLocatorResolver(
        {"https://t.me/source": -100111, "https://t.me/target": -100222}
    )
    routing = _resolve(
        {
            "SOURCE_CHANNEL_URL": "https://t.me/source",
            "TARGET_CHANNEL_URL": "https://t.me/target",
        },
        resolver,
    )

    assert resolver.calls == ["https://t.me/source", "https://t.me/target"]
    route = routing.route_for(-100111)
    assert route is not None
    assert route.destination.chat_id == -100222


def test_legacy_locator_failure_is_fatal() -> None:
    resolver = FakeLocatorResolver({"https://t.me/source": -100111})
    with pytest.raises(ConfigError, match="Failed to resolve"):
        _resolve(
            {
                "SOURCE_CHANNEL_URL": "https://t.me/source",
                "TARGET_CHANNEL_URL": "https://t.me/missing",
            },
            resolver,
        )


def test_legacy_without_ids_or_locators_is_fatal() -> None:
    with pytest.raises(ConfigError, match="Missing channel configuration"):
        _resolve({"SOURCE_CHANNEL_ID": "1"})


def test_channels_config_takes_precedence_over_legacy() -> None:
    routing = _resolve(
        {
            "CHANNELS_CONFIG": "100:5:news",
            "TARGET_GROUP_ID": "-100999",
            "SOURCE_CHANNEL_ID": "1",
            "TARGET_CHANNEL_ID": "2",
        }
    )
    assert routing.mode == MODE_MULTI_CHANNEL
    assert routing.route_for(1) is None


def test_parse_channels_config_ignores_trailing_comma() -> None:
    routes = parse_channels_config("100:5:news,", group_id=-100999)
    assert [route.source_id for route in routes] == [100]
