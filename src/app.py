"""Application entry point for the teleglot translator."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

from art import tprint
from telethon import events

from adapters.health_server import HealthServer
from adapters.openai_translator import OpenAITranslator
from adapters.telegram_gateway import TelethonMessenger
from adapters.telegram_mapper import build_inbound
from client import build_client
from core.config import RoutingConfig
from core.prompts import PromptCatalog
from core.router import MessageRouter
from core.routes import ConfigResolver
from get_session import authorize, login
from settings import LoggingSettings, Settings, load_settings

NAME = "TELEGLOT"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(names: tuple[str, ...]) -> list[str]:
    values = []
    for name in names:
        value = os.getenv(name)
        if value:
            values.append(value)
    # Longest first so a secret containing another is fully masked.
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(config: LoggingSettings) -> None:
    level = getattr(logging, config.level, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(_collect_redaction_values(config.redact), fmt=fmt, datefmt=datefmt)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [console_handler]

    if config.file_path:
        directory = os.path.dirname(config.file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.file_path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    # Telethon is chatty at INFO (reconnects, update gaps).
    logging.getLogger("telethon").setLevel(max(level, logging.WARNING))


def _build_router(
    settings: Settings, routing: RoutingConfig, messenger: TelethonMessenger
) -> MessageRouter:
    prompts = PromptCatalog.load(settings.prompts_path)
    translator = OpenAITranslator(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        target_language=settings.target_language,
        base_url=settings.openai_base_url,
        timeout=settings.openai_timeout,
    )
    return MessageRouter(
        routing=routing,
        prompts=prompts,
        translator=translator,
        messenger=messenger,
        album_window=settings.album_window,
        correlation_limit=settings.correlation_max_entries or None,
    )


def _run() -> None:
    _print_banner()
    settings = load_settings()
    _configure_logging(settings.logging)
    logger = logging.getLogger(__name__)

    logger.info("Starting teleglot")

    client = build_client()
    client.loop.run_until_complete(client.connect())
    client.loop.run_until_complete(authorize(client))

    messenger = TelethonMessenger(client)
    try:
        routing = client.loop.run_until_complete(ConfigResolver(messenger).resolve(os.environ))
        router = _build_router(settings, routing, messenger)
    except RuntimeError as exc:
        logger.error("Configuration error: %s", exc)
        client.loop.run_until_complete(client.disconnect())
        raise SystemExit(1) from exc

    logger.info("%s routes are loaded (%s mode)", len(routing.routes), routing.mode)

    health = HealthServer(settings.health_host, settings.port)
    client.loop.run_until_complete(health.start())

    # One handler per event kind; unconfigured chats are filtered by the
    # router so Telethon never has to resolve the configured ids up front.
    @client.on(events.NewMessage())
    async def on_new_message(event) -> None:
        try:
            await router.handle_new(build_inbound(event.message))
        except Exception:
            logger.exception("Error while processing new message")

    @client.on(events.MessageEdited())
    async def on_edited_message(event) -> None:
        try:
            await router.handle_edit(build_inbound(event.message))
        except Exception:
            logger.exception("Error while processing edited message")

    client.start()
    for route in routing.routes:
        logger.info("Listening to %s -> %s", route.source_id, route.destination.describe())
    logger.info("Client connected. Watching for new messages...")
    try:
        client.run_until_disconnected()
    finally:
        router.close()
        client.loop.run_until_complete(health.stop())


def _dialog_type(dialog: Any) -> str:
    if getattr(dialog, "is_channel", False):
        entity = getattr(dialog, "entity", None)
        if getattr(entity, "forum", False):
            return "forum"
        if getattr(entity, "megagroup", False):
            return "group"
        return "channel"
    if getattr(dialog, "is_group", False):
        return "group"
    return "chat"


def _dialog_title(dialog: Any) -> str:
    entity = getattr(dialog, "entity", None)
    title = getattr(entity, "title", None)
    if title:
        return str(title)
    name = getattr(dialog, "name", None)
    if name:
        return str(name)
    entity_id = getattr(entity, "id", None)
    return str(entity_id or "unknown")


async def _list_dialogs(client) -> None:
    # Channel and group ids are what CHANNELS_CONFIG / TARGET_GROUP_ID expect.
    found = 0
    async for dialog in client.iter_dialogs():
        if dialog.is_user:
            continue
        found += 1
        username = getattr(dialog.entity, "username", None)
        locator = f"@{username}" if username else "-"
        print(f"{dialog.id} | {_dialog_type(dialog)} | {_dialog_title(dialog)} | {locator}")

    if not found:
        print("No channels or groups found for this account.")


def _discover() -> None:
    _print_banner()
    client = build_client()

    async def _run_discover() -> None:
        await client.connect()
        try:
            await authorize(client)
            await _list_dialogs(client)
        finally:
            await client.disconnect()

    client.loop.run_until_complete(_run_discover())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="teleglot")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the translator")
    login_parser = subparsers.add_parser("login", help="Log in and create the Telegram session")
    login_parser.add_argument(
        "--string",
        action="store_true",
        help="Also print the session as a SESSION_STRING value",
    )
    subparsers.add_parser(
        "discover",
        help="List channels and groups with the ids used in routing settings.",
    )

    args = parser.parse_args(argv)
    if args.command == "login":
        _print_banner()
        asyncio.run(login(print_string=args.string))
        return
    if args.command == "discover":
        _discover()
        return
    _run()


if __name__ == "__main__":
    main()
