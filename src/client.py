"""Telegram client factory for teleglot.

We explicitly manage the client's lifecycle (connect/run_until_disconnected)
so it is obvious when the session is created and when it ends.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from telethon import TelegramClient
from telethon.sessions import StringSession


def build_client() -> TelegramClient:
    """Create a Telethon client from environment variables.

    SESSION_STRING wins over a file session so containers without a writable
    disk can run; otherwise SESSION_NAME (default "teleglot") names the local
    .session file.
    """

    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")
    session_string = os.getenv("SESSION_STRING")
    session_name = os.getenv("SESSION_NAME", "teleglot")

    # Fail fast on missing credentials to avoid an ambiguous login prompt.
    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")

    logger = logging.getLogger(__name__)
    if session_string:
        logger.info("Initializing Telegram client from SESSION_STRING")
        session = StringSession(session_string)
    else:
        logger.info("Initializing Telegram client with session file %s", session_name)
        session = session_name

    return TelegramClient(session, int(api_id), api_hash)
