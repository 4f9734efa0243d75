"""Interactive Telegram login for teleglot.

Run once (``teleglot login``) to create the session the watcher reuses. With
``--string`` the session is also printed as a StringSession for SESSION_STRING.
"""

from __future__ import annotations

import logging
import os
from getpass import getpass

import qrcode
from telethon import TelegramClient, errors
from telethon.sessions import StringSession

from client import build_client

LOGGER = logging.getLogger(__name__)

QR_TIMEOUT_SECONDS = 120


def _print_qr(url: str) -> None:
    qr = qrcode.QRCode(border=1)
    qr.add_data(url)
    qr.make(fit=True)
    qr.print_ascii(invert=True)


def _resolve_2fa_password() -> str:
    password = os.getenv("TWO_FA_PASSWORD") or os.getenv("2FA")
    if password:
        return password
    return getpass("2FA password: ")


async def _authorize_with_qr(client: TelegramClient) -> None:
    qr = await client.qr_login()
    _print_qr(qr.url)
    print("Scan the QR code in Telegram: Settings > Devices > Link Desktop Device")
    await qr.wait(timeout=QR_TIMEOUT_SECONDS)


async def _authorize_with_phone(client: TelegramClient) -> None:
    phone = os.getenv("PHONE") or input("Phone number (international format): ").strip()
    await client.send_code_request(phone)
    code = input("Login code: ").strip()
    await client.sign_in(phone=phone, code=code)


def _pick_login_method() -> str:
    method = (os.getenv("LOGIN_METHOD") or "").strip().lower()
    if method in {"qr", "phone"}:
        return method
    while True:
        print("")
        print("Login methods:")
        print("[1] QR code")
        print("[2] Phone code")
        print("[3] Exit")
        choice = input("teleglot > ").strip()
        if choice == "1":
            return "qr"
        if choice == "2":
            return "phone"
        if choice == "3":
            raise SystemExit(0)
        print("Invalid option. Please choose 1, 2, or 3.")


async def authorize(client: TelegramClient) -> None:
    """Log the client in if the session is not authorized yet."""

    if await client.is_user_authorized():
        return

    try:
        if _pick_login_method() == "phone":
            await _authorize_with_phone(client)
        else:
            await _authorize_with_qr(client)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_resolve_2fa_password())


async def login(print_string: bool = False) -> None:
    client = build_client()
    await client.connect()
    try:
        await authorize(client)
        me = await client.get_me()
        LOGGER.info("Logged in as: %s", getattr(me, "first_name", None) or me.id)
        print(f"Logged in as: {getattr(me, 'first_name', None) or me.id}")
        if print_string:
            print("SESSION_STRING=" + StringSession.save(client.session))
    finally:
        await client.disconnect()
