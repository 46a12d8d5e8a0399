"""Helpers for the signed browser session cookie.

The cookie (managed by Starlette's ``SessionMiddleware``) carries three things
for the HTML views: the signed-in user's id, a per-session CSRF token that
every form POST must echo back, and a queue of one-shot flash messages shown
on the next rendered page.
"""

from __future__ import annotations

import secrets
from typing import Any, Literal, MutableMapping

SESSION_USER_KEY = "taskboard.user_id"
SESSION_CSRF_KEY = "taskboard.csrf"
SESSION_FLASH_KEY = "taskboard.flash"

FlashCategory = Literal["success", "info", "error"]

Session = MutableMapping[str, Any]


def get_session_user_id(session: Session) -> int | None:
    raw = session.get(SESSION_USER_KEY)
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.isdigit():
        return int(raw)
    return None


def login_user(session: Session, user_id: int) -> None:
    """Start a browser session for ``user_id`` with a fresh CSRF token."""

    session.clear()
    session[SESSION_USER_KEY] = int(user_id)
    session[SESSION_CSRF_KEY] = secrets.token_urlsafe(32)


def logout_user(session: Session) -> None:
    session.clear()


def ensure_csrf_token(session: Session) -> str:
    token = session.get(SESSION_CSRF_KEY)
    if isinstance(token, str) and token:
        return token
    token = secrets.token_urlsafe(32)
    session[SESSION_CSRF_KEY] = token
    return token


def validate_csrf_token(session: Session, provided: object) -> bool:
    expected = session.get(SESSION_CSRF_KEY)
    if not expected or not isinstance(provided, str) or not provided:
        return False
    return secrets.compare_digest(str(expected), provided)


def add_flash_message(session: Session, category: FlashCategory, message: str) -> None:
    queued = session.get(SESSION_FLASH_KEY)
    if not isinstance(queued, list):
        queued = []
    queued.append({"category": category, "message": message})
    session[SESSION_FLASH_KEY] = queued


def pop_flash_messages(session: Session) -> list[dict[str, str]]:
    """Drain the flash queue, dropping anything malformed."""

    queued = session.pop(SESSION_FLASH_KEY, [])
    if not isinstance(queued, list):
        return []
    return [
        {"category": str(item.get("category", "info")), "message": str(item["message"])}
        for item in queued
        if isinstance(item, dict) and item.get("message")
    ]


__all__ = [
    "FlashCategory",
    "SESSION_CSRF_KEY",
    "SESSION_FLASH_KEY",
    "SESSION_USER_KEY",
    "add_flash_message",
    "ensure_csrf_token",
    "get_session_user_id",
    "login_user",
    "logout_user",
    "pop_flash_messages",
    "validate_csrf_token",
]
