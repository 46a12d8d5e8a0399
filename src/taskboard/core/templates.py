from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.templating import Jinja2Templates

from .session import ensure_csrf_token, pop_flash_messages

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
_templates.env.globals.setdefault("htmx_version", "1.9.12")


def _format_date(value: date | datetime | None, fmt: str = "%b %d, %Y") -> str:
    if value is None:
        return ""
    return value.strftime(fmt)


def _truncate_words(value: str | None, length: int = 100) -> str:
    if not value:
        return ""
    if len(value) <= length:
        return value
    return value[:length].rstrip() + "…"


_templates.env.filters["format_date"] = _format_date
_templates.env.filters["truncate_text"] = _truncate_words


def is_htmx_request(request: Request) -> bool:
    """Return ``True`` when the incoming request originated from HTMX."""

    return request.headers.get("HX-Request", "").lower() == "true"


def _base_context(
    request: Request,
    extra: dict[str, Any] | None = None,
    *,
    include_messages: bool = True,
) -> dict[str, Any]:
    context = dict(extra or {})
    # Errors raised outside SessionMiddleware render without session state.
    session = request.session if "session" in request.scope else None

    context.setdefault("settings", getattr(request.app.state, "settings", None))
    context.setdefault("current_user", getattr(request.state, "current_user", None))
    context["csrf_token"] = ensure_csrf_token(session) if session is not None else ""
    context["is_htmx"] = is_htmx_request(request)

    if include_messages and session is not None:
        context["messages"] = pop_flash_messages(session)
    else:
        context.setdefault("messages", [])

    return context


def template_response(
    request: Request,
    template_name: str,
    context: dict[str, Any] | None = None,
    *,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> Any:
    """Render a full page, consuming any queued flash messages."""

    payload = _base_context(request, context, include_messages=True)
    return _templates.TemplateResponse(
        request,
        template_name,
        payload,
        status_code=status_code,
        headers=headers,
    )


def partial_response(
    request: Request,
    template_name: str,
    context: dict[str, Any] | None = None,
    *,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> Any:
    """Render an HTMX fragment without consuming queued flash messages."""

    payload = _base_context(request, context, include_messages=False)
    return _templates.TemplateResponse(
        request,
        template_name,
        payload,
        status_code=status_code,
        headers=headers,
    )


__all__ = [
    "TEMPLATES_DIR",
    "is_htmx_request",
    "partial_response",
    "template_response",
]
