"""The correlation id of the request currently being served.

The id is bound by ``CorrelationIdMiddleware`` and read back by the log filter
and the error handlers, so every log line and error body of one request
shares it.
"""

from __future__ import annotations

from contextvars import ContextVar, Token

REQUEST_ID_HEADER = "X-Request-ID"

_request_id_ctx_var: ContextVar[str] = ContextVar("taskboard_request_id", default="-")


def get_request_id() -> str:
    """Return the correlation id bound to the running request, or ``"-"``."""

    return _request_id_ctx_var.get()


def bind_request_id(request_id: str) -> Token[str]:
    """Bind ``request_id``; keep the token to restore the previous value."""
    return _request_id_ctx_var.set(request_id)


def reset_request_id(token: Token[str]) -> None:
    _request_id_ctx_var.reset(token)


__all__ = [
    "REQUEST_ID_HEADER",
    "bind_request_id",
    "get_request_id",
    "reset_request_id",
]
