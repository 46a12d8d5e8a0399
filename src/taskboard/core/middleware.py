"""HTTP middleware shared by the API and the browser views."""

from __future__ import annotations

import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .context import REQUEST_ID_HEADER, bind_request_id, reset_request_id

_MAX_INBOUND_ID_LENGTH = 128


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Bind an ``X-Request-ID`` to every request and echo it on the response.

    Callers may supply their own identifier; anything empty or unreasonably
    long is replaced with a fresh UUID4.
    """

    def __init__(self, app, header_name: str = REQUEST_ID_HEADER):  # type: ignore[override]
        super().__init__(app)
        self._header_name = header_name

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        request_id = self._inbound_request_id(request) or uuid.uuid4().hex
        token = bind_request_id(request_id)
        request.state.request_id = request_id
        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)
        response.headers.setdefault(self._header_name, request_id)
        return response

    def _inbound_request_id(self, request: Request) -> str | None:
        raw = request.headers.get(self._header_name, "").strip()
        if not raw or len(raw) > _MAX_INBOUND_ID_LENGTH:
            return None
        return raw


__all__ = ["CorrelationIdMiddleware"]
