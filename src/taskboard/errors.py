"""Application-level exception handling helpers."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from contextvars import Token
from http import HTTPStatus
from typing import Any, Mapping

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse, Response
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from .core.context import REQUEST_ID_HEADER, bind_request_id, reset_request_id
from .core.templates import template_response
from .schemas.system import ErrorResponse, FieldErrorDetail

logger = logging.getLogger(__name__)

VALIDATION_FAILED_MESSAGE = "Validation failed"
_REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}


class ApplicationError(Exception):
    """Base class for domain-specific errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "application_error",
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details


class ValidationError(ApplicationError):
    """Input broke one or more rules; ``errors`` lists each violation."""

    def __init__(
        self,
        message: str = VALIDATION_FAILED_MESSAGE,
        *,
        errors: Sequence[FieldErrorDetail] = (),
        code: str = "validation_error",
        details: Any | None = None,
    ) -> None:
        super().__init__(
            message,
            code=code,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )
        self.errors = list(errors)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, errors=[FieldErrorDetail(field=field, message=message)])


class AuthorizationError(ApplicationError):
    """The caller is authenticated but may not act on the resource."""

    def __init__(
        self,
        message: str = "Access denied",
        *,
        code: str = "forbidden",
        details: Any | None = None,
    ) -> None:
        super().__init__(
            message,
            code=code,
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
        )


class NotFoundError(ApplicationError):
    """Error representing missing resources."""

    def __init__(
        self,
        message: str = "Resource not found",
        *,
        code: str = "not_found",
        details: Any | None = None,
    ) -> None:
        super().__init__(
            message,
            code=code,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
        )


class ServerError(ApplicationError):
    """Error representing unexpected server failures."""

    def __init__(
        self,
        message: str = "Internal server error.",
        *,
        code: str = "server_error",
        details: Any | None = None,
    ) -> None:
        super().__init__(
            message,
            code=code,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
        )


_HTTP_STATUS_CODE_MAP: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_409_CONFLICT: "conflict",
}


def _error_field(loc: Sequence[Any]) -> str:
    parts = [str(part) for part in loc]
    if parts and parts[0] in _REQUEST_LOCATIONS:
        parts = parts[1:]
    # Integer parts are list positions or JSON decode offsets.
    named = [part for part in parts if not part.isdigit()]
    return ".".join(named) or str(loc[0] if loc else "body")


def _error_message(error: Mapping[str, Any]) -> str:
    if error.get("type") == "value_error":
        cause = (error.get("ctx") or {}).get("error")
        if cause is not None:
            return str(cause)
    message = str(error.get("msg", "Invalid value"))
    return message.removeprefix("Value error, ")


def field_errors_from_pydantic(errors: Iterable[Mapping[str, Any]]) -> list[FieldErrorDetail]:
    """Flatten pydantic error dicts into ``{field, message}`` pairs.

    Only the first violation per field is kept, in the order pydantic
    reported them.
    """

    collected: dict[str, FieldErrorDetail] = {}
    for error in errors:
        field = _error_field(error.get("loc", ()))
        if field not in collected:
            collected[field] = FieldErrorDetail(field=field, message=_error_message(error))
    return list(collected.values())


def _bind_request_context(request: Request) -> Token[str] | None:
    request_id = getattr(request.state, "request_id", None)
    if not request_id:
        return None
    return bind_request_id(request_id)


def _reset_request_context(token: Token[str] | None) -> None:
    if token is not None:
        reset_request_id(token)


def _merge_details_with_request(request: Request, details: Any | None) -> Any | None:
    request_id = getattr(request.state, "request_id", None)
    if not request_id:
        return details
    if details is None:
        return {"request_id": request_id}
    if isinstance(details, dict):
        return {"request_id": request_id, **details}
    return {"request_id": request_id, "detail": details}


def _wants_html(request: Request) -> bool:
    """True for browser navigations outside the JSON API."""

    settings = getattr(request.app.state, "settings", None)
    api_prefix = settings.normalized_api_prefix if settings is not None else "/api"
    if api_prefix and request.url.path.startswith(api_prefix):
        return False
    return "text/html" in request.headers.get("accept", "")


def _html_error_response(request: Request, *, status_code: int, message: str) -> Response:
    return template_response(
        request,
        "errors/error.html",
        {"title": _http_exception_message(status_code, None), "status_code": status_code, "message": message},
        status_code=status_code,
    )


def _error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    errors: Sequence[FieldErrorDetail] | None = None,
    details: Any | None = None,
    headers: Mapping[str, str] | None = None,
) -> Response:
    if _wants_html(request) and not errors:
        response = _html_error_response(request, status_code=status_code, message=message)
    else:
        payload = ErrorResponse(
            code=code,
            message=message,
            errors=list(errors) if errors else None,
            details=_merge_details_with_request(request, details),
        )
        response = JSONResponse(status_code=status_code, content=payload.model_dump(exclude_none=True))
    if headers:
        response.headers.update(headers)
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
    return response


def _http_exception_message(status_code: int, detail: Any) -> str:
    if isinstance(detail, str) and detail:
        return detail
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with the provided FastAPI app."""

    @app.exception_handler(ApplicationError)
    async def _handle_application_error(request: Request, exc: ApplicationError) -> Response:
        token = _bind_request_context(request)
        try:
            log = logger.error if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else logger.warning
            log(
                "Application error encountered",
                extra={"code": exc.code, "status_code": exc.status_code, "path": request.url.path},
            )
            return _error_response(
                request,
                status_code=exc.status_code,
                code=exc.code,
                message=exc.message,
                errors=getattr(exc, "errors", None),
                details=exc.details,
            )
        finally:
            _reset_request_context(token)

    @app.exception_handler(RequestValidationError)
    async def _handle_request_validation_error(
        request: Request,
        exc: RequestValidationError,
    ) -> Response:
        token = _bind_request_context(request)
        try:
            field_errors = field_errors_from_pydantic(exc.errors())
            logger.warning(
                "Request validation failed",
                extra={"fields": [error.field for error in field_errors], "path": request.url.path},
            )
            return _error_response(
                request,
                status_code=status.HTTP_400_BAD_REQUEST,
                code="validation_error",
                message=VALIDATION_FAILED_MESSAGE,
                errors=field_errors,
            )
        finally:
            _reset_request_context(token)

    @app.exception_handler(IntegrityError)
    async def _handle_integrity_error(request: Request, exc: IntegrityError) -> Response:
        token = _bind_request_context(request)
        try:
            logger.error("Database integrity error encountered.", exc_info=exc)
            return _error_response(
                request,
                status_code=status.HTTP_409_CONFLICT,
                code="db_integrity_error",
                message="Database integrity violation.",
            )
        finally:
            _reset_request_context(token)

    @app.exception_handler(StarletteHTTPException)
    async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> Response:
        location = (exc.headers or {}).get("Location")
        if location and 300 <= exc.status_code < 400:
            return RedirectResponse(location, status_code=exc.status_code)

        token = _bind_request_context(request)
        try:
            code = _HTTP_STATUS_CODE_MAP.get(exc.status_code, "http_error")
            log = logger.error if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else logger.warning
            log(
                "HTTP exception raised",
                extra={"code": code, "status_code": exc.status_code, "path": request.url.path},
            )
            return _error_response(
                request,
                status_code=exc.status_code,
                code=code,
                message=_http_exception_message(exc.status_code, exc.detail),
                headers=exc.headers or None,
            )
        finally:
            _reset_request_context(token)

    @app.exception_handler(Exception)
    async def _handle_unhandled_exception(request: Request, exc: Exception) -> Response:
        token = _bind_request_context(request)
        try:
            logger.exception("Unhandled application error.", extra={"path": request.url.path})
            return _error_response(
                request,
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                code="server_error",
                message="Internal server error.",
            )
        finally:
            _reset_request_context(token)


__all__ = [
    "ApplicationError",
    "AuthorizationError",
    "NotFoundError",
    "ServerError",
    "VALIDATION_FAILED_MESSAGE",
    "ValidationError",
    "field_errors_from_pydantic",
    "register_exception_handlers",
]
