from __future__ import annotations

import logging

import pytest
from fastapi import FastAPI, status
from httpx import AsyncClient
from sqlalchemy.exc import IntegrityError

from taskboard.core.logging import RequestContextFilter
from taskboard.errors import ApplicationError, NotFoundError, ValidationError

pytestmark = pytest.mark.asyncio


async def test_application_error_response_schema(app: FastAPI, client: AsyncClient) -> None:
    @app.get("/api/error/application")
    async def trigger_application_error() -> None:  # pragma: no cover - defined in test
        raise ApplicationError(
            "Example failure",
            code="example_error",
            status_code=status.HTTP_418_IM_A_TEAPOT,
            details={"foo": "bar"},
        )

    response = await client.get("/api/error/application")

    assert response.status_code == status.HTTP_418_IM_A_TEAPOT
    request_id = response.headers["X-Request-ID"]
    assert response.json() == {
        "code": "example_error",
        "message": "Example failure",
        "details": {"request_id": request_id, "foo": "bar"},
    }


async def test_service_validation_error_lists_fields(app: FastAPI, client: AsyncClient) -> None:
    @app.get("/api/error/validation")
    async def trigger_validation_error() -> None:  # pragma: no cover - defined in test
        raise ValidationError.for_field("assignedTo", "Assigned user not found")

    response = await client.get("/api/error/validation")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    payload = response.json()
    assert payload["code"] == "validation_error"
    assert payload["message"] == "Assigned user not found"
    assert payload["errors"] == [{"field": "assignedTo", "message": "Assigned user not found"}]


async def test_request_id_is_echoed(app: FastAPI, client: AsyncClient) -> None:
    @app.get("/api/error/missing")
    async def trigger_not_found() -> None:  # pragma: no cover - defined in test
        raise NotFoundError("Task not found")

    response = await client.get("/api/error/missing", headers={"X-Request-ID": "trace-123"})

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.headers["X-Request-ID"] == "trace-123"
    assert response.json()["details"] == {"request_id": "trace-123"}


async def test_integrity_error_maps_to_conflict(app: FastAPI, client: AsyncClient) -> None:
    @app.get("/api/error/integrity")
    async def trigger_integrity_error() -> None:  # pragma: no cover - defined in test
        raise IntegrityError("INSERT", {}, Exception("duplicate"))

    response = await client.get("/api/error/integrity")

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["code"] == "db_integrity_error"


async def test_unhandled_exception_hides_internals(app: FastAPI, client: AsyncClient) -> None:
    @app.get("/api/error/unhandled")
    async def trigger_unhandled() -> None:  # pragma: no cover - defined in test
        raise RuntimeError("secret connection string")

    response = await client.get("/api/error/unhandled")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    payload = response.json()
    assert payload["code"] == "server_error"
    assert payload["message"] == "Internal server error."
    assert "secret" not in response.text


async def test_unknown_route_uses_error_envelope(client: AsyncClient) -> None:
    response = await client.get("/api/does-not-exist")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["code"] == "not_found"


async def test_browser_requests_get_an_error_page(client: AsyncClient) -> None:
    response = await client.get("/no-such-page", headers={"Accept": "text/html"})

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.headers["content-type"].startswith("text/html")
    assert "Not Found" in response.text


async def test_request_context_filter_populates_request_id(app: FastAPI, client: AsyncClient) -> None:
    captured: list[str] = []

    class _Collector(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            captured.append(getattr(record, "request_id", "-"))

    handler = _Collector()
    handler.addFilter(RequestContextFilter())
    route_logger = logging.getLogger("taskboard.tests.error_handling")
    route_logger.addHandler(handler)
    route_logger.setLevel(logging.INFO)

    @app.get("/api/error/logged")
    async def logged_route() -> dict[str, str]:  # pragma: no cover - defined in test
        route_logger.info("inside request")
        return {"status": "ok"}

    try:
        response = await client.get("/api/error/logged", headers={"X-Request-ID": "log-42"})
    finally:
        route_logger.removeHandler(handler)

    assert response.status_code == status.HTTP_200_OK
    assert captured == ["log-42"]
