"""Health and readiness endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status
from sqlalchemy import text

from ...deps import DatabaseSessionDependency
from ...schemas.system import HealthCheckResponse

router = APIRouter(tags=["system"])


@router.get(
    "/healthz",
    response_model=HealthCheckResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
)
async def read_health() -> HealthCheckResponse:
    """Return a simple heartbeat payload for liveness probes."""
    return HealthCheckResponse(status="ok")


@router.get(
    "/readyz",
    response_model=HealthCheckResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
)
async def read_readiness(session: DatabaseSessionDependency) -> HealthCheckResponse:
    """Confirm the task store answers a trivial query."""
    await session.execute(text("SELECT 1"))
    return HealthCheckResponse(status="ready")
