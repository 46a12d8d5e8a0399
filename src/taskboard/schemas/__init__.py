"""Pydantic schemas for public interfaces."""

from __future__ import annotations

from .auth import AccessToken, AuthResponse, RegisterRequest, TokenPayload
from .system import (
    ErrorResponse,
    FieldErrorDetail,
    HealthCheckResponse,
    MessageResponse,
    RootResponse,
)
from .task import (
    PaginationMeta,
    TaskCreate,
    TaskListResponse,
    TaskMutationResponse,
    TaskRead,
    TaskUpdate,
)
from .user import UserPublic

__all__ = [
    "AccessToken",
    "AuthResponse",
    "ErrorResponse",
    "FieldErrorDetail",
    "HealthCheckResponse",
    "MessageResponse",
    "PaginationMeta",
    "RegisterRequest",
    "RootResponse",
    "TaskCreate",
    "TaskListResponse",
    "TaskMutationResponse",
    "TaskRead",
    "TaskUpdate",
    "TokenPayload",
    "UserPublic",
]
