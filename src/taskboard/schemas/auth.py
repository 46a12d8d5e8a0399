"""Schemas describing authentication payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..models import NAME_MAX_LENGTH
from .common import WireModel
from .user import UserPublic

NAME_MIN_LENGTH = 2
PASSWORD_MIN_LENGTH = 6
# bcrypt ignores anything past 72 bytes.
PASSWORD_MAX_LENGTH = 72


class RegisterRequest(BaseModel):
    """Incoming payload for registering a new account."""

    name: str = Field(min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", mode="after")
    @classmethod
    def _lowercase_email(cls, value: str) -> str:
        return value.lower()


class AccessToken(WireModel):
    access_token: str
    token_type: str = Field(default="bearer", frozen=True)
    expires_in: int


class AuthResponse(WireModel):
    """A user together with a freshly issued bearer token."""

    user: UserPublic
    token: AccessToken


class TokenPayload(BaseModel):
    """Validated JWT claims."""

    model_config = ConfigDict(extra="ignore")

    sub: str
    exp: datetime
    iat: datetime
    jti: str


__all__ = [
    "AccessToken",
    "AuthResponse",
    "NAME_MIN_LENGTH",
    "PASSWORD_MAX_LENGTH",
    "PASSWORD_MIN_LENGTH",
    "RegisterRequest",
    "TokenPayload",
]
