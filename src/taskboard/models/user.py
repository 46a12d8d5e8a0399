"""User accounts."""

from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import TimestampMixin

NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 320


class UserBase(SQLModel, table=False):
    name: str = Field(
        max_length=NAME_MAX_LENGTH,
        sa_column=sa.Column(sa.String(length=NAME_MAX_LENGTH), nullable=False),
    )
    email: str = Field(
        max_length=EMAIL_MAX_LENGTH,
        sa_column=sa.Column(
            sa.String(length=EMAIL_MAX_LENGTH),
            nullable=False,
            unique=True,
        ),
    )


class User(UserBase, TimestampMixin, table=True):
    """A registered account; the only principal tasks can be assigned to."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    hashed_password: str = Field(
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=False),
    )


__all__ = ["EMAIL_MAX_LENGTH", "NAME_MAX_LENGTH", "User", "UserBase"]
