"""Column helpers shared by the user and task tables."""

from __future__ import annotations

from datetime import datetime, timezone

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Current time in UTC; used for defaults and for stamping updates."""
    return datetime.now(timezone.utc)


class TimestampMixin(SQLModel, table=False):
    """``created_at`` and ``updated_at`` columns.

    Both are stamped on insert; ``server_default`` covers rows written outside
    the ORM, such as migrations. ``updated_at`` is re-stamped on every flush
    that changes the row.
    """

    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now()},
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={
            "server_default": sa.func.now(),
            "onupdate": utcnow,
        },
    )


__all__ = ["TimestampMixin", "utcnow"]
