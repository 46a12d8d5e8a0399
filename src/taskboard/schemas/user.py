"""User-facing Pydantic schemas."""

from __future__ import annotations

from .common import WireModel


class UserPublic(WireModel):
    """The ``{id, name, email}`` projection shown wherever a user is referenced."""

    id: int
    name: str
    email: str


__all__ = ["UserPublic"]
