"""Pydantic models for user endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class UserSummary(BaseModel):
    """Compact author/owner block embedded in other responses."""

    id: int
    username: str | None = None
    name: str | None = None
    image_url: str | None = None

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    """The authenticated caller's own profile."""

    id: int
    external_id: str
    username: str | None = None
    name: str | None = None
    image_url: str | None = None
    is_admin: bool = False
    created_at: datetime | None = None
    last_seen: datetime | None = None
    total_xp: int = 0
    level: int = 1

    model_config = {"from_attributes": True}
