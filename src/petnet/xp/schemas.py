"""Pydantic request/response models for XP and challenge endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class TrackRequest(BaseModel):
    challenge_id: str = Field(..., min_length=1, max_length=64)
    increment: int = Field(1, ge=0, le=1000)
    recipient: str | None = Field(None, max_length=320)


class TrackResponse(BaseModel):
    success: bool = True
    challenge_id: str
    progress: int
    goal: int
    completed: bool
    xp_gained: int
    total_xp: int
    level: int
    message: str | None = None


class ChallengeDefinitionResponse(BaseModel):
    id: str
    name: str
    description: str
    cadence: str
    goal: int
    xp_reward: int
    requires_recipient: bool = False


class ChallengeCatalogResponse(BaseModel):
    challenges: list[ChallengeDefinitionResponse]


class ChallengeProgressEntry(BaseModel):
    id: str
    name: str
    description: str
    cadence: str
    xp_reward: int
    goal: int
    progress: int
    completed: bool
    resets_at: datetime | None = None


class ProgressOverviewResponse(BaseModel):
    user_id: int
    total_xp: int
    level: int
    xp_into_level: int
    xp_for_level: int
    next_level: int
    percentage: float
    challenges: list[ChallengeProgressEntry]


class XPHistoryEntry(BaseModel):
    amount: int
    source: str
    source_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None


class XPHistoryResponse(BaseModel):
    entries: list[XPHistoryEntry]
    total: int
    page: int
    per_page: int
