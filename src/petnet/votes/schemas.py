"""Pydantic models for vote endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

TargetType = Literal["bark", "bark_comment", "challenge_post"]


class VoteRequest(BaseModel):
    target_type: TargetType
    target_id: int
    value: int  # 1 or -1; range checked by the service so it maps to invalid_input


class VoteResponse(BaseModel):
    success: bool = True
    target_type: str
    target_id: int
    score: int
    upvotes: int
    downvotes: int
    user_vote: int | None = None
    action: str
