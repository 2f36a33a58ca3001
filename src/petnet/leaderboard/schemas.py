"""Pydantic models for the leaderboard endpoint."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from petnet.auth.schemas import UserSummary


class PetCelebEntry(BaseModel):
    rank: int
    pet_id: int
    name: str
    species: str
    breed: str | None = None
    image_url: str | None = None
    level: int = 1
    love_count: int
    owner: UserSummary


class ChallengerEntry(BaseModel):
    rank: int
    user_id: int
    username: str | None = None
    name: str | None = None
    image_url: str | None = None
    upvotes: int
    downvotes: int
    net_votes: int
    post_count: int


class LeaderboardChallenge(BaseModel):
    id: int
    title: str
    hashtag: str
    start_date: datetime
    end_date: datetime


class LeaderboardResponse(BaseModel):
    pet_celebs: list[PetCelebEntry]
    challengers: list[ChallengerEntry]
    challenge: LeaderboardChallenge | None = None
    last_updated: datetime
