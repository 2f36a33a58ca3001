"""Pydantic models for weekly challenge endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from petnet.auth.schemas import UserSummary


class ChallengeOptionIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)


class ChallengeCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    hashtag: str = Field(..., min_length=1, max_length=64)
    start_date: datetime
    end_date: datetime
    options: list[ChallengeOptionIn] = Field(default_factory=list, max_length=20)


class ChallengeUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    hashtag: str | None = Field(None, min_length=1, max_length=64)
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool | None = None


class ChallengeResponse(BaseModel):
    id: int
    title: str
    description: str
    hashtag: str
    start_date: datetime
    end_date: datetime
    is_active: bool
    has_ended: bool = False


class ChallengeOptionResponse(BaseModel):
    id: int
    title: str
    description: str | None = None
    order_index: int
    vote_count: int = 0
    percentage: int = 0


class ChallengeDetailResponse(ChallengeResponse):
    created_by: int | None = None
    options: list[ChallengeOptionResponse] = []
    submission_count: int = 0


class ChallengeDeleteResponse(BaseModel):
    success: bool = True
    message: str = "Challenge deleted successfully"


class CurrentChallengeResponse(BaseModel):
    challenge: ChallengeResponse | None = None
    submission_count: int = 0
    options: list[ChallengeOptionResponse] = []
    user_vote: int | None = None


class PollVoteRequest(BaseModel):
    challenge_id: int
    option_id: int


class PollVoteResponse(BaseModel):
    success: bool = True
    action: str
    challenge: ChallengeResponse
    options: list[ChallengeOptionResponse]
    user_vote: int | None = None


class ChallengeListResponse(BaseModel):
    challenges: list[ChallengeResponse]


class SubmitRequest(BaseModel):
    post_id: int


class SubmitResponse(BaseModel):
    success: bool = True
    id: int
    challenge_id: int
    post_id: int


class SubmissionEntry(BaseModel):
    rank: int
    id: int
    post_id: int
    content: str
    image_url: str | None = None
    pet_id: int | None = None
    author: UserSummary
    upvotes: int = 0
    downvotes: int = 0
    net_votes: int = 0
    user_vote: int | None = None
    submitted_at: datetime | None = None


class SubmissionListResponse(BaseModel):
    challenge: ChallengeResponse | None = None
    submissions: list[SubmissionEntry]
