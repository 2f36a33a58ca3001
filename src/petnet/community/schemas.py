"""Pydantic models for pets, posts and barks."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


# --- Pets ---


class PetCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    species: str = Field(..., min_length=1, max_length=32)
    breed: str | None = Field(None, max_length=64)
    image_url: str | None = Field(None, max_length=2048)


class PetResponse(BaseModel):
    id: int
    user_id: int
    name: str
    species: str
    breed: str | None = None
    image_url: str | None = None
    xp: int = 0
    level: int = 1
    love_count: int = 0
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class PetListResponse(BaseModel):
    pets: list[PetResponse]


# --- Posts ---


class PostCreateRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    image_url: str | None = Field(None, max_length=2048)
    pet_id: int | None = None


class PostResponse(BaseModel):
    id: int
    author_id: int
    pet_id: int | None = None
    content: str
    image_url: str | None = None
    challenge_hashtag: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class PostListResponse(BaseModel):
    posts: list[PostResponse]
    total: int
    page: int
    per_page: int


# --- Barks ---


class BarkCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field("", max_length=10000)


class BarkResponse(BaseModel):
    id: int
    author_id: int
    title: str
    content: str
    created_at: datetime | None = None
    score: int = 0
    upvotes: int = 0
    downvotes: int = 0
    user_vote: int | None = None
    comment_count: int = 0


class BarkUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = Field(None, max_length=10000)


class BarkListResponse(BaseModel):
    barks: list[BarkResponse]


class CommentCreateRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    parent_id: int | None = None


class CommentResponse(BaseModel):
    id: int
    bark_id: int
    author_id: int
    parent_id: int | None = None
    content: str
    created_at: datetime | None = None
    score: int = 0
    upvotes: int = 0
    downvotes: int = 0
    user_vote: int | None = None


class CommentUpdateRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]


class DeleteResponse(BaseModel):
    success: bool = True
    message: str
