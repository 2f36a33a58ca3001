"""Pet, post and bark endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from petnet.auth.dependencies import get_current_user, get_optional_user
from petnet.community import service
from petnet.community.schemas import (
    BarkCreateRequest,
    BarkListResponse,
    BarkResponse,
    BarkUpdateRequest,
    CommentCreateRequest,
    CommentListResponse,
    CommentResponse,
    CommentUpdateRequest,
    DeleteResponse,
    PetCreateRequest,
    PetListResponse,
    PetResponse,
    PostCreateRequest,
    PostListResponse,
    PostResponse,
)
from petnet.database import get_session
from petnet.db.models import Bark, BarkComment, User
from petnet.votes.service import tallies_for, user_votes_for

pets_router = APIRouter(prefix="/api/v1/pets", tags=["Pets"])
posts_router = APIRouter(prefix="/api/v1/posts", tags=["Posts"])
barks_router = APIRouter(prefix="/api/v1/barks", tags=["Barks"])


# ---------------------------------------------------------------------------
# Pets
# ---------------------------------------------------------------------------


@pets_router.post("", response_model=PetResponse, status_code=201)
async def create_pet(
    body: PetCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    pet = await service.create_pet(db, user.id, body.name, body.species, body.breed, body.image_url)
    return PetResponse.model_validate(pet)


@pets_router.get("/me", response_model=PetListResponse)
async def my_pets(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    pets = await service.list_pets(db, user.id)
    return PetListResponse(pets=[PetResponse.model_validate(p) for p in pets])


@pets_router.get("/{pet_id}", response_model=PetResponse)
async def get_pet(pet_id: int, db: AsyncSession = Depends(get_session)):
    return PetResponse.model_validate(await service.get_pet(db, pet_id))


@pets_router.post("/{pet_id}/love", response_model=PetResponse)
async def love_pet(
    pet_id: int,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Send a pet some love (bumps its love_count)."""
    return PetResponse.model_validate(await service.love_pet(db, pet_id))


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


@posts_router.post("", response_model=PostResponse, status_code=201)
async def create_post(
    body: PostCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    post = await service.create_post(db, user.id, body.content, body.image_url, body.pet_id)
    return PostResponse.model_validate(post)


@posts_router.get("/me", response_model=PostListResponse)
async def my_posts(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    posts, total = await service.list_posts(db, user.id, page, per_page)
    return PostListResponse(
        posts=[PostResponse.model_validate(p) for p in posts],
        total=total,
        page=page,
        per_page=per_page,
    )


@posts_router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, db: AsyncSession = Depends(get_session)):
    return PostResponse.model_validate(await service.get_post(db, post_id))


# ---------------------------------------------------------------------------
# Barks
# ---------------------------------------------------------------------------


async def _bark_responses(db: AsyncSession, barks: list[Bark], viewer: User | None) -> list[BarkResponse]:
    ids = [b.id for b in barks]
    tallies = await tallies_for(db, "bark", ids)
    mine = await user_votes_for(db, viewer.id, "bark", ids) if viewer else {}
    counts = await service.comment_counts(db, ids)
    out = []
    for b in barks:
        tally = tallies.get(b.id)
        out.append(BarkResponse(
            id=b.id,
            author_id=b.author_id,
            title=b.title,
            content=b.content,
            created_at=b.created_at,
            score=tally.score if tally else 0,
            upvotes=tally.upvotes if tally else 0,
            downvotes=tally.downvotes if tally else 0,
            user_vote=mine.get(b.id),
            comment_count=counts.get(b.id, 0),
        ))
    return out


async def _comment_responses(
    db: AsyncSession, comments: list[BarkComment], viewer: User | None,
) -> list[CommentResponse]:
    ids = [c.id for c in comments]
    tallies = await tallies_for(db, "bark_comment", ids)
    mine = await user_votes_for(db, viewer.id, "bark_comment", ids) if viewer else {}
    out = []
    for c in comments:
        tally = tallies.get(c.id)
        out.append(CommentResponse(
            id=c.id,
            bark_id=c.bark_id,
            author_id=c.author_id,
            parent_id=c.parent_id,
            content=c.content,
            created_at=c.created_at,
            score=tally.score if tally else 0,
            upvotes=tally.upvotes if tally else 0,
            downvotes=tally.downvotes if tally else 0,
            user_vote=mine.get(c.id),
        ))
    return out


@barks_router.post("", response_model=BarkResponse, status_code=201)
async def create_bark(
    body: BarkCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    bark = await service.create_bark(db, user.id, body.title, body.content)
    return (await _bark_responses(db, [bark], user))[0]


@barks_router.get("", response_model=BarkListResponse)
async def list_barks(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
):
    barks = await service.list_barks(db, page, per_page)
    return BarkListResponse(barks=await _bark_responses(db, barks, viewer))


@barks_router.get("/{bark_id}", response_model=BarkResponse)
async def get_bark(
    bark_id: int,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
):
    """A bark with its live vote score."""
    bark = await service.get_bark(db, bark_id)
    return (await _bark_responses(db, [bark], viewer))[0]


@barks_router.post("/{bark_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(
    bark_id: int,
    body: CommentCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    comment = await service.add_comment(db, bark_id, user.id, body.content, body.parent_id)
    return (await _comment_responses(db, [comment], user))[0]


@barks_router.get("/{bark_id}/comments", response_model=CommentListResponse)
async def list_comments(
    bark_id: int,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
):
    comments = await service.list_comments(db, bark_id)
    return CommentListResponse(comments=await _comment_responses(db, comments, viewer))


@barks_router.put("/{bark_id}", response_model=BarkResponse)
async def edit_bark(
    bark_id: int,
    body: BarkUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Edit your own bark; omitted fields are left as they are."""
    bark = await service.edit_bark(db, bark_id, user.id, body.title, body.content)
    return (await _bark_responses(db, [bark], user))[0]


@barks_router.delete("/{bark_id}", response_model=DeleteResponse)
async def delete_bark(
    bark_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await service.delete_bark(db, bark_id, user.id)
    return DeleteResponse(message="Bark deleted successfully")


@barks_router.put("/comments/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    comment_id: int,
    body: CommentUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    comment = await service.edit_comment(db, comment_id, user.id, body.content)
    return (await _comment_responses(db, [comment], user))[0]


@barks_router.delete("/comments/{comment_id}", response_model=DeleteResponse)
async def delete_comment(
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Delete your own comment along with its replies."""
    await service.delete_comment(db, comment_id, user.id)
    return DeleteResponse(message="Comment deleted successfully")
