"""Weekly challenge endpoints (public, owner and admin)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from petnet.auth.dependencies import get_current_user, get_optional_user, require_admin
from petnet.challenges.schemas import (
    ChallengeCreateRequest,
    ChallengeDeleteResponse,
    ChallengeDetailResponse,
    ChallengeListResponse,
    ChallengeResponse,
    ChallengeUpdateRequest,
    CurrentChallengeResponse,
    PollVoteRequest,
    PollVoteResponse,
    SubmissionListResponse,
    SubmitRequest,
    SubmitResponse,
)
from petnet.challenges.service import (
    activate_challenge,
    challenge_detail,
    challenge_summary,
    count_submissions,
    create_challenge,
    delete_challenge,
    get_active_challenge,
    get_challenge_by_id,
    get_user_option_vote,
    list_challenges,
    list_options,
    list_submissions,
    submit_post,
    update_challenge,
    vote_on_option,
)
from petnet.database import get_session
from petnet.db.models import User
from petnet.errors import NotFound

router = APIRouter(prefix="/api/v1/weekly-challenges", tags=["Weekly Challenges"])
admin_router = APIRouter(prefix="/api/v1/admin/weekly-challenges", tags=["Admin"])


# ---------------------------------------------------------------------------
# Public / owner
# ---------------------------------------------------------------------------


@router.get("/current", response_model=CurrentChallengeResponse)
async def current_challenge(
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
):
    """The active challenge, its entry count and its poll."""
    challenge = await get_active_challenge(db)
    if challenge is None:
        return CurrentChallengeResponse()
    return CurrentChallengeResponse(
        challenge=ChallengeResponse(**challenge_summary(challenge)),
        submission_count=await count_submissions(db, challenge.id),
        options=await list_options(db, challenge.id),
        user_vote=await get_user_option_vote(db, viewer.id, challenge.id) if viewer else None,
    )


@router.post("/vote", response_model=PollVoteResponse)
async def vote_in_poll(
    body: PollVoteRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Pick (or change) your option in the active challenge's poll."""
    action = await vote_on_option(db, user.id, body.challenge_id, body.option_id)
    challenge = await get_challenge_by_id(db, body.challenge_id)
    return PollVoteResponse(
        action=action,
        challenge=ChallengeResponse(**challenge_summary(challenge)),
        options=await list_options(db, body.challenge_id),
        user_vote=body.option_id,
    )


@router.get("/current/submissions", response_model=SubmissionListResponse)
async def current_submissions(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
):
    """Active challenge entries ordered by net votes."""
    challenge, entries = await list_submissions(
        db, viewer.id if viewer else None, offset=offset, limit=limit,
    )
    return SubmissionListResponse(
        challenge=ChallengeResponse(**challenge_summary(challenge)) if challenge else None,
        submissions=entries,
    )


@router.post("/current/submissions", response_model=SubmitResponse, status_code=201)
async def submit_to_current(
    body: SubmitRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Enter one of your own posts into the active challenge."""
    entry = await submit_post(db, user.id, body.post_id)
    return SubmitResponse(id=entry.id, challenge_id=entry.challenge_id, post_id=entry.post_id)


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@admin_router.get("", response_model=ChallengeListResponse)
async def admin_list(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    challenges = await list_challenges(db)
    return ChallengeListResponse(challenges=[ChallengeResponse(**challenge_summary(c)) for c in challenges])


@admin_router.post("", response_model=ChallengeDetailResponse, status_code=201)
async def admin_create(
    body: ChallengeCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    challenge = await create_challenge(
        db,
        created_by=admin.id,
        title=body.title,
        hashtag=body.hashtag,
        start_date=body.start_date,
        end_date=body.end_date,
        description=body.description,
        options=[option.model_dump() for option in body.options],
    )
    return ChallengeDetailResponse(**await challenge_detail(db, challenge))


@admin_router.get("/{challenge_id}", response_model=ChallengeDetailResponse)
async def admin_get(
    challenge_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    challenge = await get_challenge_by_id(db, challenge_id)
    if challenge is None:
        raise NotFound("Challenge not found")
    return ChallengeDetailResponse(**await challenge_detail(db, challenge))


@admin_router.put("/{challenge_id}", response_model=ChallengeDetailResponse)
async def admin_update(
    challenge_id: int,
    body: ChallengeUpdateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Partial update; fields left out of the body keep their value."""
    challenge = await update_challenge(db, challenge_id, **body.model_dump(exclude_none=True))
    return ChallengeDetailResponse(**await challenge_detail(db, challenge))


@admin_router.delete("/{challenge_id}", response_model=ChallengeDeleteResponse)
async def admin_delete(
    challenge_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    await delete_challenge(db, challenge_id)
    return ChallengeDeleteResponse()


@admin_router.post("/{challenge_id}/activate", response_model=ChallengeResponse)
async def admin_activate(
    challenge_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Activate a challenge; any other active challenge is closed."""
    challenge = await activate_challenge(db, challenge_id)
    return ChallengeResponse(**challenge_summary(challenge))
