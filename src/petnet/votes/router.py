"""Vote endpoints for barks, bark comments and weekly-challenge posts."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from petnet.auth.dependencies import get_current_user
from petnet.database import get_session
from petnet.db.models import User
from petnet.votes.schemas import TargetType, VoteRequest, VoteResponse
from petnet.votes.service import VoteResult, cast_vote, retract_vote

router = APIRouter(prefix="/api/v1/votes", tags=["Votes"])


def _vote_response(result: VoteResult) -> VoteResponse:
    return VoteResponse(
        target_type=result.target_type,
        target_id=result.target_id,
        score=result.score,
        upvotes=result.upvotes,
        downvotes=result.downvotes,
        user_vote=result.user_vote,
        action=result.action,
    )


@router.post("", response_model=VoteResponse)
async def vote(
    body: VoteRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Cast, flip or (same value again) retract a vote."""
    result = await cast_vote(db, user.id, body.target_type, body.target_id, body.value)
    return _vote_response(result)


@router.delete("/{target_type}/{target_id}", response_model=VoteResponse)
async def remove_vote(
    target_type: TargetType,
    target_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Remove the caller's vote, if any."""
    result = await retract_vote(db, user.id, target_type, target_id)
    return _vote_response(result)
