"""XP and challenge-progress endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from petnet.auth.dependencies import get_current_user
from petnet.auth.service import get_user_by_id
from petnet.database import get_session
from petnet.db.models import User
from petnet.errors import NotFound
from petnet.xp.catalog import ALL_CHALLENGES
from petnet.xp.progress_service import get_progress_overview, record_progress
from petnet.xp.schemas import (
    ChallengeCatalogResponse,
    ChallengeDefinitionResponse,
    ProgressOverviewResponse,
    TrackRequest,
    TrackResponse,
    XPHistoryEntry,
    XPHistoryResponse,
)
from petnet.xp.xp_service import get_xp_history

router = APIRouter(prefix="/api/v1/xp", tags=["XP"])


@router.get("/challenges", response_model=ChallengeCatalogResponse)
async def list_challenges():
    """The static challenge catalog."""
    return ChallengeCatalogResponse(
        challenges=[
            ChallengeDefinitionResponse(
                id=c.id,
                name=c.name,
                description=c.description,
                cadence=c.cadence,
                goal=c.goal,
                xp_reward=c.xp_reward,
                requires_recipient=c.requires_recipient,
            )
            for c in ALL_CHALLENGES
        ]
    )


@router.post("/track", response_model=TrackResponse)
async def track_progress(
    body: TrackRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Record progress on a challenge; credits XP when it completes."""
    result = await record_progress(
        db,
        user.id,
        body.challenge_id,
        increment=body.increment,
        recipient=body.recipient,
    )
    return TrackResponse(
        challenge_id=result.challenge_id,
        progress=result.progress,
        goal=result.goal,
        completed=result.completed,
        xp_gained=result.xp_gained,
        total_xp=result.total_xp,
        level=result.level,
        message=result.message,
    )


@router.get("/users/me", response_model=ProgressOverviewResponse)
async def get_my_progress(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Caller's XP, level and progress on every challenge."""
    return await get_progress_overview(db, user.id)


@router.get("/users/{user_id}", response_model=ProgressOverviewResponse)
async def get_user_progress(
    user_id: int,
    _viewer: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Another user's XP, level and challenge progress."""
    target = await get_user_by_id(db, user_id)
    if target is None:
        raise NotFound("User not found")
    return await get_progress_overview(db, target.id)


@router.get("/history", response_model=XPHistoryResponse)
async def get_my_xp_history(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """XP ledger history (paginated)."""
    entries, total = await get_xp_history(db, user.id, page, per_page)
    return XPHistoryResponse(
        entries=[
            XPHistoryEntry(
                amount=e.amount,
                source=e.source,
                source_id=e.source_id,
                description=e.description,
                created_at=e.created_at,
            )
            for e in entries
        ],
        total=total,
        page=page,
        per_page=per_page,
    )
