"""Leaderboard endpoint."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from petnet.config import get_settings
from petnet.database import get_session
from petnet.errors import InvalidInput
from petnet.leaderboard.schemas import LeaderboardChallenge, LeaderboardResponse
from petnet.leaderboard.service import get_leaderboard
from petnet.xp.reset import ensure_utc

router = APIRouter(prefix="/api/v1/leaderboard", tags=["Leaderboard"])


@router.get("", response_model=LeaderboardResponse)
async def leaderboard(
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_session),
):
    """Pet celebrities (love count) and weekly challengers (net votes)."""
    settings = get_settings()
    if limit is None:
        limit = settings.leaderboard_default_limit
    if limit > settings.leaderboard_max_limit:
        raise InvalidInput(f"limit must be <= {settings.leaderboard_max_limit}")

    data = await get_leaderboard(db, offset=offset, limit=limit)
    challenge = data["challenge"]
    return LeaderboardResponse(
        pet_celebs=data["pet_celebs"],
        challengers=data["challengers"],
        challenge=LeaderboardChallenge(
            id=challenge.id,
            title=challenge.title,
            hashtag=challenge.hashtag,
            start_date=ensure_utc(challenge.start_date),
            end_date=ensure_utc(challenge.end_date),
        ) if challenge else None,
        last_updated=datetime.now(timezone.utc),
    )
