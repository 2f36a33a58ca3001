"""Leaderboard data: pet celebrities and weekly challengers.

Two independent scopes:
- pet_celebs: every pet ranked by cumulative love_count, oldest pet first on
  ties; weekly challenges play no part
- challengers: authors of submissions to the active weekly challenge, ranked
  by the net votes summed over all their entries; empty with no active
  challenge
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from petnet.challenges.service import get_active_challenge
from petnet.db.models import ChallengePost, Pet, Post, User, WeeklyChallenge
from petnet.leaderboard.ranking import rank_entries
from petnet.votes.service import tallies_for

logger = logging.getLogger(__name__)


async def get_pet_celebs(
    db: AsyncSession, offset: int = 0, limit: int | None = None,
) -> list[dict[str, Any]]:
    """Pets by love_count DESC, pet id ASC.

    Dense ranks are computed over the whole table by the database, so a
    window keeps the ranks it would have had in the full listing.
    """
    rank = func.dense_rank().over(order_by=Pet.love_count.desc()).label("rank")
    query = (
        select(Pet, User, rank)
        .join(User, Pet.user_id == User.id)
        .order_by(Pet.love_count.desc(), Pet.id)
        .offset(offset)
    )
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)
    return [
        {
            "rank": int(pet_rank),
            "pet_id": pet.id,
            "name": pet.name,
            "species": pet.species,
            "breed": pet.breed,
            "image_url": pet.image_url,
            "level": pet.level,
            "love_count": pet.love_count,
            "owner": {
                "id": owner.id,
                "username": owner.username,
                "name": owner.name,
                "image_url": owner.image_url,
            },
        }
        for pet, owner, pet_rank in result.all()
    ]


async def get_challengers(
    db: AsyncSession,
    challenge: WeeklyChallenge | None,
    offset: int = 0,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    """Per-author net votes across the challenge's submissions.

    Authors appear in order of their first submission before ranking, so
    equal totals resolve in favour of whoever entered first.
    """
    if challenge is None:
        return []

    result = await db.execute(
        select(ChallengePost.id, User)
        .join(Post, ChallengePost.post_id == Post.id)
        .join(User, Post.author_id == User.id)
        .where(ChallengePost.challenge_id == challenge.id)
        .order_by(ChallengePost.id)
    )
    rows = result.all()
    tallies = await tallies_for(db, "challenge_post", [entry_id for entry_id, _ in rows])

    by_author: dict[int, dict[str, Any]] = {}
    for entry_id, author in rows:
        agg = by_author.get(author.id)
        if agg is None:
            agg = by_author[author.id] = {
                "user_id": author.id,
                "username": author.username,
                "name": author.name,
                "image_url": author.image_url,
                "upvotes": 0,
                "downvotes": 0,
                "net_votes": 0,
                "post_count": 0,
            }
        tally = tallies.get(entry_id)
        if tally is not None:
            agg["upvotes"] += tally.upvotes
            agg["downvotes"] += tally.downvotes
            agg["net_votes"] += tally.score
        agg["post_count"] += 1

    return rank_entries(list(by_author.values()), "net_votes", offset=offset, limit=limit)


async def get_leaderboard(db: AsyncSession, offset: int = 0, limit: int | None = None) -> dict[str, Any]:
    """Both scopes plus the active challenge, windowed identically."""
    challenge = await get_active_challenge(db)
    pet_celebs = await get_pet_celebs(db, offset=offset, limit=limit)
    challengers = await get_challengers(db, challenge, offset=offset, limit=limit)
    logger.debug(
        "Leaderboard built: %d pet celebs, %d challengers (offset=%d, limit=%s)",
        len(pet_celebs), len(challengers), offset, limit,
    )
    return {
        "pet_celebs": pet_celebs,
        "challengers": challengers,
        "challenge": challenge,
    }
