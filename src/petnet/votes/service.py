"""Vote toggling and read-time score aggregation.

Toggle rules for one (voter, target) pair:

    no vote      + cast(v)   -> vote(v)
    vote(v)      + cast(v)   -> no vote   (same value twice retracts)
    vote(v)      + cast(-v)  -> vote(-v)

Scores are never stored; every read sums the live ``votes`` rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from petnet.db.models import Bark, BarkComment, ChallengePost, Vote, WeeklyChallenge
from petnet.errors import Conflict, InvalidInput, NotEligible, PetnetError
from petnet.locks import vote_locks

logger = structlog.get_logger()

TARGET_TYPES: tuple[str, ...] = ("bark", "bark_comment", "challenge_post")
VOTE_VALUES: tuple[int, ...] = (1, -1)


@dataclass(frozen=True, slots=True)
class Tally:
    upvotes: int = 0
    downvotes: int = 0

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes


@dataclass(frozen=True, slots=True)
class VoteResult:
    target_type: str
    target_id: int
    score: int
    upvotes: int
    downvotes: int
    user_vote: int | None
    action: str


def _check_target_type(target_type: str) -> None:
    if target_type not in TARGET_TYPES:
        raise InvalidInput(f"target_type must be one of {', '.join(TARGET_TYPES)}")


async def ensure_eligible(db: AsyncSession, target_type: str, target_id: int) -> None:
    """Raise NotEligible unless the target exists and is open for voting.

    Challenge posts are only votable while their weekly challenge is active.
    """
    _check_target_type(target_type)
    if target_type == "bark":
        query = select(Bark.id).where(Bark.id == target_id)
    elif target_type == "bark_comment":
        query = select(BarkComment.id).where(BarkComment.id == target_id)
    else:
        query = (
            select(ChallengePost.id)
            .join(WeeklyChallenge, ChallengePost.challenge_id == WeeklyChallenge.id)
            .where(ChallengePost.id == target_id, WeeklyChallenge.is_active.is_(True))
        )
    result = await db.execute(query)
    if result.scalar_one_or_none() is None:
        if target_type == "challenge_post":
            raise NotEligible("Post not found in active challenge")
        raise NotEligible(f"{target_type.replace('_', ' ').capitalize()} not found")


async def tally_for(db: AsyncSession, target_type: str, target_id: int) -> Tally:
    """Upvotes/downvotes of a single target."""
    return (await tallies_for(db, target_type, [target_id])).get(target_id, Tally())


async def tallies_for(db: AsyncSession, target_type: str, target_ids: list[int]) -> dict[int, Tally]:
    """Batch tallies; targets without votes are absent from the result."""
    if not target_ids:
        return {}
    result = await db.execute(
        select(
            Vote.target_id,
            func.sum(case((Vote.value == 1, 1), else_=0)).label("up"),
            func.sum(case((Vote.value == -1, 1), else_=0)).label("down"),
        )
        .where(Vote.target_type == target_type, Vote.target_id.in_(target_ids))
        .group_by(Vote.target_id)
    )
    return {row.target_id: Tally(int(row.up or 0), int(row.down or 0)) for row in result}


async def user_votes_for(
    db: AsyncSession, voter_id: int, target_type: str, target_ids: list[int],
) -> dict[int, int]:
    """The caller's own vote value per target (for "you voted" UI state)."""
    if not target_ids:
        return {}
    result = await db.execute(
        select(Vote.target_id, Vote.value).where(
            Vote.voter_id == voter_id,
            Vote.target_type == target_type,
            Vote.target_id.in_(target_ids),
        )
    )
    return {row.target_id: row.value for row in result}


async def _load_vote(db: AsyncSession, voter_id: int, target_type: str, target_id: int) -> Vote | None:
    result = await db.execute(
        select(Vote)
        .where(
            Vote.voter_id == voter_id,
            Vote.target_type == target_type,
            Vote.target_id == target_id,
        )
        .with_for_update()
    )
    return result.scalar_one_or_none()


async def cast_vote(
    db: AsyncSession,
    voter_id: int,
    target_type: str,
    target_id: int,
    value: int,
) -> VoteResult:
    """Apply the toggle rules and return the freshly recomputed score."""
    _check_target_type(target_type)
    if value not in VOTE_VALUES:
        raise InvalidInput("Vote must be 1 (upvote) or -1 (downvote)")

    async def mutate(existing: Vote | None) -> tuple[str, int | None]:
        if existing is None:
            db.add(Vote(voter_id=voter_id, target_type=target_type, target_id=target_id, value=value))
            return "cast", value
        if existing.value == value:
            await db.delete(existing)
            return "retracted", None
        existing.value = value
        existing.updated_at = datetime.now(timezone.utc)
        return "changed", value

    return await _locked_update(db, voter_id, target_type, target_id, mutate)


async def retract_vote(
    db: AsyncSession,
    voter_id: int,
    target_type: str,
    target_id: int,
) -> VoteResult:
    """Remove the caller's vote if there is one; a no-op otherwise.

    Retraction does not require the target to still be open for voting, so a
    vote on a post from a closed challenge can always be withdrawn.
    """
    _check_target_type(target_type)

    async def mutate(existing: Vote | None) -> tuple[str, int | None]:
        if existing is None:
            return "none", None
        await db.delete(existing)
        return "retracted", None

    return await _locked_update(db, voter_id, target_type, target_id, mutate, check_eligible=False)


async def _locked_update(db, voter_id, target_type, target_id, mutate, check_eligible=True) -> VoteResult:
    async with vote_locks.hold((voter_id, target_type, target_id)):
        try:
            if check_eligible:
                await ensure_eligible(db, target_type, target_id)
            existing = await _load_vote(db, voter_id, target_type, target_id)
            action, user_vote = await mutate(existing)
            await db.flush()
            tally = await tally_for(db, target_type, target_id)
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            logger.warning("vote_write_conflict", voter_id=voter_id, target_type=target_type, target_id=target_id)
            raise Conflict() from exc
        except PetnetError:
            await db.rollback()
            raise

    logger.info(
        "vote_recorded",
        voter_id=voter_id,
        target_type=target_type,
        target_id=target_id,
        action=action,
        score=tally.score,
    )
    return VoteResult(
        target_type=target_type,
        target_id=target_id,
        score=tally.score,
        upvotes=tally.upvotes,
        downvotes=tally.downvotes,
        user_vote=user_vote,
        action=action,
    )
