"""Challenge progress tracking.

``record_progress`` is the only writer of ``user_challenges`` rows. Each call
is a read-modify-write on the (user, challenge) row, serialised by
``petnet.locks.progress_locks`` in-process and by a row lock in the database,
and committed before the lock is released. XP is credited on the completion
transition only (edge-triggered), and the ledger's idempotency key makes a
second credit for the same reset window impossible even if two processes
race past the row lock.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from petnet.db.models import ShareRecipient, UserChallenge
from petnet.errors import Conflict, DuplicateAction, InvalidInput, PetnetError
from petnet.locks import progress_locks
from petnet.redis_client import publish_event
from petnet.xp.catalog import ALL_CHALLENGES, ChallengeDefinition, get_challenge
from petnet.xp.levels import level_from_xp, level_info
from petnet.xp.reset import ResetPolicy
from petnet.xp.xp_service import XPGrant, credit_pets, emit_level_up, get_total_xp, grant_xp

logger = structlog.get_logger()


@dataclass(slots=True)
class ProgressResult:
    challenge_id: str
    progress: int
    goal: int
    completed: bool
    xp_gained: int
    total_xp: int
    level: int
    previous_level: int = 1
    completed_now: bool = False
    message: str | None = None


async def record_progress(
    db: AsyncSession,
    user_id: int,
    challenge_id: str,
    increment: int = 1,
    recipient: str | None = None,
    now: datetime | None = None,
    policy: ResetPolicy | None = None,
) -> ProgressResult:
    """Apply *increment* to the user's progress on *challenge_id*.

    Raises:
        NotFound: unknown challenge id.
        InvalidInput: negative increment, or a positive increment on a recipient
            challenge without a recipient. A zero increment never consumes a recipient.
        DuplicateAction: recipient already counted today; nothing is written.
        Conflict: another process created the same row concurrently.
    """
    challenge = get_challenge(challenge_id)
    if increment < 0:
        raise InvalidInput("increment must be a non-negative integer")
    if challenge.requires_recipient and increment > 0:
        recipient = (recipient or "").strip().lower()
        if not recipient:
            raise InvalidInput("recipient is required for this challenge")

    if now is None:
        now = datetime.now(timezone.utc)
    if policy is None:
        policy = ResetPolicy.from_settings()

    async with progress_locks.hold((user_id, challenge.id)):
        try:
            result = await _apply_increment(db, user_id, challenge, increment, recipient, now, policy)
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            logger.warning("progress_write_conflict", user_id=user_id, challenge_id=challenge.id)
            raise Conflict() from exc
        except PetnetError:
            await db.rollback()
            raise

    if result.completed_now:
        logger.info(
            "challenge_completed",
            user_id=user_id,
            challenge_id=challenge.id,
            xp_gained=result.xp_gained,
        )
        await publish_event("challenge_completed", {
            "user_id": user_id,
            "challenge_id": challenge.id,
            "xp_gained": result.xp_gained,
            "total_xp": result.total_xp,
        })
        if result.level > result.previous_level:
            await emit_level_up(user_id, result.previous_level, result.level)

    return result


async def _apply_increment(
    db: AsyncSession,
    user_id: int,
    challenge: ChallengeDefinition,
    increment: int,
    recipient: str | None,
    now: datetime,
    policy: ResetPolicy,
) -> ProgressResult:
    row_result = await db.execute(
        select(UserChallenge)
        .where(
            UserChallenge.user_id == user_id,
            UserChallenge.challenge_id == challenge.id,
            UserChallenge.cadence == challenge.cadence,
        )
        .with_for_update()
    )
    row = row_result.scalar_one_or_none()

    if challenge.requires_recipient and increment > 0:
        await _record_recipient(db, user_id, recipient, policy.share_day(now))

    if row is None:
        old_progress, was_completed = 0, False
        row = UserChallenge(
            user_id=user_id,
            challenge_id=challenge.id,
            cadence=challenge.cadence,
            goal=challenge.goal,
            progress=0,
            completed=False,
            last_updated=now,
        )
        db.add(row)
    elif policy.needs_reset(challenge.cadence, row.last_updated, now):
        old_progress, was_completed = 0, False
        row.completed_at = None
    else:
        old_progress, was_completed = row.progress, row.completed

    new_progress = min(old_progress + increment, challenge.goal)
    is_completed = new_progress >= challenge.goal
    completed_now = is_completed and not was_completed

    row.progress = new_progress
    row.completed = is_completed
    row.goal = challenge.goal
    row.last_updated = now
    if completed_now:
        row.completed_at = now
    await db.flush()

    grant: XPGrant | None = None
    xp_gained = 0
    if completed_now:
        grant = await grant_xp(
            db,
            user_id,
            challenge.xp_reward,
            source="challenge",
            source_id=challenge.id,
            description=f"Completed {challenge.name}",
            idempotency_key=f"challenge:{user_id}:{challenge.id}:{policy.period_key(challenge.cadence, now)}",
        )
        if grant.granted:
            await credit_pets(db, user_id, challenge.xp_reward)
            xp_gained = challenge.xp_reward
        total_xp = grant.total_xp
        previous_level = grant.old_level
    else:
        total_xp = await get_total_xp(db, user_id)
        previous_level = level_from_xp(total_xp)

    return ProgressResult(
        challenge_id=challenge.id,
        progress=new_progress,
        goal=challenge.goal,
        completed=is_completed,
        xp_gained=xp_gained,
        total_xp=total_xp,
        level=level_from_xp(total_xp),
        previous_level=previous_level,
        completed_now=completed_now and grant is not None and grant.granted,
        message=f"Challenge completed! +{xp_gained} XP" if xp_gained else None,
    )


async def _record_recipient(db: AsyncSession, user_id: int, recipient: str | None, day: date) -> None:
    existing = await db.execute(
        select(ShareRecipient.id).where(
            ShareRecipient.user_id == user_id,
            ShareRecipient.recipient == recipient,
            ShareRecipient.share_day == day,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise DuplicateAction("You already shared Petnet with this recipient today")
    db.add(ShareRecipient(user_id=user_id, recipient=recipient, share_day=day))


async def get_progress_overview(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
    policy: ResetPolicy | None = None,
) -> dict:
    """Every catalog challenge with the user's progress in the current window."""
    if now is None:
        now = datetime.now(timezone.utc)
    if policy is None:
        policy = ResetPolicy.from_settings()

    result = await db.execute(select(UserChallenge).where(UserChallenge.user_id == user_id))
    rows = {(r.challenge_id, r.cadence): r for r in result.scalars()}

    challenges = []
    for challenge in ALL_CHALLENGES:
        row = rows.get((challenge.id, challenge.cadence))
        if row is None or policy.needs_reset(challenge.cadence, row.last_updated, now):
            progress, completed = 0, False
        else:
            progress = min(row.progress, challenge.goal)
            completed = progress >= challenge.goal
        challenges.append({
            "id": challenge.id,
            "name": challenge.name,
            "description": challenge.description,
            "cadence": challenge.cadence,
            "xp_reward": challenge.xp_reward,
            "goal": challenge.goal,
            "progress": progress,
            "completed": completed,
            "resets_at": policy.period_end(challenge.cadence, now),
        })

    total_xp = await get_total_xp(db, user_id)
    return {
        "user_id": user_id,
        "total_xp": total_xp,
        **level_info(total_xp),
        "challenges": challenges,
    }

