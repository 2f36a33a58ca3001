"""Weekly photo challenges.

Rules:
- At most one challenge is active at a time; activating one deactivates
  every other in the same transaction
- A post can be submitted to the active challenge only by its author
- One submission per (challenge, post)
- Submissions are ranked by net votes (upvotes - downvotes); ties keep
  submission order
- A challenge may carry a poll: each user holds at most one pick per
  challenge, changeable until the challenge's end_date
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from petnet.db.models import ChallengeOption, ChallengePost, ChallengeVote, Post, User, Vote, WeeklyChallenge
from petnet.errors import Conflict, DuplicateAction, Forbidden, InvalidInput, NotFound
from petnet.leaderboard.ranking import rank_entries
from petnet.locks import poll_locks
from petnet.votes.service import tallies_for, user_votes_for
from petnet.xp.reset import ensure_utc

logger = logging.getLogger(__name__)


def normalize_hashtag(raw: str) -> str:
    """``"#Sleepy Pets "`` -> ``"sleepypets"``."""
    tag = "".join(raw.strip().lstrip("#").split()).lower()
    if not tag:
        raise InvalidInput("Hashtag must not be empty")
    return tag


async def get_challenge_by_id(db: AsyncSession, challenge_id: int) -> WeeklyChallenge | None:
    result = await db.execute(select(WeeklyChallenge).where(WeeklyChallenge.id == challenge_id))
    return result.scalar_one_or_none()


async def get_active_challenge(db: AsyncSession) -> WeeklyChallenge | None:
    """The currently active weekly challenge, if any."""
    result = await db.execute(
        select(WeeklyChallenge)
        .where(WeeklyChallenge.is_active.is_(True))
        .order_by(WeeklyChallenge.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_challenges(db: AsyncSession) -> list[WeeklyChallenge]:
    result = await db.execute(select(WeeklyChallenge).order_by(WeeklyChallenge.start_date.desc(), WeeklyChallenge.id.desc()))
    return list(result.scalars().all())


async def count_submissions(db: AsyncSession, challenge_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(ChallengePost).where(ChallengePost.challenge_id == challenge_id)
    )
    return result.scalar() or 0


def _utc(value: datetime) -> datetime:
    return ensure_utc(value).astimezone(timezone.utc)


def _option_title(option: dict) -> str:
    title = (option.get("title") or "").strip()
    if not title:
        raise InvalidInput("Option title must not be empty")
    return title


async def create_challenge(
    db: AsyncSession,
    created_by: int,
    title: str,
    hashtag: str,
    start_date: datetime,
    end_date: datetime,
    description: str = "",
    options: list[dict] | None = None,
) -> WeeklyChallenge:
    """Create a new (inactive) weekly challenge.

    ``options`` are ``{"title", "description"}`` dicts for the challenge poll,
    numbered 1..n in the order given.
    """
    start_date = _utc(start_date)
    end_date = _utc(end_date)
    if end_date <= start_date:
        raise InvalidInput("end_date must be after start_date")
    title = title.strip()
    if not title:
        raise InvalidInput("Title must not be empty")
    option_rows = [
        (_option_title(option), (option.get("description") or "").strip() or None)
        for option in options or []
    ]

    challenge = WeeklyChallenge(
        title=title,
        description=description.strip(),
        hashtag=normalize_hashtag(hashtag),
        start_date=start_date,
        end_date=end_date,
        is_active=False,
        created_by=created_by,
    )
    db.add(challenge)
    await db.flush()
    for index, (option_title, option_description) in enumerate(option_rows, start=1):
        db.add(ChallengeOption(
            challenge_id=challenge.id,
            title=option_title,
            description=option_description,
            order_index=index,
        ))
    await db.commit()
    logger.info("Weekly challenge created: %s (id=%d, by=%d)", challenge.title, challenge.id, created_by)
    return challenge


async def activate_challenge(db: AsyncSession, challenge_id: int) -> WeeklyChallenge:
    """Make ``challenge_id`` the only active challenge."""
    challenge = await get_challenge_by_id(db, challenge_id)
    if challenge is None:
        raise NotFound("Challenge not found")

    await db.execute(
        update(WeeklyChallenge)
        .where(WeeklyChallenge.id != challenge_id, WeeklyChallenge.is_active.is_(True))
        .values(is_active=False)
    )
    challenge.is_active = True
    await db.commit()
    await db.refresh(challenge)
    logger.info("Weekly challenge activated: id=%d", challenge_id)
    return challenge


async def update_challenge(
    db: AsyncSession,
    challenge_id: int,
    *,
    title: str | None = None,
    description: str | None = None,
    hashtag: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    is_active: bool | None = None,
) -> WeeklyChallenge:
    """Partial update: only the arguments that are not None change.

    Everything is validated before the row is touched. ``is_active=True``
    closes any other active challenge, exactly like activation.
    """
    challenge = await get_challenge_by_id(db, challenge_id)
    if challenge is None:
        raise NotFound("Challenge not found")

    if title is not None:
        title = title.strip()
        if not title:
            raise InvalidInput("Title must not be empty")
    if hashtag is not None:
        hashtag = normalize_hashtag(hashtag)
    start = _utc(start_date if start_date is not None else challenge.start_date)
    end = _utc(end_date if end_date is not None else challenge.end_date)
    if end <= start:
        raise InvalidInput("end_date must be after start_date")

    if title is not None:
        challenge.title = title
    if description is not None:
        challenge.description = description.strip()
    if hashtag is not None:
        challenge.hashtag = hashtag
    challenge.start_date = start
    challenge.end_date = end
    if is_active:
        await db.execute(
            update(WeeklyChallenge)
            .where(WeeklyChallenge.id != challenge_id, WeeklyChallenge.is_active.is_(True))
            .values(is_active=False)
        )
    if is_active is not None:
        challenge.is_active = is_active
    await db.commit()
    await db.refresh(challenge)
    logger.info("Weekly challenge updated: id=%d", challenge_id)
    return challenge


async def delete_challenge(db: AsyncSession, challenge_id: int) -> None:
    """Delete a challenge with its entries, its poll and the votes on its entries."""
    challenge = await get_challenge_by_id(db, challenge_id)
    if challenge is None:
        raise NotFound("Challenge not found")

    entry_ids = select(ChallengePost.id).where(ChallengePost.challenge_id == challenge_id)
    await db.execute(
        delete(Vote).where(Vote.target_type == "challenge_post", Vote.target_id.in_(entry_ids))
    )
    await db.execute(delete(ChallengeVote).where(ChallengeVote.challenge_id == challenge_id))
    await db.execute(delete(ChallengeOption).where(ChallengeOption.challenge_id == challenge_id))
    await db.execute(delete(ChallengePost).where(ChallengePost.challenge_id == challenge_id))
    await db.delete(challenge)
    await db.commit()
    logger.info("Weekly challenge deleted: id=%d", challenge_id)


async def submit_post(db: AsyncSession, user_id: int, post_id: int) -> ChallengePost:
    """Enter one of the caller's posts into the active challenge."""
    challenge = await get_active_challenge(db)
    if challenge is None:
        raise NotFound("No active challenge")

    result = await db.execute(select(Post).where(Post.id == post_id))
    post = result.scalar_one_or_none()
    if post is None:
        raise NotFound("Post not found")
    if post.author_id != user_id:
        raise Forbidden("You can only submit your own posts")

    existing = await db.execute(
        select(ChallengePost.id).where(
            ChallengePost.challenge_id == challenge.id,
            ChallengePost.post_id == post_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise DuplicateAction("Post already submitted to this challenge")

    entry = ChallengePost(challenge_id=challenge.id, post_id=post_id)
    db.add(entry)
    post.challenge_hashtag = challenge.hashtag
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise DuplicateAction("Post already submitted to this challenge") from exc

    logger.info("Post %d submitted to challenge %d by user %d", post_id, challenge.id, user_id)
    return entry


async def list_submissions(
    db: AsyncSession,
    viewer_id: int | None = None,
    offset: int = 0,
    limit: int | None = None,
) -> tuple[WeeklyChallenge | None, list[dict]]:
    """Active challenge submissions ranked by net votes.

    Returns ``(None, [])`` when no challenge is active.
    """
    challenge = await get_active_challenge(db)
    if challenge is None:
        return None, []

    result = await db.execute(
        select(ChallengePost, Post, User)
        .join(Post, ChallengePost.post_id == Post.id)
        .join(User, Post.author_id == User.id)
        .where(ChallengePost.challenge_id == challenge.id)
        .order_by(ChallengePost.id)
    )
    rows = result.all()
    entry_ids = [cp.id for cp, _, _ in rows]
    tallies = await tallies_for(db, "challenge_post", entry_ids)
    mine = await user_votes_for(db, viewer_id, "challenge_post", entry_ids) if viewer_id else {}

    entries = []
    for cp, post, author in rows:
        tally = tallies.get(cp.id)
        up = tally.upvotes if tally else 0
        down = tally.downvotes if tally else 0
        entries.append({
            "id": cp.id,
            "post_id": post.id,
            "content": post.content,
            "image_url": post.image_url,
            "pet_id": post.pet_id,
            "author": {
                "id": author.id,
                "username": author.username,
                "name": author.name,
                "image_url": author.image_url,
            },
            "upvotes": up,
            "downvotes": down,
            "net_votes": up - down,
            "user_vote": mine.get(cp.id),
            "submitted_at": ensure_utc(cp.created_at),
        })
    return challenge, rank_entries(entries, "net_votes", offset=offset, limit=limit)


def challenge_summary(challenge: WeeklyChallenge) -> dict:
    now = datetime.now(timezone.utc)
    return {
        "id": challenge.id,
        "title": challenge.title,
        "description": challenge.description,
        "hashtag": challenge.hashtag,
        "start_date": ensure_utc(challenge.start_date),
        "end_date": ensure_utc(challenge.end_date),
        "is_active": challenge.is_active,
        "has_ended": ensure_utc(challenge.end_date) <= now,
    }


# ---------------------------------------------------------------------------
# Poll
# ---------------------------------------------------------------------------


def _percentage(votes: int, total: int) -> int:
    """Share of *total* as a whole percentage, halves rounded up."""
    if total == 0:
        return 0
    return (votes * 200 + total) // (2 * total)


async def list_options(db: AsyncSession, challenge_id: int) -> list[dict]:
    """Poll options in display order with their vote counts and percentages."""
    result = await db.execute(
        select(ChallengeOption, func.count(ChallengeVote.id).label("votes"))
        .outerjoin(ChallengeVote, ChallengeVote.option_id == ChallengeOption.id)
        .where(ChallengeOption.challenge_id == challenge_id)
        .group_by(ChallengeOption.id)
        .order_by(ChallengeOption.order_index, ChallengeOption.id)
    )
    rows = result.all()
    total = sum(votes for _, votes in rows)
    return [
        {
            "id": option.id,
            "title": option.title,
            "description": option.description,
            "order_index": option.order_index,
            "vote_count": votes,
            "percentage": _percentage(votes, total),
        }
        for option, votes in rows
    ]


async def get_user_option_vote(db: AsyncSession, user_id: int, challenge_id: int) -> int | None:
    """The option the user currently picks in a challenge's poll, if any."""
    result = await db.execute(
        select(ChallengeVote.option_id).where(
            ChallengeVote.user_id == user_id,
            ChallengeVote.challenge_id == challenge_id,
        )
    )
    return result.scalar_one_or_none()


async def vote_on_option(
    db: AsyncSession,
    user_id: int,
    challenge_id: int,
    option_id: int,
    now: datetime | None = None,
) -> str:
    """Record or change the user's pick in the active challenge's poll.

    Returns ``"cast"``, ``"changed"`` or ``"unchanged"``.

    Raises:
        NotFound: challenge missing or not active, or the option is not one
            of this challenge's.
        InvalidInput: the challenge's end_date has passed.
        Conflict: a concurrent first pick by the same user won the insert.
    """
    challenge = await get_challenge_by_id(db, challenge_id)
    if challenge is None or not challenge.is_active:
        raise NotFound("Challenge not found or not active")
    option = await db.execute(
        select(ChallengeOption.id).where(
            ChallengeOption.id == option_id,
            ChallengeOption.challenge_id == challenge_id,
        )
    )
    if option.scalar_one_or_none() is None:
        raise NotFound("Challenge option not found")
    if now is None:
        now = datetime.now(timezone.utc)
    if now > ensure_utc(challenge.end_date):
        raise InvalidInput("Voting period has ended")

    async with poll_locks.hold((user_id, challenge_id)):
        try:
            result = await db.execute(
                select(ChallengeVote)
                .where(ChallengeVote.user_id == user_id, ChallengeVote.challenge_id == challenge_id)
                .with_for_update()
            )
            existing = result.scalar_one_or_none()
            if existing is None:
                db.add(ChallengeVote(
                    user_id=user_id, challenge_id=challenge_id, option_id=option_id, created_at=now,
                ))
                action = "cast"
            elif existing.option_id == option_id:
                action = "unchanged"
            else:
                existing.option_id = option_id
                existing.updated_at = now
                action = "changed"
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            logger.warning("Poll vote conflict: user=%d challenge=%d", user_id, challenge_id)
            raise Conflict() from exc

    logger.info("Poll vote %s: user=%d challenge=%d option=%d", action, user_id, challenge_id, option_id)
    return action


async def challenge_detail(db: AsyncSession, challenge: WeeklyChallenge) -> dict:
    """Summary plus creator, poll options and submission count (admin view)."""
    return {
        **challenge_summary(challenge),
        "created_by": challenge.created_by,
        "options": await list_options(db, challenge.id),
        "submission_count": await count_submissions(db, challenge.id),
    }
