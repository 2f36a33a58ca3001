"""Pets, feed posts and barks (forum threads with comments).

Rules:
- A post may feature a pet only if the author owns it
- love_count only ever goes up
- A comment's parent must belong to the same bark
- Only the author may edit or delete a bark or comment; deleting one also
  removes its replies and every vote cast on the removed rows
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from petnet.db.models import Bark, BarkComment, Pet, Post, Vote
from petnet.errors import Forbidden, InvalidInput, NotFound

logger = logging.getLogger(__name__)


def _require_text(value: str, field: str) -> str:
    value = value.strip()
    if not value:
        raise InvalidInput(f"{field} must not be empty")
    return value


# ---------------------------------------------------------------------------
# Pets
# ---------------------------------------------------------------------------


async def get_pet(db: AsyncSession, pet_id: int) -> Pet:
    result = await db.execute(select(Pet).where(Pet.id == pet_id))
    pet = result.scalar_one_or_none()
    if pet is None:
        raise NotFound("Pet not found")
    return pet


async def list_pets(db: AsyncSession, user_id: int) -> list[Pet]:
    result = await db.execute(select(Pet).where(Pet.user_id == user_id).order_by(Pet.id))
    return list(result.scalars().all())


async def create_pet(
    db: AsyncSession,
    user_id: int,
    name: str,
    species: str,
    breed: str | None = None,
    image_url: str | None = None,
) -> Pet:
    pet = Pet(
        user_id=user_id,
        name=_require_text(name, "Name"),
        species=_require_text(species, "Species").lower(),
        breed=breed.strip() if breed else None,
        image_url=image_url,
        xp=0,
        level=1,
        love_count=0,
    )
    db.add(pet)
    await db.commit()
    logger.info("Pet created: %s (id=%d, owner=%d)", pet.name, pet.id, user_id)
    return pet


async def love_pet(db: AsyncSession, pet_id: int) -> Pet:
    """Increment love_count atomically and return the refreshed pet."""
    result = await db.execute(
        update(Pet).where(Pet.id == pet_id).values(love_count=Pet.love_count + 1)
    )
    if result.rowcount == 0:
        raise NotFound("Pet not found")
    await db.commit()
    pet = await get_pet(db, pet_id)
    await db.refresh(pet)
    return pet


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


async def create_post(
    db: AsyncSession,
    author_id: int,
    content: str,
    image_url: str | None = None,
    pet_id: int | None = None,
) -> Post:
    if pet_id is not None:
        pet = await get_pet(db, pet_id)
        if pet.user_id != author_id:
            raise Forbidden("You can only post about your own pets")

    post = Post(
        author_id=author_id,
        pet_id=pet_id,
        content=_require_text(content, "Content"),
        image_url=image_url,
    )
    db.add(post)
    await db.commit()
    logger.info("Post created: id=%d author=%d", post.id, author_id)
    return post


async def get_post(db: AsyncSession, post_id: int) -> Post:
    result = await db.execute(select(Post).where(Post.id == post_id))
    post = result.scalar_one_or_none()
    if post is None:
        raise NotFound("Post not found")
    return post


async def list_posts(
    db: AsyncSession, author_id: int, page: int = 1, per_page: int = 20,
) -> tuple[list[Post], int]:
    """Author's posts newest first, plus the total count."""
    total = (await db.execute(
        select(func.count()).select_from(Post).where(Post.author_id == author_id)
    )).scalar_one()
    result = await db.execute(
        select(Post)
        .where(Post.author_id == author_id)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total


# ---------------------------------------------------------------------------
# Barks
# ---------------------------------------------------------------------------


async def create_bark(db: AsyncSession, author_id: int, title: str, content: str = "") -> Bark:
    bark = Bark(author_id=author_id, title=_require_text(title, "Title"), content=content.strip())
    db.add(bark)
    await db.commit()
    logger.info("Bark created: id=%d author=%d", bark.id, author_id)
    return bark


async def get_bark(db: AsyncSession, bark_id: int) -> Bark:
    result = await db.execute(select(Bark).where(Bark.id == bark_id))
    bark = result.scalar_one_or_none()
    if bark is None:
        raise NotFound("Bark not found")
    return bark


async def list_barks(db: AsyncSession, page: int = 1, per_page: int = 20) -> list[Bark]:
    result = await db.execute(
        select(Bark)
        .order_by(Bark.created_at.desc(), Bark.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all())


async def add_comment(
    db: AsyncSession,
    bark_id: int,
    author_id: int,
    content: str,
    parent_id: int | None = None,
) -> BarkComment:
    await get_bark(db, bark_id)
    if parent_id is not None:
        parent = (await db.execute(
            select(BarkComment).where(BarkComment.id == parent_id)
        )).scalar_one_or_none()
        if parent is None or parent.bark_id != bark_id:
            raise NotFound("Parent comment not found")

    comment = BarkComment(
        bark_id=bark_id,
        author_id=author_id,
        parent_id=parent_id,
        content=_require_text(content, "Content"),
    )
    db.add(comment)
    await db.commit()
    return comment


async def list_comments(db: AsyncSession, bark_id: int) -> list[BarkComment]:
    """Comments of a bark in posting order (threads rebuilt client-side via parent_id)."""
    await get_bark(db, bark_id)
    result = await db.execute(
        select(BarkComment).where(BarkComment.bark_id == bark_id).order_by(BarkComment.id)
    )
    return list(result.scalars().all())


async def comment_counts(db: AsyncSession, bark_ids: list[int]) -> dict[int, int]:
    if not bark_ids:
        return {}
    result = await db.execute(
        select(BarkComment.bark_id, func.count(BarkComment.id).label("cnt"))
        .where(BarkComment.bark_id.in_(bark_ids))
        .group_by(BarkComment.bark_id)
    )
    return {row.bark_id: row.cnt for row in result}


async def get_comment(db: AsyncSession, comment_id: int) -> BarkComment:
    result = await db.execute(select(BarkComment).where(BarkComment.id == comment_id))
    comment = result.scalar_one_or_none()
    if comment is None:
        raise NotFound("Comment not found")
    return comment


async def edit_bark(
    db: AsyncSession,
    bark_id: int,
    user_id: int,
    title: str | None = None,
    content: str | None = None,
) -> Bark:
    """Change the title and/or content of the caller's own bark."""
    bark = await get_bark(db, bark_id)
    if bark.author_id != user_id:
        raise Forbidden("You can only edit your own barks")
    if title is not None:
        bark.title = _require_text(title, "Title")
    if content is not None:
        bark.content = content.strip()
    await db.commit()
    logger.info("Bark edited: id=%d author=%d", bark_id, user_id)
    return bark


async def edit_comment(db: AsyncSession, comment_id: int, user_id: int, content: str) -> BarkComment:
    comment = await get_comment(db, comment_id)
    if comment.author_id != user_id:
        raise Forbidden("You can only edit your own comments")
    comment.content = _require_text(content, "Content")
    await db.commit()
    return comment


async def _comment_subtree(db: AsyncSession, root_id: int) -> list[int]:
    """``root_id`` plus the ids of every reply beneath it."""
    ids = [root_id]
    frontier = [root_id]
    while frontier:
        result = await db.execute(select(BarkComment.id).where(BarkComment.parent_id.in_(frontier)))
        frontier = list(result.scalars().all())
        ids.extend(frontier)
    return ids


async def _delete_comments(db: AsyncSession, comment_ids: list[int]) -> None:
    if not comment_ids:
        return
    await db.execute(
        delete(Vote).where(Vote.target_type == "bark_comment", Vote.target_id.in_(comment_ids))
    )
    await db.execute(delete(BarkComment).where(BarkComment.id.in_(comment_ids)))


async def delete_bark(db: AsyncSession, bark_id: int, user_id: int) -> None:
    """Delete the caller's own bark together with its comments and their votes."""
    bark = await get_bark(db, bark_id)
    if bark.author_id != user_id:
        raise Forbidden("You can only delete your own barks")

    result = await db.execute(select(BarkComment.id).where(BarkComment.bark_id == bark_id))
    await _delete_comments(db, list(result.scalars().all()))
    await db.execute(delete(Vote).where(Vote.target_type == "bark", Vote.target_id == bark_id))
    await db.delete(bark)
    await db.commit()
    logger.info("Bark deleted: id=%d author=%d", bark_id, user_id)


async def delete_comment(db: AsyncSession, comment_id: int, user_id: int) -> None:
    """Delete the caller's own comment and the replies beneath it."""
    comment = await get_comment(db, comment_id)
    if comment.author_id != user_id:
        raise Forbidden("You can only delete your own comments")

    await _delete_comments(db, await _comment_subtree(db, comment_id))
    await db.commit()
    logger.info("Comment deleted: id=%d author=%d", comment_id, user_id)
