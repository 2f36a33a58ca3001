"""Local user records for identity-provider principals."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from petnet.config import get_settings
from petnet.db.models import User

logger = structlog.get_logger()


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Look up a user by database ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_external_id(db: AsyncSession, external_id: str) -> User | None:
    """Look up a user by the identity provider's subject id."""
    result = await db.execute(select(User).where(User.external_id == external_id))
    return result.scalar_one_or_none()


async def get_or_create_user(
    db: AsyncSession,
    external_id: str,
    claims: dict[str, Any] | None = None,
) -> tuple[User, bool]:
    """
    Get the user for a principal, provisioning it on first sight.

    Profile fields are copied from the token's ``username``/``name``/``image``
    claims when present. ``last_seen`` is stamped and committed on every call,
    so every authenticated request records it whatever the endpoint.
    Returns (user, created).
    """
    claims = claims or {}
    now = datetime.now(timezone.utc)

    user = await get_user_by_external_id(db, external_id)
    if user is not None:
        user.last_seen = now
        await db.commit()
        return user, False

    user = User(
        external_id=external_id,
        username=claims.get("username"),
        name=claims.get("name"),
        image_url=claims.get("image"),
        is_admin=external_id in get_settings().admin_external_ids,
        created_at=now,
        last_seen=now,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Two first requests from the same principal raced; use the winner's row.
        await db.rollback()
        user = await get_user_by_external_id(db, external_id)
        if user is None:
            raise
        return user, False

    logger.info("user_created", user_id=user.id, external_id=external_id)
    return user, True
