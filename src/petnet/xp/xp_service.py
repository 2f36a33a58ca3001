"""XP grants with idempotency and level-up detection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from petnet.db.models import Pet, UserXP, XPLedger
from petnet.redis_client import publish_event
from petnet.xp.levels import level_from_xp

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class XPGrant:
    granted: bool
    total_xp: int
    old_level: int
    new_level: int


async def get_or_create_user_xp(db: AsyncSession, user_id: int) -> UserXP:
    """Get or create the denormalized XP row for a user.

    The row is read ``FOR UPDATE`` and held until the caller commits; any
    copy already in the session is overwritten with the locked values.
    """
    result = await db.execute(
        select(UserXP)
        .where(UserXP.user_id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    row = result.scalar_one_or_none()
    if row is None:
        row = UserXP(
            user_id=user_id,
            total_xp=0,
            level=1,
            updated_at=datetime.now(timezone.utc),
        )
        db.add(row)
        await db.flush()
    return row


async def get_total_xp(db: AsyncSession, user_id: int) -> int:
    """Read-only total; 0 for users that never earned anything."""
    result = await db.execute(select(UserXP.total_xp).where(UserXP.user_id == user_id))
    return result.scalar_one_or_none() or 0


async def grant_xp(
    db: AsyncSession,
    user_id: int,
    amount: int,
    source: str,
    source_id: str,
    description: str,
    idempotency_key: str,
) -> XPGrant:
    """Grant XP to a user. ``granted`` is False if the key was already used.

    Runs inside the caller's transaction:
    1. Insert into xp_ledger
    2. Update user_xp.total_xp
    3. Recompute level from total_xp
    """
    xp_row = await get_or_create_user_xp(db, user_id)

    existing = await db.execute(
        select(XPLedger.id).where(XPLedger.idempotency_key == idempotency_key)
    )
    if existing.scalar_one_or_none() is not None:
        return XPGrant(False, xp_row.total_xp, xp_row.level, xp_row.level)

    now = datetime.now(timezone.utc)
    db.add(XPLedger(
        user_id=user_id,
        amount=amount,
        source=source,
        source_id=source_id,
        description=description,
        idempotency_key=idempotency_key,
        created_at=now,
    ))

    old_level = xp_row.level
    xp_row.total_xp += amount
    xp_row.level = level_from_xp(xp_row.total_xp)
    xp_row.updated_at = now
    await db.flush()

    logger.info("xp_granted", user_id=user_id, amount=amount, source=source, total_xp=xp_row.total_xp)
    return XPGrant(True, xp_row.total_xp, old_level, xp_row.level)


async def credit_pets(db: AsyncSession, user_id: int, amount: int) -> list[Pet]:
    """Add *amount* XP to every pet the user owns; returns the updated pets."""
    result = await db.execute(
        select(Pet)
        .where(Pet.user_id == user_id)
        .order_by(Pet.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    pets = list(result.scalars().all())
    for pet in pets:
        pet.xp += amount
        pet.level = level_from_xp(pet.xp)
    if pets:
        await db.flush()
    return pets


async def emit_level_up(user_id: int, old_level: int, new_level: int) -> None:
    """Broadcast a level-up for activity feeds / overlays."""
    await publish_event("level_up", {
        "user_id": user_id,
        "old_level": old_level,
        "new_level": new_level,
    })


async def get_xp_history(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    per_page: int = 50,
) -> tuple[list[XPLedger], int]:
    """Ledger entries newest first, plus the total entry count."""
    total_result = await db.execute(
        select(func.count()).select_from(XPLedger).where(XPLedger.user_id == user_id)
    )
    total = total_result.scalar_one()

    result = await db.execute(
        select(XPLedger)
        .where(XPLedger.user_id == user_id)
        .order_by(XPLedger.created_at.desc(), XPLedger.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total
