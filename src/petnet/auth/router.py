"""Current-user endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from petnet.auth.dependencies import get_current_user
from petnet.auth.schemas import UserResponse
from petnet.database import get_session
from petnet.db.models import User
from petnet.xp.levels import level_from_xp
from petnet.xp.xp_service import get_total_xp

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Profile of the caller, provisioned from the identity token on first call."""
    total_xp = await get_total_xp(db, user.id)
    return UserResponse(
        id=user.id,
        external_id=user.external_id,
        username=user.username,
        name=user.name,
        image_url=user.image_url,
        is_admin=user.is_admin,
        created_at=user.created_at,
        last_seen=user.last_seen,
        total_xp=total_xp,
        level=level_from_xp(total_xp),
    )
