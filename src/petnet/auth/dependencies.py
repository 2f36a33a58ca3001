"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from petnet.auth.jwt import verify_token
from petnet.auth.service import get_or_create_user
from petnet.database import get_session
from petnet.db.models import User
from petnet.errors import Forbidden, Unauthenticated

_bearer = HTTPBearer(auto_error=False)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User | None:
    """
    Resolve the caller if a bearer token is present.

    Anonymous requests yield None; a token that is present but invalid is
    still rejected with 401.
    """
    if credentials is None:
        return None
    try:
        claims = verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise Unauthenticated(str(e)) from e

    user, _ = await get_or_create_user(db, str(claims["sub"]), claims)
    return user


async def get_current_user(
    user: User | None = Depends(get_optional_user),
) -> User:
    """Same as get_optional_user but anonymous callers get 401."""
    if user is None:
        raise Unauthenticated()
    return user


async def require_admin(
    user: User = Depends(get_current_user),
) -> User:
    """Admin-only routes: 403 for everyone else."""
    if not user.is_admin:
        raise Forbidden("Admin access required")
    return user
