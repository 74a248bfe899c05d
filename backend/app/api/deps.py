from __future__ import annotations

import uuid

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Forbidden, Unauthorized
from app.core.security import decode_access_token
from app.database import get_db
from app.models.user import User


async def get_current_user(
    request: Request, db: AsyncSession = Depends(get_db)
) -> User:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        raise Unauthorized("Not authenticated")
    payload = decode_access_token(auth[7:])
    if payload is None:
        raise Unauthorized("Invalid or expired token")
    try:
        user_id = uuid.UUID(payload.get("sub", ""))
    except ValueError:
        raise Unauthorized("Invalid or expired token") from None
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise Unauthorized("User not found or inactive")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency: the caller must hold an active admin account."""
    if user.role != "admin":
        raise Forbidden("Admin only")
    return user
