"""Seed the default admin account on startup."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import hash_password
from app.models.user import User

logger = logging.getLogger(__name__)


async def seed_admin(db: AsyncSession, email: str, password: str) -> bool:
    """Create an admin account unless one already exists.

    Does nothing when ``email`` or ``password`` is empty. Returns ``True``
    if a user was inserted.
    """
    if not email or not password:
        return False

    existing = await db.execute(select(User.id).where(User.role == "admin").limit(1))
    if existing.scalar_one_or_none() is not None:
        return False

    db.add(
        User(
            email=email,
            display_name="Admin",
            password_hash=hash_password(password),
            role="admin",
            is_active=True,
        )
    )
    await db.commit()
    logger.info("Created default admin user %s", email)
    return True
