"""Integration tests for the default admin seed.

These tests require a PostgreSQL test database.
"""

from __future__ import annotations

from sqlalchemy import func, select

from app.core.security import verify_password
from app.models.user import User
from app.services.seed import seed_admin
from tests.conftest import create_user


class TestSeedAdmin:
    async def test_creates_admin_on_empty_db(self, db):
        assert await seed_admin(db, "root@example.com", "S3cure-pass") is True

        user = (await db.execute(select(User).where(User.email == "root@example.com"))).scalar_one()
        assert user.role == "admin"
        assert user.is_active is True
        assert verify_password("S3cure-pass", user.password_hash)

    async def test_skips_when_admin_exists(self, db):
        await create_user(db, role="admin")
        assert await seed_admin(db, "root@example.com", "S3cure-pass") is False

        count = (await db.execute(select(func.count(User.id)))).scalar()
        assert count == 1

    async def test_editor_does_not_block_seed(self, db):
        await create_user(db, role="editor")
        assert await seed_admin(db, "root@example.com", "S3cure-pass") is True

    async def test_skips_without_credentials(self, db):
        assert await seed_admin(db, "", "S3cure-pass") is False
        assert await seed_admin(db, "root@example.com", "") is False
        count = (await db.execute(select(func.count(User.id)))).scalar()
        assert count == 0
