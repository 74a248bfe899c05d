"""Shared test fixtures for the admin backend.

Provides:
- Async PostgreSQL test database (session-scoped engine, per-test rollback)
- FastAPI test client with overridden DB dependency
- Factory helpers for users and the StudyPage → Category → Card →
  DetailPage → DynamicTable hierarchy
"""

from __future__ import annotations

import os
import uuid

# Set test environment BEFORE any app imports so Settings() picks them up.
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-pytest-only")
os.environ.setdefault("ENVIRONMENT", "development")

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event as sa_event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.security import create_access_token, hash_password
from app.models import Base  # registers every model on Base.metadata

# ---------------------------------------------------------------------------
# Database engine
# ---------------------------------------------------------------------------


def _test_db_url() -> str:
    user = os.getenv("POSTGRES_USER", "studyabroad")
    password = os.getenv("POSTGRES_PASSWORD", "studyabroad")
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    db = os.getenv("TEST_POSTGRES_DB", "studyabroad_test")
    return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}"


@pytest.fixture(scope="session")
def test_engine():
    """Create a test database engine and all tables. Drops tables at teardown.

    Sync fixture so the engine is not bound to an event loop; NullPool gives
    every test a fresh asyncpg connection on whatever loop is current.
    """
    url = _test_db_url()
    engine = create_async_engine(url, echo=False, poolclass=NullPool)

    async def _setup():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)

    async def _teardown():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()

    try:
        asyncio.run(_setup())
    except Exception as exc:
        asyncio.run(engine.dispose())
        pytest.skip(f"Test database not available ({exc})")

    yield engine

    asyncio.run(_teardown())


# ---------------------------------------------------------------------------
# Per-test transactional session (savepoint rollback pattern)
# ---------------------------------------------------------------------------


@pytest.fixture
async def db(test_engine):
    """Provide a transactional session that rolls back after each test.

    Code under test may call ``commit()`` or ``rollback()``: both end the
    current savepoint and the listener opens a new one. The outer
    transaction is rolled back at teardown.
    """
    conn = await test_engine.connect()
    trans = await conn.begin()
    session = AsyncSession(
        bind=conn,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )

    await conn.begin_nested()

    @sa_event.listens_for(session.sync_session, "after_transaction_end")
    def _restart_savepoint(sess, transaction):
        if conn.closed or conn.invalidated:
            return
        if not conn.in_nested_transaction():
            conn.sync_connection.begin_nested()

    yield session

    await session.close()
    await trans.rollback()
    await conn.close()


# ---------------------------------------------------------------------------
# FastAPI test app + HTTP client
# ---------------------------------------------------------------------------


@pytest.fixture
async def app(db):
    """Test app with ``get_db`` overridden to use the test session."""
    from fastapi import FastAPI
    from slowapi import _rate_limit_exceeded_handler
    from slowapi.errors import RateLimitExceeded

    from app.api.v1.router import api_router
    from app.config import settings
    from app.core.errors import AppError
    from app.core.rate_limit import limiter
    from app.database import get_db
    from app.main import _app_error_handler

    test_app = FastAPI()
    test_app.state.limiter = limiter
    test_app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    test_app.add_exception_handler(AppError, _app_error_handler)
    test_app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    async def _override_get_db():
        yield db

    test_app.dependency_overrides[get_db] = _override_get_db
    yield test_app
    test_app.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c


@pytest.fixture(autouse=True)
def _disable_rate_limiter():
    """Disable slowapi rate limiting during tests to avoid 429 responses."""
    from app.core.rate_limit import limiter

    limiter.enabled = False
    yield
    limiter.enabled = True


# ---------------------------------------------------------------------------
# Factory helpers
# ---------------------------------------------------------------------------


async def create_user(
    db,
    *,
    email=None,
    role="admin",
    password="TestPassword1",
    display_name="Test User",
    is_active=True,
):
    from app.models.user import User

    user = User(
        email=email or f"test-{uuid.uuid4().hex[:8]}@example.com",
        display_name=display_name,
        password_hash=hash_password(password),
        role=role,
        is_active=is_active,
    )
    db.add(user)
    await db.flush()
    return user


async def create_study_page(db, *, title="Study in the USA", slug=None, **kwargs):
    from app.models.study_page import StudyPage

    page = StudyPage(
        title=title,
        slug=slug or f"study-{uuid.uuid4().hex[:8]}",
        description=kwargs.get("description", "Universities and programs"),
        is_active=kwargs.get("is_active", True),
    )
    db.add(page)
    await db.flush()
    return page


async def create_category(db, *, study_page_id, title="Universities", **kwargs):
    from app.models.category import Category

    category = Category(
        title=title,
        description=kwargs.get("description"),
        study_page_id=study_page_id,
    )
    db.add(category)
    await db.flush()
    return category


async def create_card(db, *, category_id, title="MIT", **kwargs):
    from app.models.card import Card

    card = Card(
        title=title,
        description=kwargs.get("description", "Massachusetts Institute of Technology"),
        category_id=category_id,
        location=kwargs.get("location"),
        is_active=kwargs.get("is_active", True),
    )
    db.add(card)
    await db.flush()
    return card


async def create_detail_page(db, *, card_id, content="Detail page"):
    from app.models.detail_page import DetailPage

    page = DetailPage(card_id=card_id, content=content)
    db.add(page)
    await db.flush()
    return page


async def create_dynamic_table(db, *, detail_page_id, title="Deadlines", **kwargs):
    from app.models.dynamic_table import DynamicTable

    table = DynamicTable(
        title=title,
        description=kwargs.get("description"),
        icon_url=kwargs.get("icon_url"),
        columns=kwargs.get("columns", []),
        rows=kwargs.get("rows", []),
        detail_page_id=detail_page_id,
    )
    db.add(table)
    await db.flush()
    return table


def auth_headers(user) -> dict[str, str]:
    """Generate Bearer token headers for a test user."""
    token = create_access_token(user.id, user.role)
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Convenience fixtures
# ---------------------------------------------------------------------------


UNIVERSITY_COLUMNS = [
    {"id": "c1", "name": "University", "type": "text"},
    {"id": "c2", "name": "Deadline", "type": "date"},
    {"id": "c3", "name": "Status", "type": "status"},
]

UNIVERSITY_ROWS = [
    {"id": "r1", "data": {"c1": "MIT", "c2": "2025-01-15", "c3": "Open"}},
]


@pytest.fixture
async def admin_user(db):
    return await create_user(db, email="admin@test.com", role="admin")


@pytest.fixture
async def editor_user(db):
    return await create_user(db, email="editor@test.com", role="editor")


@pytest.fixture
async def hierarchy(db):
    """A study page with one category and two cards; only the first has a detail page."""
    study_page = await create_study_page(db, title="Study in the USA", slug="usa")
    category = await create_category(db, study_page_id=study_page.id)
    card = await create_card(db, category_id=category.id, title="MIT")
    other_card = await create_card(db, category_id=category.id, title="Stanford")
    detail_page = await create_detail_page(db, card_id=card.id)
    return {
        "study_page": study_page,
        "category": category,
        "card": card,
        "other_card": other_card,
        "detail_page": detail_page,
    }
