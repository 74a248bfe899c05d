"""Integration tests for the /auth endpoints.

These tests require a PostgreSQL test database and an HTTP test client.
"""

from __future__ import annotations

from app.core.security import decode_access_token
from tests.conftest import auth_headers, create_user

# ---------------------------------------------------------------------------
# POST /auth/login
# ---------------------------------------------------------------------------


class TestLogin:
    async def test_valid_credentials(self, client, db):
        user = await create_user(db, email="admin@test.com", password="CorrectHorse1")
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "admin@test.com", "password": "CorrectHorse1"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        payload = decode_access_token(data["access_token"])
        assert payload["sub"] == str(user.id)
        assert payload["role"] == "admin"

    async def test_wrong_password(self, client, db):
        await create_user(db, email="admin@test.com", password="CorrectHorse1")
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "admin@test.com", "password": "nope"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    async def test_unknown_email(self, client, db):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "ghost@test.com", "password": "whatever"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    async def test_disabled_account(self, client, db):
        await create_user(db, email="gone@test.com", password="CorrectHorse1", is_active=False)
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "gone@test.com", "password": "CorrectHorse1"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Account is disabled"

    async def test_invalid_email_format(self, client, db):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "not-an-email", "password": "x"},
        )
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# GET /auth/me
# ---------------------------------------------------------------------------


class TestMe:
    async def test_returns_current_user(self, client, db, editor_user):
        response = await client.get("/api/v1/auth/me", headers=auth_headers(editor_user))
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(editor_user.id)
        assert data["email"] == "editor@test.com"
        assert data["role"] == "editor"
        assert data["is_active"] is True

    async def test_requires_token(self, client, db):
        response = await client.get("/api/v1/auth/me")
        assert response.status_code == 401
