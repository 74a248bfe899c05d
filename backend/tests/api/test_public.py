"""Integration tests for the read-only public endpoints.

These tests require a PostgreSQL test database and an HTTP test client.
"""

from __future__ import annotations

from sqlalchemy import func, select

from app.models.detail_page import DetailPage
from tests.conftest import UNIVERSITY_COLUMNS, UNIVERSITY_ROWS, create_card, create_dynamic_table


class TestCardTables:
    async def test_rendered_tables_without_auth(self, client, db, hierarchy):
        page_id = hierarchy["detail_page"].id
        await create_dynamic_table(
            db,
            detail_page_id=page_id,
            title="Deadlines",
            columns=UNIVERSITY_COLUMNS,
            rows=UNIVERSITY_ROWS,
        )
        await create_dynamic_table(db, detail_page_id=page_id, title="Fees")

        resp = await client.get(f"/api/v1/public/cards/{hierarchy['card'].id}/tables")
        assert resp.status_code == 200
        data = resp.json()
        assert data["cardId"] == hierarchy["card"].id
        assert data["title"] == "MIT"
        assert [t["title"] for t in data["tables"]] == ["Deadlines", "Fees"]

        deadlines, fees = data["tables"]
        assert [h["name"] for h in deadlines["headers"]] == ["University", "Deadline", "Status"]
        assert deadlines["rows"][0]["cells"][2]["kind"] == "badge"
        assert fees["empty"] is True

    async def test_search_applies_to_every_table(self, client, db, hierarchy):
        await create_dynamic_table(
            db,
            detail_page_id=hierarchy["detail_page"].id,
            columns=UNIVERSITY_COLUMNS,
            rows=UNIVERSITY_ROWS,
        )
        resp = await client.get(
            f"/api/v1/public/cards/{hierarchy['card'].id}/tables", params={"search": "harvard"}
        )
        table = resp.json()["tables"][0]
        assert table["rows"] == []
        assert table["search"] == "harvard"

    async def test_card_without_page_is_not_provisioned(self, client, db, hierarchy):
        card = hierarchy["other_card"]
        resp = await client.get(f"/api/v1/public/cards/{card.id}/tables")
        assert resp.status_code == 200
        assert resp.json()["tables"] == []
        count = (
            await db.execute(select(func.count(DetailPage.id)).where(DetailPage.card_id == card.id))
        ).scalar_one()
        assert count == 0

    async def test_inactive_card_hidden(self, client, db, hierarchy):
        card = await create_card(
            db, category_id=hierarchy["category"].id, title="Closed program", is_active=False
        )
        resp = await client.get(f"/api/v1/public/cards/{card.id}/tables")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Card not found"

    async def test_unknown_card(self, client, db):
        resp = await client.get("/api/v1/public/cards/999999/tables")
        assert resp.status_code == 404
