"""Integration tests for app.services.content_service.

Requires the PostgreSQL test database (skipped otherwise).
"""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY
from sqlalchemy import func, select

from app.core.errors import Conflict, NotFound, ValidationError
from app.models.card import Card
from app.models.category import Category
from app.models.dynamic_table import DynamicTable
from app.services import content_service as svc
from app.services import detail_page_service
from tests.conftest import create_dynamic_table, create_study_page


async def _count(db, model) -> int:
    return (await db.execute(select(func.count(model.id)))).scalar_one()


class TestStudyPages:
    async def test_create_defaults(self, db):
        page = await svc.create_study_page(
            db, title="Study in Japan", slug="japan", description="Tokyo and Kyoto", seo_title=""
        )
        assert page.is_active is True
        assert page.seo_title is None
        assert page.created_at is not None

    async def test_blank_slug_rejected(self, db):
        with pytest.raises(ValidationError):
            await svc.create_study_page(db, title="T", slug="", description="D")

    async def test_slug_conflict_on_update(self, db, hierarchy):
        other = await create_study_page(db, slug="uk")
        with pytest.raises(Conflict):
            await svc.update_study_page(db, other.id, title="T", slug="usa", description="D")

    async def test_keeping_own_slug_is_allowed(self, db, hierarchy):
        page = await svc.update_study_page(
            db, hierarchy["study_page"].id, title="USA", slug="usa", description="D"
        )
        assert page.title == "USA"

    async def test_toggle_requires_bool(self, db, hierarchy):
        with pytest.raises(ValidationError, match="isActive must be a boolean"):
            await svc.toggle_study_page(db, hierarchy["study_page"].id, None)

    async def test_duplicate(self, db, hierarchy):
        original = hierarchy["study_page"]
        original.seo_title = "Study in America"
        await db.flush()

        copy = await svc.duplicate_study_page(db, original.id)
        assert copy.slug == "usa-copy"
        assert copy.seo_title == "Study in America (Copy)"
        assert copy.is_active is False
        assert await _count(db, Category) == 2
        assert await _count(db, Card) == 4

    async def test_duplicate_does_not_copy_detail_pages(self, db, hierarchy):
        copy = await svc.duplicate_study_page(db, hierarchy["study_page"].id)
        copied_cards = (
            await db.execute(
                select(Card).join(Category).where(Category.study_page_id == copy.id)
            )
        ).scalars().all()
        for card in copied_cards:
            assert await detail_page_service.get_detail_page_for_card(db, card.id) is None

    async def test_delete_cascades_to_tables(self, db, hierarchy):
        await create_dynamic_table(db, detail_page_id=hierarchy["detail_page"].id)
        await svc.delete_study_page(db, hierarchy["study_page"].id)
        assert await _count(db, Card) == 0
        assert await _count(db, DynamicTable) == 0

    async def test_delete_missing(self, db):
        with pytest.raises(NotFound, match="Study page not found"):
            await svc.delete_study_page(db, 424242)


class TestCategories:
    async def test_create_and_list(self, db, hierarchy):
        created = await svc.create_category(
            db, title="Colleges", study_page_id=hierarchy["study_page"].id
        )
        categories = await svc.list_categories(db)
        assert categories[0].id == created.id
        assert categories[0].cards == []
        assert {c.title for c in categories[1].cards} == {"MIT", "Stanford"}

    async def test_update_unknown_study_page(self, db, hierarchy):
        with pytest.raises(NotFound, match="Study page not found"):
            await svc.update_category(
                db, hierarchy["category"].id, title="X", study_page_id=424242
            )


class TestCards:
    async def test_create_provisions_and_counts_detail_page(self, db, hierarchy):
        before = REGISTRY.get_sample_value("detail_pages_provisioned_total") or 0.0
        card = await svc.create_card(
            db,
            title="Yale",
            description="New Haven",
            category_id=hierarchy["category"].id,
            details={"link": "https://yale.edu", "is_active": False},
        )
        assert card.link == "https://yale.edu"
        assert card.is_active is False
        assert card.category.study_page.slug == "usa"

        page = await detail_page_service.get_detail_page_for_card(db, card.id)
        assert page.content == "Detail page for Yale"
        assert REGISTRY.get_sample_value("detail_pages_provisioned_total") == before + 1

    async def test_update_leaves_absent_details(self, db, hierarchy):
        card = await svc.create_card(
            db,
            title="Yale",
            description="New Haven",
            category_id=hierarchy["category"].id,
            details={"intake": "Fall"},
        )
        updated = await svc.update_card(
            db, card.id, title="Yale", description="CT", category_id=hierarchy["category"].id
        )
        assert updated.description == "CT"
        assert updated.intake == "Fall"

    async def test_list_filtered(self, db, hierarchy):
        cards = await svc.list_cards(db, category_id=hierarchy["category"].id)
        assert [c.title for c in cards] == ["Stanford", "MIT"]

    async def test_delete_removes_detail_page(self, db, hierarchy):
        await svc.delete_card(db, hierarchy["card"].id)
        assert await detail_page_service.get_detail_page_for_card(db, hierarchy["card"].id) is None

    async def test_missing_fields(self, db, hierarchy):
        with pytest.raises(ValidationError, match="Title, description, and category"):
            await svc.create_card(db, title="X", description=None, category_id=1)
