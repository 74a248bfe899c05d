"""Admin persistence for the content hierarchy: study pages, categories, cards.

Writes validate their required inputs before touching the database. Store
failures are rolled back, logged and raised as ``PersistenceError`` with a
public ``"Failed to ..."`` message. Deletes rely on the ``ON DELETE CASCADE``
foreign keys, so removing a study page also removes its categories, cards,
detail pages and tables.
"""

from __future__ import annotations

import logging
from typing import Any, NoReturn

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import Conflict, NotFound, PersistenceError, ValidationError
from app.core.metrics import content_operations_total
from app.models.card import Card
from app.models.category import Category
from app.models.detail_page import DetailPage
from app.models.study_page import StudyPage
from app.services import detail_page_service

logger = logging.getLogger(__name__)


def _require(message: str, *values) -> None:
    if any(v is None or v == "" for v in values):
        raise ValidationError(message)


def _ok(entity: str, operation: str) -> None:
    content_operations_total.labels(entity=entity, operation=operation, outcome="ok").inc()


async def _fail(
    db: AsyncSession, entity: str, operation: str, message: str, exc: SQLAlchemyError
) -> NoReturn:
    await db.rollback()
    content_operations_total.labels(entity=entity, operation=operation, outcome="error").inc()
    logger.exception("%s %s failed", entity.capitalize(), operation)
    raise PersistenceError(message) from exc


async def _get(db: AsyncSession, model, entity_id: int, *options):
    result = await db.execute(
        select(model)
        .where(model.id == entity_id)
        .options(*options)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _delete(db: AsyncSession, model, entity_id: int) -> int:
    result = await db.execute(delete(model).where(model.id == entity_id))
    await db.commit()
    return result.rowcount


# ── Study pages ─────────────────────────────────────────────────────────


async def list_study_pages(db: AsyncSession) -> list[tuple[StudyPage, int]]:
    """Newest first, each with the number of categories it holds."""
    category_count = (
        select(func.count(Category.id))
        .where(Category.study_page_id == StudyPage.id)
        .correlate(StudyPage)
        .scalar_subquery()
    )
    try:
        result = await db.execute(
            select(StudyPage, category_count).order_by(
                StudyPage.created_at.desc(), StudyPage.id.desc()
            )
        )
        rows = [(page, count) for page, count in result.all()]
    except SQLAlchemyError as exc:
        await _fail(db, "study_page", "list", "Failed to fetch study pages", exc)
    _ok("study_page", "list")
    return rows


async def get_study_page(db: AsyncSession, study_page_id: int) -> StudyPage:
    try:
        page = await _get(db, StudyPage, study_page_id)
    except SQLAlchemyError as exc:
        await _fail(db, "study_page", "get", "Failed to fetch study page", exc)
    if page is None:
        raise NotFound("Study page")
    return page


async def _slug_taken(db: AsyncSession, slug: str, exclude_id: int | None = None) -> bool:
    query = select(StudyPage.id).where(StudyPage.slug == slug)
    if exclude_id is not None:
        query = query.where(StudyPage.id != exclude_id)
    return (await db.execute(query)).first() is not None


async def create_study_page(
    db: AsyncSession,
    *,
    title: str | None,
    slug: str | None,
    description: str | None,
    banner_url: str | None = None,
    seo_title: str | None = None,
    seo_description: str | None = None,
    is_active: bool | None = None,
) -> StudyPage:
    _require("Title, slug, and description are required", title, slug, description)

    try:
        if await _slug_taken(db, slug):
            raise Conflict("A study page with this slug already exists")
        page = StudyPage(
            title=title,
            slug=slug,
            description=description,
            banner_url=banner_url or None,
            seo_title=seo_title or None,
            seo_description=seo_description or None,
            is_active=True if is_active is None else is_active,
        )
        db.add(page)
        await db.commit()
        page = await _get(db, StudyPage, page.id)
    except SQLAlchemyError as exc:
        await _fail(db, "study_page", "create", "Failed to create study page", exc)

    _ok("study_page", "create")
    logger.info("Created study page %s (%s)", page.id, page.slug)
    return page


async def update_study_page(
    db: AsyncSession,
    study_page_id: int,
    *,
    title: str | None,
    slug: str | None,
    description: str | None,
    banner_url: str | None = None,
    seo_title: str | None = None,
    seo_description: str | None = None,
    is_active: bool | None = None,
) -> StudyPage:
    _require("Title, slug, and description are required", title, slug, description)

    try:
        page = await _get(db, StudyPage, study_page_id)
        if page is None:
            raise NotFound("Study page")
        if await _slug_taken(db, slug, exclude_id=study_page_id):
            raise Conflict("A study page with this slug already exists")
        page.title = title
        page.slug = slug
        page.description = description
        page.banner_url = banner_url or None
        page.seo_title = seo_title or None
        page.seo_description = seo_description or None
        page.is_active = True if is_active is None else is_active
        await db.commit()
        page = await _get(db, StudyPage, study_page_id)
    except SQLAlchemyError as exc:
        await _fail(db, "study_page", "update", "Failed to update study page", exc)

    _ok("study_page", "update")
    return page


async def toggle_study_page(
    db: AsyncSession, study_page_id: int, is_active: bool | None
) -> StudyPage:
    if not isinstance(is_active, bool):
        raise ValidationError("isActive must be a boolean")

    try:
        page = await _get(db, StudyPage, study_page_id)
        if page is None:
            raise NotFound("Study page")
        page.is_active = is_active
        await db.commit()
        page = await _get(db, StudyPage, study_page_id)
    except SQLAlchemyError as exc:
        await _fail(db, "study_page", "toggle", "Failed to toggle study page", exc)

    _ok("study_page", "toggle")
    return page


async def _free_copy_slug(db: AsyncSession, slug: str) -> str:
    candidate = f"{slug}-copy"
    counter = 1
    while await _slug_taken(db, candidate):
        candidate = f"{slug}-copy-{counter}"
        counter += 1
    return candidate


async def duplicate_study_page(db: AsyncSession, study_page_id: int) -> StudyPage:
    """Copy a study page with its categories and cards.

    The copy starts inactive under the first free ``<slug>-copy[-N]`` slug.
    Detail pages and their tables are not copied.
    """
    try:
        original = await _get(
            db,
            StudyPage,
            study_page_id,
            selectinload(StudyPage.categories).selectinload(Category.cards),
        )
        if original is None:
            raise NotFound("Study page")

        copy = StudyPage(
            title=f"{original.title} (Copy)",
            slug=await _free_copy_slug(db, original.slug),
            description=original.description,
            banner_url=original.banner_url,
            seo_title=f"{original.seo_title} (Copy)" if original.seo_title else None,
            seo_description=original.seo_description,
            is_active=False,
        )
        db.add(copy)
        await db.flush()

        categories = sorted(original.categories, key=lambda c: (c.created_at, c.id))
        for category in categories:
            category_copy = Category(
                title=category.title,
                description=category.description,
                study_page_id=copy.id,
            )
            db.add(category_copy)
            await db.flush()
            for card in sorted(category.cards, key=lambda c: (c.created_at, c.id)):
                db.add(Card(
                    title=card.title,
                    description=card.description,
                    image_url=card.image_url,
                    category_id=category_copy.id,
                ))
        await db.commit()
        copy = await _get(db, StudyPage, copy.id)
    except SQLAlchemyError as exc:
        await _fail(db, "study_page", "duplicate", "Failed to duplicate study page", exc)

    _ok("study_page", "duplicate")
    logger.info("Duplicated study page %s as %s (%s)", study_page_id, copy.id, copy.slug)
    return copy


async def delete_study_page(db: AsyncSession, study_page_id: int) -> None:
    try:
        deleted = await _delete(db, StudyPage, study_page_id)
    except SQLAlchemyError as exc:
        await _fail(db, "study_page", "delete", "Failed to delete study page", exc)
    if not deleted:
        raise NotFound("Study page")
    _ok("study_page", "delete")
    logger.info("Deleted study page %s", study_page_id)


# ── Categories ──────────────────────────────────────────────────────────


async def list_categories(db: AsyncSession) -> list[Category]:
    """Newest first, with their study page and cards."""
    try:
        result = await db.execute(
            select(Category)
            .options(selectinload(Category.cards))
            .order_by(Category.created_at.desc(), Category.id.desc())
            .execution_options(populate_existing=True)
        )
        categories = list(result.scalars().all())
    except SQLAlchemyError as exc:
        await _fail(db, "category", "list", "Failed to fetch categories", exc)
    _ok("category", "list")
    return categories


async def _require_study_page(db: AsyncSession, study_page_id: int) -> None:
    if await _get(db, StudyPage, study_page_id) is None:
        raise NotFound("Study page")


async def _load_category(db: AsyncSession, category_id: int) -> Category | None:
    return await _get(db, Category, category_id, selectinload(Category.cards))


async def create_category(
    db: AsyncSession,
    *,
    title: str | None,
    study_page_id: int | None,
    description: str | None = None,
) -> Category:
    _require("Title and study page are required", title, study_page_id)

    try:
        await _require_study_page(db, study_page_id)
        category = Category(
            title=title, description=description or None, study_page_id=study_page_id
        )
        db.add(category)
        await db.commit()
        category = await _load_category(db, category.id)
    except SQLAlchemyError as exc:
        await _fail(db, "category", "create", "Failed to create category", exc)

    _ok("category", "create")
    return category


async def update_category(
    db: AsyncSession,
    category_id: int,
    *,
    title: str | None,
    study_page_id: int | None,
    description: str | None = None,
) -> Category:
    _require("Title and study page are required", title, study_page_id)

    try:
        await _require_study_page(db, study_page_id)
        category = await _get(db, Category, category_id)
        if category is None:
            raise NotFound("Category")
        category.title = title
        category.description = description or None
        category.study_page_id = study_page_id
        await db.commit()
        category = await _load_category(db, category_id)
    except SQLAlchemyError as exc:
        await _fail(db, "category", "update", "Failed to update category", exc)

    _ok("category", "update")
    return category


async def delete_category(db: AsyncSession, category_id: int) -> None:
    try:
        deleted = await _delete(db, Category, category_id)
    except SQLAlchemyError as exc:
        await _fail(db, "category", "delete", "Failed to delete category", exc)
    if not deleted:
        raise NotFound("Category")
    _ok("category", "delete")
    logger.info("Deleted category %s", category_id)


# ── Cards ───────────────────────────────────────────────────────────────


async def list_cards(db: AsyncSession, *, category_id: int | None = None) -> list[Card]:
    query = select(Card).order_by(Card.created_at.desc(), Card.id.desc())
    if category_id is not None:
        query = query.where(Card.category_id == category_id)
    try:
        cards = list((await db.execute(query)).scalars().all())
    except SQLAlchemyError as exc:
        await _fail(db, "card", "list", "Failed to fetch cards", exc)
    _ok("card", "list")
    return cards


async def get_card(db: AsyncSession, card_id: int) -> Card:
    try:
        card = await _get(db, Card, card_id)
    except SQLAlchemyError as exc:
        await _fail(db, "card", "get", "Failed to fetch card", exc)
    if card is None:
        raise NotFound("Card")
    return card


async def _require_category(db: AsyncSession, category_id: int) -> None:
    if await _get(db, Category, category_id) is None:
        raise NotFound("Category")


async def create_card(
    db: AsyncSession,
    *,
    title: str | None,
    description: str | None,
    category_id: int | None,
    image_url: str | None = None,
    details: dict[str, Any] | None = None,
) -> Card:
    """Create a card together with its detail page."""
    _require("Title, description, and category are required", title, description, category_id)

    try:
        await _require_category(db, category_id)
        card = Card(
            title=title,
            description=description,
            image_url=image_url or None,
            category_id=category_id,
            **(details or {}),
        )
        db.add(card)
        await db.flush()
        page = DetailPage(card_id=card.id, content=detail_page_service.default_content(card))
        db.add(page)
        await db.commit()
        card = await _get(db, Card, card.id)
    except SQLAlchemyError as exc:
        await _fail(db, "card", "create", "Failed to create card", exc)

    _ok("card", "create")
    detail_page_service.record_provisioned(page.id, card.id)
    logger.info("Created card %s in category %s", card.id, category_id, extra={"card_id": card.id})
    return card


async def update_card(
    db: AsyncSession,
    card_id: int,
    *,
    title: str | None,
    description: str | None,
    category_id: int | None,
    image_url: str | None = None,
    details: dict[str, Any] | None = None,
) -> Card:
    """Replace the core card fields; optional details change only when given."""
    _require("Title, description, and category are required", title, description, category_id)

    try:
        await _require_category(db, category_id)
        card = await _get(db, Card, card_id)
        if card is None:
            raise NotFound("Card")
        card.title = title
        card.description = description
        card.image_url = image_url or None
        card.category_id = category_id
        for name, value in (details or {}).items():
            setattr(card, name, value)
        await db.commit()
        card = await _get(db, Card, card_id)
    except SQLAlchemyError as exc:
        await _fail(db, "card", "update", "Failed to update card", exc)

    _ok("card", "update")
    return card


async def delete_card(db: AsyncSession, card_id: int) -> None:
    try:
        deleted = await _delete(db, Card, card_id)
    except SQLAlchemyError as exc:
        await _fail(db, "card", "delete", "Failed to delete card", exc)
    if not deleted:
        raise NotFound("Card")
    _ok("card", "delete")
    logger.info("Deleted card %s", card_id, extra={"card_id": card_id})
