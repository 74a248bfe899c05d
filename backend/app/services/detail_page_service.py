"""Detail pages: the per-card container that dynamic tables attach to.

Lookup and provisioning are separate operations. ``get_detail_page_for_card``
never writes. ``get_or_create_detail_page`` inserts a page when the card has
none and reports that through its ``created`` flag.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, PersistenceError
from app.core.metrics import detail_pages_provisioned_total
from app.models.card import Card
from app.models.detail_page import DetailPage
from app.models.dynamic_table import DynamicTable

logger = logging.getLogger(__name__)


def default_content(card: Card) -> str:
    return f"Detail page for {card.title}"


async def _fetch_one(db: AsyncSession, *criteria) -> DetailPage | None:
    # populate_existing so the card breadcrumb loads on pages already in the session
    result = await db.execute(
        select(DetailPage).where(*criteria).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_detail_page(db: AsyncSession, detail_page_id: int) -> DetailPage | None:
    return await _fetch_one(db, DetailPage.id == detail_page_id)


async def get_detail_page_for_card(db: AsyncSession, card_id: int) -> DetailPage | None:
    return await _fetch_one(db, DetailPage.card_id == card_id)


def record_provisioned(detail_page_id: int, card_id: int) -> None:
    """Count and log a committed detail page."""
    detail_pages_provisioned_total.inc()
    logger.info(
        "Created detail page %s for card %s",
        detail_page_id,
        card_id,
        extra={"detail_page_id": detail_page_id, "card_id": card_id},
    )


async def get_or_create_detail_page(
    db: AsyncSession, card_id: int, *, commit: bool = True
) -> tuple[DetailPage, bool]:
    """Return the card's detail page, creating it first if it does not exist.

    Raises ``NotFound("Card")`` if there is no such card. With
    ``commit=False`` the new page is only flushed so the caller can fold it
    into its own transaction, and must call ``record_provisioned`` once that
    transaction commits.
    """
    try:
        page = await get_detail_page_for_card(db, card_id)
        if page is not None:
            return page, False

        card = (await db.execute(select(Card).where(Card.id == card_id))).scalar_one_or_none()
        if card is None:
            raise NotFound("Card")

        page = DetailPage(card_id=card.id, content=default_content(card))
        db.add(page)
        if commit:
            await db.commit()
            page = await get_detail_page(db, page.id)
        else:
            await db.flush()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Failed to provision detail page for card %s", card_id)
        raise PersistenceError("Failed to fetch detail page") from exc

    if commit:
        record_provisioned(page.id, card_id)
    return page, True


async def list_tables_for_detail_page(db: AsyncSession, detail_page_id: int) -> list[DynamicTable]:
    result = await db.execute(
        select(DynamicTable)
        .where(DynamicTable.detail_page_id == detail_page_id)
        .order_by(DynamicTable.created_at.asc(), DynamicTable.id.asc())
    )
    return list(result.scalars().all())


async def create_missing_detail_pages(db: AsyncSession) -> int:
    """Provision a detail page for every card that lacks one."""
    try:
        result = await db.execute(
            select(Card).where(~select(DetailPage.id).where(DetailPage.card_id == Card.id).exists())
        )
        cards = list(result.scalars().all())
        for card in cards:
            db.add(DetailPage(card_id=card.id, content=default_content(card)))
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Failed to create missing detail pages")
        raise PersistenceError("Failed to create missing detail pages") from exc

    if cards:
        detail_pages_provisioned_total.inc(len(cards))
    logger.info("Created %d missing detail pages", len(cards))
    return len(cards)
