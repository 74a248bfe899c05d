from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.tables import table_view
from app.core.errors import NotFound
from app.database import get_db
from app.models.card import Card
from app.services import detail_page_service

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/cards/{card_id}/tables")
async def get_card_tables(
    card_id: int,
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
):
    """Rendered tables for an active card's detail page. Read-only, no auth."""
    result = await db.execute(
        select(Card).where(Card.id == card_id, Card.is_active == True)  # noqa: E712
    )
    card = result.scalar_one_or_none()
    if card is None:
        raise NotFound("Card")

    detail_page = await detail_page_service.get_detail_page_for_card(db, card.id)
    if detail_page is None:
        return {"cardId": card.id, "title": card.title, "tables": []}

    tables = await detail_page_service.list_tables_for_detail_page(db, detail_page.id)
    return {
        "cardId": card.id,
        "title": card.title,
        "tables": [table_view(t, search, page) for t in tables],
    }
