from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin
from app.api.v1.tables import detail_page_to_dict, table_to_dict
from app.core.errors import ValidationError
from app.database import get_db
from app.models.user import User
from app.schemas.dynamic_table import CardTableCreate
from app.services import detail_page_service, dynamic_table_service

router = APIRouter(prefix="/detail-pages", tags=["detail-pages"])


@router.get("")
async def get_detail_page_for_card(
    card_id: int | None = Query(None, alias="cardId"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    """Return the card's detail page with its tables, creating the page if needed."""
    if card_id is None:
        raise ValidationError("Card ID is required")
    page, created = await detail_page_service.get_or_create_detail_page(db, card_id)
    tables = await detail_page_service.list_tables_for_detail_page(db, page.id)
    data = detail_page_to_dict(page)
    data["created"] = created
    data["tables"] = [table_to_dict(t, with_relations=False) for t in tables]
    return data


@router.post("", status_code=201)
async def create_table_for_card(
    body: CardTableCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    table = await dynamic_table_service.create_table_for_card(
        db,
        card_id=body.card_id,
        title=body.title,
        columns=body.columns_payload(),
        rows=body.rows_payload(),
        description=body.description,
        icon_url=body.icon_url,
    )
    return table_to_dict(table)


@router.post("/create-missing")
async def create_missing_detail_pages(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    created = await detail_page_service.create_missing_detail_pages(db)
    return {
        "success": True,
        "created": created,
        "message": f"Created {created} detail pages",
    }
