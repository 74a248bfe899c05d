from __future__ import annotations

import math

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin
from app.database import get_db
from app.models.card import Card
from app.models.detail_page import DetailPage
from app.models.dynamic_table import DynamicTable
from app.models.user import User
from app.schemas.dynamic_table import DynamicTableCreate, DynamicTableUpdate
from app.services import dynamic_table_service
from app.services.table_renderer import render_table

router = APIRouter(prefix="/tables", tags=["tables"])


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def _card_to_dict(card: Card | None) -> dict | None:
    if card is None:
        return None
    category = card.category
    study_page = category.study_page if category else None
    return {
        "id": card.id,
        "title": card.title,
        "category": {
            "id": category.id,
            "title": category.title,
            "studyPage": {
                "id": study_page.id,
                "title": study_page.title,
                "slug": study_page.slug,
            } if study_page else None,
        } if category else None,
    }


def detail_page_to_dict(page: DetailPage | None) -> dict | None:
    if page is None:
        return None
    return {
        "id": page.id,
        "cardId": page.card_id,
        "content": page.content,
        "card": _card_to_dict(page.card),
        "createdAt": _iso(page.created_at),
        "updatedAt": _iso(page.updated_at),
    }


def table_to_dict(t: DynamicTable, *, with_relations: bool = True) -> dict:
    data = {
        "id": t.id,
        "title": t.title,
        "description": t.description,
        "iconUrl": t.icon_url,
        "detailPageId": t.detail_page_id,
        "columns": t.columns or [],
        "rows": t.rows or [],
        "createdAt": _iso(t.created_at),
        "updatedAt": _iso(t.updated_at),
    }
    if with_relations:
        data["detailPage"] = detail_page_to_dict(t.detail_page)
    return data


def table_view(t: DynamicTable, search: str | None = None, page: int = 1) -> dict:
    view = render_table(
        title=t.title,
        description=t.description,
        icon_url=t.icon_url,
        columns=t.columns or [],
        rows=t.rows or [],
        search=search,
        page=page,
    )
    view["id"] = t.id
    return view


# ── Admin CRUD ──────────────────────────────────────────────────────────


@router.get("")
async def list_tables(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=dynamic_table_service.MAX_LIMIT),
    search: str | None = Query(None),
    detail_page_id: int | None = Query(None, alias="detailPageId"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    tables, total = await dynamic_table_service.list_tables(
        db, page=page, limit=limit, search=search, detail_page_id=detail_page_id
    )
    return {
        "tables": [table_to_dict(t) for t in tables],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
        },
    }


@router.post("", status_code=201)
async def create_table(
    body: DynamicTableCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    table = await dynamic_table_service.create_table(
        db,
        title=body.title,
        detail_page_id=body.detail_page_id,
        columns=body.columns_payload(),
        rows=body.rows_payload(),
        description=body.description,
        icon_url=body.icon_url,
    )
    return table_to_dict(table)


@router.get("/{table_id}")
async def get_table(
    table_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    table = await dynamic_table_service.get_table(db, table_id)
    return table_to_dict(table)


@router.put("/{table_id}")
async def update_table(
    table_id: int,
    body: DynamicTableUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    table = await dynamic_table_service.update_table(
        db,
        table_id,
        title=body.title,
        columns=body.columns_payload(),
        rows=body.rows_payload(),
        detail_page_id=body.detail_page_id,
        description=body.description,
        icon_url=body.icon_url,
        card_id=body.card_id,
    )
    return table_to_dict(table)


@router.delete("/{table_id}")
async def delete_table(
    table_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    await dynamic_table_service.delete_table(db, table_id)
    return {"success": True}


@router.get("/{table_id}/view")
async def preview_table(
    table_id: int,
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    table = await dynamic_table_service.get_table(db, table_id)
    return table_view(table, search, page)
