from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin
from app.api.v1.cards import card_to_dict
from app.database import get_db
from app.models.category import Category
from app.models.user import User
from app.schemas.content import CategoryWrite
from app.services import content_service

router = APIRouter(prefix="/categories", tags=["categories"])


def category_to_dict(category: Category) -> dict:
    study_page = category.study_page
    cards = sorted(category.cards, key=lambda c: (c.created_at, c.id))
    return {
        "id": category.id,
        "title": category.title,
        "description": category.description,
        "studyPageId": category.study_page_id,
        "studyPage": {
            "id": study_page.id,
            "title": study_page.title,
            "slug": study_page.slug,
        } if study_page else None,
        "cards": [card_to_dict(c, with_category=False) for c in cards],
        "createdAt": category.created_at.isoformat() if category.created_at else None,
        "updatedAt": category.updated_at.isoformat() if category.updated_at else None,
    }


@router.get("")
async def list_categories(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    return [category_to_dict(c) for c in await content_service.list_categories(db)]


@router.post("", status_code=201)
async def create_category(
    body: CategoryWrite,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    category = await content_service.create_category(
        db, title=body.title, study_page_id=body.study_page_id, description=body.description
    )
    return category_to_dict(category)


@router.put("/{category_id}")
async def update_category(
    category_id: int,
    body: CategoryWrite,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    category = await content_service.update_category(
        db,
        category_id,
        title=body.title,
        study_page_id=body.study_page_id,
        description=body.description,
    )
    return category_to_dict(category)


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    await content_service.delete_category(db, category_id)
    return {"success": True}
