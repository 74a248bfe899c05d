from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin
from app.database import get_db
from app.models.card import Card
from app.models.user import User
from app.schemas.content import CardWrite
from app.services import content_service

router = APIRouter(prefix="/cards", tags=["cards"])


def card_to_dict(card: Card, *, with_category: bool = True) -> dict:
    data = {
        "id": card.id,
        "title": card.title,
        "description": card.description,
        "imageUrl": card.image_url,
        "categoryId": card.category_id,
        "cardCategory": card.card_category,
        "duration": card.duration,
        "location": card.location,
        "intake": card.intake,
        "requirements": card.requirements,
        "link": card.link,
        "isActive": card.is_active,
        "createdAt": card.created_at.isoformat() if card.created_at else None,
        "updatedAt": card.updated_at.isoformat() if card.updated_at else None,
    }
    if with_category:
        category = card.category
        study_page = category.study_page if category else None
        data["category"] = {
            "id": category.id,
            "title": category.title,
            "studyPage": {
                "id": study_page.id,
                "title": study_page.title,
                "slug": study_page.slug,
            } if study_page else None,
        } if category else None
    return data


@router.get("")
async def list_cards(
    category_id: int | None = Query(None, alias="categoryId"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    cards = await content_service.list_cards(db, category_id=category_id)
    return [card_to_dict(c) for c in cards]


@router.post("", status_code=201)
async def create_card(
    body: CardWrite,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    card = await content_service.create_card(
        db,
        title=body.title,
        description=body.description,
        category_id=body.category_id,
        image_url=body.image_url,
        details=body.details(),
    )
    return card_to_dict(card)


@router.get("/{card_id}")
async def get_card(
    card_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    return card_to_dict(await content_service.get_card(db, card_id))


@router.put("/{card_id}")
async def update_card(
    card_id: int,
    body: CardWrite,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    card = await content_service.update_card(
        db,
        card_id,
        title=body.title,
        description=body.description,
        category_id=body.category_id,
        image_url=body.image_url,
        details=body.details(),
    )
    return card_to_dict(card)


@router.delete("/{card_id}")
async def delete_card(
    card_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    await content_service.delete_card(db, card_id)
    return {"success": True}
