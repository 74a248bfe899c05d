from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin
from app.database import get_db
from app.models.study_page import StudyPage
from app.models.user import User
from app.schemas.content import StudyPageToggle, StudyPageWrite
from app.services import content_service

router = APIRouter(prefix="/study-pages", tags=["study-pages"])


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def study_page_to_dict(page: StudyPage, category_count: int | None = None) -> dict:
    data = {
        "id": page.id,
        "title": page.title,
        "slug": page.slug,
        "description": page.description,
        "bannerUrl": page.banner_url,
        "seoTitle": page.seo_title,
        "seoDescription": page.seo_description,
        "isActive": page.is_active,
        "createdAt": _iso(page.created_at),
        "updatedAt": _iso(page.updated_at),
    }
    if category_count is not None:
        data["categoryCount"] = category_count
    return data


def _fields(body: StudyPageWrite) -> dict:
    return body.model_dump(
        include={
            "title",
            "slug",
            "description",
            "banner_url",
            "seo_title",
            "seo_description",
            "is_active",
        }
    )


@router.get("")
async def list_study_pages(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    rows = await content_service.list_study_pages(db)
    return [study_page_to_dict(page, count) for page, count in rows]


@router.post("", status_code=201)
async def create_study_page(
    body: StudyPageWrite,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    page = await content_service.create_study_page(db, **_fields(body))
    return study_page_to_dict(page)


@router.get("/{study_page_id}")
async def get_study_page(
    study_page_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    return study_page_to_dict(await content_service.get_study_page(db, study_page_id))


@router.put("/{study_page_id}")
async def update_study_page(
    study_page_id: int,
    body: StudyPageWrite,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    page = await content_service.update_study_page(db, study_page_id, **_fields(body))
    return study_page_to_dict(page)


@router.patch("/{study_page_id}/toggle")
async def toggle_study_page(
    study_page_id: int,
    body: StudyPageToggle,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    page = await content_service.toggle_study_page(db, study_page_id, body.is_active)
    return study_page_to_dict(page)


@router.post("/{study_page_id}/duplicate", status_code=201)
async def duplicate_study_page(
    study_page_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    page = await content_service.duplicate_study_page(db, study_page_id)
    return study_page_to_dict(page)


@router.delete("/{study_page_id}")
async def delete_study_page(
    study_page_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
):
    await content_service.delete_study_page(db, study_page_id)
    return {"success": True}
