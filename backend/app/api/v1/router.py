from fastapi import APIRouter

from app.api.v1 import auth, cards, categories, detail_pages, public, study_pages, tables

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(study_pages.router)
api_router.include_router(categories.router)
api_router.include_router(cards.router)
api_router.include_router(tables.router)
api_router.include_router(detail_pages.router)
api_router.include_router(public.router)
