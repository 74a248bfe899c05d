from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.responses import Response

from app.api.v1.router import api_router
from app.config import APP_VERSION, _DEFAULT_SECRET_KEYS, settings
from app.core.errors import AppError
from app.core.logging_config import configure_logging
from app.core.metrics import app_info
from app.core.rate_limit import limiter
from app.database import engine
from app.middleware.prometheus import PrometheusMiddleware
from app.models import Base

logger = logging.getLogger(__name__)


def _run_alembic_stamp(alembic_cfg, revision):
    from alembic import command
    command.stamp(alembic_cfg, revision)


def _run_alembic_upgrade(alembic_cfg, revision):
    from alembic import command
    command.upgrade(alembic_cfg, revision)


async def _prepare_schema() -> None:
    from alembic.config import Config
    from sqlalchemy import inspect as sa_inspect
    from sqlalchemy import text

    alembic_cfg = Config("alembic.ini")

    if settings.RESET_DB:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        await asyncio.to_thread(_run_alembic_stamp, alembic_cfg, "head")
        return

    async with engine.connect() as conn:
        has_alembic = await conn.run_sync(
            lambda sync_conn: sa_inspect(sync_conn).has_table("alembic_version")
        )
        alembic_version = None
        if has_alembic:
            row = await conn.execute(text("SELECT version_num FROM alembic_version LIMIT 1"))
            first = row.first()
            alembic_version = first[0] if first else None

    if alembic_version is None:
        # Fresh DB: create tables from models, then stamp
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await asyncio.to_thread(_run_alembic_stamp, alembic_cfg, "head")
    else:
        try:
            await asyncio.to_thread(_run_alembic_upgrade, alembic_cfg, "head")
        except Exception:
            logger.exception("Alembic migration failed")
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.ENVIRONMENT, settings.LOG_LEVEL)
    app_info.info({"version": APP_VERSION, "environment": settings.ENVIRONMENT})

    if settings.SECRET_KEY in _DEFAULT_SECRET_KEYS:
        if settings.ENVIRONMENT != "development":
            raise RuntimeError(
                "SECRET_KEY must be set to a strong random value in production. "
                'Generate one with: python -c "import secrets; print(secrets.token_urlsafe(64))"'
            )
        logger.warning("Using default SECRET_KEY; acceptable for development only.")

    await _prepare_schema()

    from app.database import async_session
    from app.services.seed import seed_admin

    async with async_session() as db:
        await seed_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)

    yield

    await engine.dispose()


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.ENVIRONMENT == "development" else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if settings.ENVIRONMENT == "development" else None,
    )

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    application.add_exception_handler(AppError, _app_error_handler)

    application.add_middleware(PrometheusMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @application.get("/api/health")
    async def health():
        return {"status": "ok", "version": APP_VERSION}

    @application.get("/metrics", include_in_schema=False)
    async def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return application


app = create_app()
