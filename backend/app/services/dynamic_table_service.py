"""Persistence gateway for dynamic tables.

Every operation validates its required inputs before touching the database
and translates store failures into the domain error taxonomy of
``app.core.errors``. Updates replace the whole table (no patch semantics) and
the last writer wins.
"""

from __future__ import annotations

import logging
from typing import NoReturn

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, PersistenceError, ValidationError
from app.core.metrics import dynamic_table_operations_total
from app.models.dynamic_table import DynamicTable
from app.services import detail_page_service

logger = logging.getLogger(__name__)

MAX_LIMIT = 100


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _require(**fields) -> None:
    missing = [name for name, value in fields.items() if value is None or value == ""]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def _require_unique_ids(items: list[dict], label: str) -> None:
    seen: set = set()
    for item in items:
        item_id = item.get("id")
        if item_id in seen:
            raise ValidationError(f"Duplicate {label} id '{item_id}'")
        seen.add(item_id)


def _validate_payload(columns: list[dict], rows: list[dict]) -> None:
    _require_unique_ids(columns, "column")
    _require_unique_ids(rows, "row")


async def _fail(
    db: AsyncSession, operation: str, message: str, exc: SQLAlchemyError
) -> NoReturn:
    await db.rollback()
    dynamic_table_operations_total.labels(operation=operation, outcome="error").inc()
    logger.exception("Dynamic table %s failed", operation)
    raise PersistenceError(message) from exc


async def _load(db: AsyncSession, table_id: int) -> DynamicTable | None:
    # populate_existing refreshes server-side timestamps after a write
    result = await db.execute(
        select(DynamicTable)
        .where(DynamicTable.id == table_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_tables(
    db: AsyncSession,
    *,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    detail_page_id: int | None = None,
) -> tuple[list[DynamicTable], int]:
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_LIMIT)

    conditions = []
    if search:
        pattern = f"%{_escape_like(search)}%"
        conditions.append(
            or_(
                DynamicTable.title.ilike(pattern, escape="\\"),
                DynamicTable.description.ilike(pattern, escape="\\"),
            )
        )
    if detail_page_id is not None:
        conditions.append(DynamicTable.detail_page_id == detail_page_id)

    query = select(DynamicTable).where(*conditions)
    count_query = select(func.count(DynamicTable.id)).where(*conditions)

    try:
        total = (await db.execute(count_query)).scalar_one()
        result = await db.execute(
            query.order_by(DynamicTable.updated_at.desc(), DynamicTable.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        items = list(result.scalars().all())
    except SQLAlchemyError as exc:
        await _fail(db, "list", "Failed to fetch dynamic tables", exc)

    dynamic_table_operations_total.labels(operation="list", outcome="ok").inc()
    return items, total


async def get_table(db: AsyncSession, table_id: int) -> DynamicTable:
    try:
        table = await _load(db, table_id)
    except SQLAlchemyError as exc:
        await _fail(db, "get", "Failed to fetch dynamic table", exc)
    if table is None:
        raise NotFound("Table")
    return table


async def create_table(
    db: AsyncSession,
    *,
    title: str | None,
    detail_page_id: int | None,
    columns: list[dict] | None,
    rows: list[dict] | None,
    description: str | None = None,
    icon_url: str | None = None,
) -> DynamicTable:
    _require(title=title, detail_page_id=detail_page_id, columns=columns, rows=rows)
    _validate_payload(columns, rows)

    try:
        detail_page = await detail_page_service.get_detail_page(db, detail_page_id)
        if detail_page is None:
            raise NotFound("Detail page")

        table = DynamicTable(
            title=title,
            description=description,
            detail_page_id=detail_page.id,
            columns=columns,
            rows=rows,
            icon_url=icon_url,
        )
        db.add(table)
        await db.commit()
        table = await _load(db, table.id)
    except SQLAlchemyError as exc:
        await _fail(db, "create", "Failed to create dynamic table", exc)

    dynamic_table_operations_total.labels(operation="create", outcome="ok").inc()
    logger.info(
        "Created dynamic table %s on detail page %s",
        table.id,
        table.detail_page_id,
        extra={"table_id": table.id, "detail_page_id": table.detail_page_id},
    )
    return table


async def create_table_for_card(
    db: AsyncSession,
    *,
    card_id: int | None,
    title: str | None,
    columns: list[dict] | None,
    rows: list[dict] | None,
    description: str | None = None,
    icon_url: str | None = None,
) -> DynamicTable:
    """Attach a new table to a card, provisioning the card's detail page if needed."""
    _require(card_id=card_id, title=title, columns=columns, rows=rows)
    _validate_payload(columns, rows)
    detail_page, _ = await detail_page_service.get_or_create_detail_page(db, card_id)
    return await create_table(
        db,
        title=title,
        detail_page_id=detail_page.id,
        columns=columns,
        rows=rows,
        description=description,
        icon_url=icon_url,
    )


async def _resolve_target_page(
    db: AsyncSession,
    table: DynamicTable,
    detail_page_id: int | None,
    card_id: int | None,
) -> tuple[int, int | None]:
    """Return the target page id and, if it was just provisioned, its card id."""
    if card_id is None:
        if detail_page_id is None or detail_page_id == table.detail_page_id:
            return table.detail_page_id, None
        # The editor UI picks a card, so a changed detailPageId is really a card id
        card_id = detail_page_id
    page, created = await detail_page_service.get_or_create_detail_page(
        db, card_id, commit=False
    )
    return page.id, card_id if created else None


async def update_table(
    db: AsyncSession,
    table_id: int,
    *,
    title: str | None,
    columns: list[dict] | None,
    rows: list[dict] | None,
    detail_page_id: int | None = None,
    description: str | None = None,
    icon_url: str | None = None,
    card_id: int | None = None,
) -> DynamicTable:
    _require(title=title, columns=columns, rows=rows)
    _validate_payload(columns, rows)

    try:
        table = await _load(db, table_id)
        if table is None:
            raise NotFound("Table")

        previous_page = table.detail_page_id
        target_page, provisioned_for = await _resolve_target_page(
            db, table, detail_page_id, card_id
        )

        table.title = title
        table.description = description or None
        table.columns = columns
        table.rows = rows
        table.icon_url = icon_url or None
        table.detail_page_id = target_page
        await db.commit()
        table = await _load(db, table_id)
    except SQLAlchemyError as exc:
        await _fail(db, "update", "Failed to update dynamic table", exc)

    if provisioned_for is not None:
        detail_page_service.record_provisioned(target_page, provisioned_for)
    dynamic_table_operations_total.labels(operation="update", outcome="ok").inc()
    if target_page != previous_page:
        logger.info(
            "Moved dynamic table %s from detail page %s to %s",
            table_id,
            previous_page,
            target_page,
            extra={"table_id": table_id, "detail_page_id": target_page},
        )
    return table


async def delete_table(db: AsyncSession, table_id: int) -> None:
    try:
        table = await _load(db, table_id)
        if table is None:
            raise NotFound("Table")
        await db.delete(table)
        await db.commit()
    except SQLAlchemyError as exc:
        await _fail(db, "delete", "Failed to delete dynamic table", exc)

    dynamic_table_operations_total.labels(operation="delete", outcome="ok").inc()
    logger.info("Deleted dynamic table %s", table_id, extra={"table_id": table_id})
