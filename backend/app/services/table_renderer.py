"""Generic rendering of a dynamic table's columns and rows.

Nothing outside ``format_cell`` knows about cell types. The output is a
JSON view model: each cell is tagged with a ``kind`` that a front-end
template maps to a widget (plain text, outbound link, thumbnail, badge...).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from app.config import settings

PLACEHOLDER = "-"
PAGE_WINDOW = 5

# label -> (color class, icon)
STATUS_STYLES: dict[str, tuple[str, str]] = {
    "Open": ("bg-green-100 text-green-800", "check-circle"),
    "Closed": ("bg-red-100 text-red-800", "x-circle"),
    "Pending": ("bg-yellow-100 text-yellow-800", "clock"),
    "Active": ("bg-blue-100 text-blue-800", "check-circle"),
    "Inactive": ("bg-gray-100 text-gray-800", "x-circle"),
}
_NEUTRAL_STATUS = "bg-gray-100 text-gray-800"

TYPE_ICONS = {
    "text": "type",
    "number": "hash",
    "image": "image",
    "link": "link",
    "richtext": "file-text",
    "date": "calendar",
    "status": "badge",
}


def _is_empty(value: Any) -> bool:
    # Mirrors the falsy check of the site front-end: 0 and "" both render "-"
    return not value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_number(value: Any) -> str:
    if not _is_number(value):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, float):
        return f"{round(value, 3):,}"
    return f"{value:,}"


def parse_date(value: Any) -> date:
    """Parse an ISO date or datetime string; raises ``ValueError`` otherwise."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value).strip()).date()


def format_date(value: Any) -> str:
    d = parse_date(value)
    return settings.DATE_DISPLAY_FORMAT.format(
        year=d.year, month=d.month, day=d.day, mm=f"{d.month:02d}", dd=f"{d.day:02d}"
    )


def format_cell(col_type: str, value: Any) -> dict[str, Any]:
    """Format one raw cell value according to its column type."""
    if _is_empty(value):
        return {"kind": "empty", "value": value, "display": PLACEHOLDER}

    if col_type == "link":
        return {
            "kind": "link",
            "value": value,
            "display": "Apply",
            "href": str(value),
            "target": "_blank",
            "rel": "noopener noreferrer",
        }

    if col_type == "image":
        text = str(value)
        src = text if text.startswith(("http://", "https://")) else None
        return {"kind": "image", "value": value, "display": "Logo", "src": src, "fallback": "Logo"}

    if col_type == "date":
        try:
            display = format_date(value)
        except (TypeError, ValueError):
            return {"kind": "text", "value": value, "display": str(value)}
        return {"kind": "date", "value": value, "display": display, "icon": "calendar"}

    if col_type == "status":
        label = str(value)
        color, icon = STATUS_STYLES.get(label, (_NEUTRAL_STATUS, None))
        return {"kind": "badge", "value": value, "display": label, "color": color, "icon": icon}

    if col_type == "number":
        return {"kind": "number", "value": value, "display": format_number(value)}

    kind = "richtext" if col_type == "richtext" else "text"
    return {"kind": kind, "value": value, "display": str(value)}


def render_header(column: dict) -> dict[str, Any]:
    col_type = column.get("type", "text")
    return {
        "id": column.get("id"),
        "name": column.get("name", ""),
        "type": col_type,
        "icon": column.get("icon") or TYPE_ICONS.get(col_type, "type"),
    }


def row_matches(row: dict, query: str) -> bool:
    """True if any cell value of ``row`` contains ``query``, case-insensitively."""
    needle = query.lower()
    for value in (row.get("data") or {}).values():
        if value is None:
            continue
        if needle in str(value).lower():
            return True
    return False


def filter_rows(rows: list[dict], query: str | None) -> list[dict]:
    if not query:
        return list(rows)
    return [row for row in rows if row_matches(row, query)]


def page_window(current: int, total_pages: int, size: int = PAGE_WINDOW) -> list[int]:
    """Page numbers to show: at most ``size``, centred on ``current``.

    The window clamps to the first or last ``size`` pages near the edges.
    """
    if total_pages <= size:
        return list(range(1, total_pages + 1))
    half = size // 2
    if current <= half + 1:
        start = 1
    elif current >= total_pages - half:
        start = total_pages - size + 1
    else:
        start = current - half
    return list(range(start, start + size))


@dataclass
class Page:
    items: list[dict]
    page: int
    total_pages: int
    total: int
    start: int
    end: int
    page_size: int

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "pageSize": self.page_size,
            "totalPages": self.total_pages,
            "total": self.total,
            "start": self.start,
            "end": self.end,
            "hasPrev": self.has_prev,
            "hasNext": self.has_next,
            "window": page_window(self.page, self.total_pages),
        }


def paginate(rows: list[dict], page: int = 1, page_size: int | None = None) -> Page:
    size = page_size or settings.TABLE_PAGE_SIZE
    total = len(rows)
    total_pages = math.ceil(total / size)
    page = min(max(page, 1), max(total_pages, 1))
    offset = (page - 1) * size
    items = rows[offset:offset + size]
    return Page(
        items=items,
        page=page,
        total_pages=total_pages,
        total=total,
        start=offset + 1 if items else 0,
        end=offset + len(items),
        page_size=size,
    )


def render_rows(columns: list[dict], rows: list[dict]) -> list[dict[str, Any]]:
    rendered = []
    for row in rows:
        data = row.get("data") or {}
        rendered.append({
            "id": row.get("id"),
            "cells": [format_cell(c.get("type", "text"), data.get(c.get("id"))) for c in columns],
        })
    return rendered


def render_table(
    *,
    title: str,
    columns: list[dict],
    rows: list[dict],
    description: str | None = None,
    icon_url: str | None = None,
    search: str | None = None,
    page: int = 1,
) -> dict[str, Any]:
    """Build the full view: headers, one page of formatted rows, pagination."""
    matched = filter_rows(rows, search)
    current = paginate(matched, page)
    return {
        "title": title,
        "description": description,
        "iconUrl": icon_url,
        "search": search or "",
        "headers": [render_header(c) for c in columns],
        "rows": render_rows(columns, current.items),
        "pagination": current.to_dict(),
        "empty": not rows,
    }
