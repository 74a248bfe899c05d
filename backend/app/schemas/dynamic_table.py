from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

CellType = Literal["text", "number", "image", "link", "richtext", "date", "status"]

# Limits for the JSONB blobs to prevent memory exhaustion
_MAX_COLUMNS = 100
_MAX_ROWS = 5_000


class ColumnDef(BaseModel):
    id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., max_length=300)
    type: CellType
    icon: str | None = None

    # Front-end hints beyond the known keys are stored untouched
    model_config = ConfigDict(extra="allow")


class RowDef(BaseModel):
    id: str = Field(..., min_length=1, max_length=100)
    data: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="allow")


class _TableBody(BaseModel):
    """Shared camelCase-or-snake_case body for table writes.

    Required fields are optional here on purpose: their absence is reported
    by the service as a 400 ``ValidationError`` before any database access.
    """

    title: str | None = None
    description: str | None = None
    icon_url: str | None = None
    columns: list[ColumnDef] | None = None
    rows: list[RowDef] | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("columns")
    @classmethod
    def validate_columns(cls, v: list[ColumnDef] | None) -> list[ColumnDef] | None:
        if v is not None and len(v) > _MAX_COLUMNS:
            raise ValueError(f"columns exceeds maximum of {_MAX_COLUMNS}")
        return v

    @field_validator("rows")
    @classmethod
    def validate_rows(cls, v: list[RowDef] | None) -> list[RowDef] | None:
        if v is not None and len(v) > _MAX_ROWS:
            raise ValueError(f"rows exceeds maximum of {_MAX_ROWS}")
        return v

    def columns_payload(self) -> list[dict] | None:
        if self.columns is None:
            return None
        return [c.model_dump(exclude_none=True) for c in self.columns]

    def rows_payload(self) -> list[dict] | None:
        if self.rows is None:
            return None
        return [r.model_dump() for r in self.rows]


class DynamicTableCreate(_TableBody):
    detail_page_id: int | None = None


class DynamicTableUpdate(_TableBody):
    detail_page_id: int | None = None
    # Preferred way to re-parent: the card whose detail page should own the table
    card_id: int | None = None


class CardTableCreate(_TableBody):
    card_id: int | None = None
