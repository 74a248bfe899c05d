from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, IntIdMixin, TimestampMixin


class DynamicTable(Base, IntIdMixin, TimestampMixin):
    __tablename__ = "dynamic_tables"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    icon_url: Mapped[str | None] = mapped_column(String(1000))
    # Ordered column definitions: [{"id", "name", "type", "icon"?}, ...]
    columns: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    # Ordered rows: [{"id", "data": {column_id: value}}, ...]
    rows: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    detail_page_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("detail_pages.id", ondelete="CASCADE"), nullable=False, index=True
    )

    detail_page = relationship("DetailPage", back_populates="tables", lazy="selectin")
