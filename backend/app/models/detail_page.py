from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, IntIdMixin, TimestampMixin


class DetailPage(Base, IntIdMixin, TimestampMixin):
    __tablename__ = "detail_pages"

    # One detail page per card
    card_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cards.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    content: Mapped[str | None] = mapped_column(Text)

    card = relationship("Card", back_populates="detail_page", lazy="selectin")
    tables = relationship(
        "DynamicTable",
        back_populates="detail_page",
        cascade="all, delete-orphan",
        order_by="DynamicTable.created_at",
        lazy="noload",
    )
