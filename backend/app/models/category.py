from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, IntIdMixin, TimestampMixin


class Category(Base, IntIdMixin, TimestampMixin):
    __tablename__ = "categories"

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    study_page_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("study_pages.id", ondelete="CASCADE"), nullable=False, index=True
    )

    study_page = relationship("StudyPage", back_populates="categories", lazy="selectin")
    cards = relationship(
        "Card", back_populates="category", cascade="all, delete-orphan", lazy="noload"
    )
