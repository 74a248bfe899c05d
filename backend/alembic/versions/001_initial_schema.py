"""initial schema: users, content hierarchy, dynamic tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    from sqlalchemy import inspect as sa_inspect

    inspector = sa_inspect(op.get_bind())

    if not inspector.has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
            sa.Column("email", sa.String(320), nullable=False, unique=True),
            sa.Column("display_name", sa.String(200), nullable=False),
            sa.Column("password_hash", sa.String(200), nullable=False),
            sa.Column("role", sa.String(20), server_default="editor"),
            sa.Column("is_active", sa.Boolean(), server_default="true"),
            *_timestamps(),
        )

    if not inspector.has_table("study_pages"):
        op.create_table(
            "study_pages",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("title", sa.String(300), nullable=False),
            sa.Column("slug", sa.String(200), nullable=False, unique=True, index=True),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("banner_url", sa.String(1000), nullable=True),
            sa.Column("seo_title", sa.String(300), nullable=True),
            sa.Column("seo_description", sa.Text(), nullable=True),
            sa.Column("is_active", sa.Boolean(), server_default="true"),
            *_timestamps(),
        )

    if not inspector.has_table("categories"):
        op.create_table(
            "categories",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("title", sa.String(300), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column(
                "study_page_id",
                sa.Integer(),
                sa.ForeignKey("study_pages.id", ondelete="CASCADE"),
                nullable=False,
                index=True,
            ),
            *_timestamps(),
        )

    if not inspector.has_table("cards"):
        op.create_table(
            "cards",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("title", sa.String(500), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("image_url", sa.String(1000), nullable=True),
            sa.Column(
                "category_id",
                sa.Integer(),
                sa.ForeignKey("categories.id", ondelete="CASCADE"),
                nullable=False,
                index=True,
            ),
            sa.Column("card_category", sa.String(200), nullable=True),
            sa.Column("duration", sa.String(200), nullable=True),
            sa.Column("location", sa.String(300), nullable=True),
            sa.Column("intake", sa.String(200), nullable=True),
            sa.Column("requirements", sa.Text(), nullable=True),
            sa.Column("link", sa.String(1000), nullable=True),
            sa.Column("is_active", sa.Boolean(), server_default="true"),
            *_timestamps(),
        )

    if not inspector.has_table("detail_pages"):
        op.create_table(
            "detail_pages",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column(
                "card_id",
                sa.Integer(),
                sa.ForeignKey("cards.id", ondelete="CASCADE"),
                nullable=False,
                unique=True,
            ),
            sa.Column("content", sa.Text(), nullable=True),
            *_timestamps(),
        )

    if not inspector.has_table("dynamic_tables"):
        op.create_table(
            "dynamic_tables",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("title", sa.String(500), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("icon_url", sa.String(1000), nullable=True),
            sa.Column("columns", postgresql.JSONB(), nullable=False),
            sa.Column("rows", postgresql.JSONB(), nullable=False),
            sa.Column(
                "detail_page_id",
                sa.Integer(),
                sa.ForeignKey("detail_pages.id", ondelete="CASCADE"),
                nullable=False,
                index=True,
            ),
            *_timestamps(),
        )


def downgrade() -> None:
    op.drop_table("dynamic_tables")
    op.drop_table("detail_pages")
    op.drop_table("cards")
    op.drop_table("categories")
    op.drop_table("study_pages")
    op.drop_table("users")
