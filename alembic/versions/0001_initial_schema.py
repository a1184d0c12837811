"""Initial database schema.

Revision ID: 0001_initial_schema
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

HEX_CHECK = "^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    # ---------------------------------------------------------------------
    # Catalog tables
    # ---------------------------------------------------------------------
    op.create_table(
        "categories",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column(
            "parent_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
        sa.UniqueConstraint("slug", name="categories_slug_key"),
    )
    op.create_index("idx_categories_parent", "categories", ["parent_id"])

    op.create_table(
        "trends",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=100), nullable=False),
        sa.Column("image_urls", postgresql.ARRAY(sa.Text()), nullable=False),
        sa.Column("main_image_index", sa.Integer(), nullable=False),
        sa.Column(
            "category_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
        sa.CheckConstraint("main_image_index >= 0", name="check_main_image_index"),
    )
    op.create_index("idx_trends_category", "trends", ["category_id"])
    op.create_index("idx_trends_created", "trends", ["created_at"])
    op.create_index("idx_trends_title", "trends", ["title"])

    op.create_table(
        "color_trends",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("hex", sa.String(length=7), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=False),
        sa.Column("popularity", sa.Integer(), nullable=False),
        sa.Column("palette1", sa.String(length=7), nullable=True),
        sa.Column("palette2", sa.String(length=7), nullable=True),
        sa.Column("palette3", sa.String(length=7), nullable=True),
        sa.Column("palette4", sa.String(length=7), nullable=True),
        sa.Column("palette5", sa.String(length=7), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "popularity >= 0 AND popularity <= 100",
            name="check_popularity_range",
        ),
        sa.CheckConstraint(f"hex ~ '{HEX_CHECK}'", name="check_hex_format"),
    )
    op.create_index("idx_color_trends_name", "color_trends", ["name"])

    op.create_table(
        "analytics",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("dates", postgresql.ARRAY(sa.DateTime(timezone=True)), nullable=False),
        sa.Column("values", postgresql.ARRAY(sa.Float()), nullable=False),
        sa.Column("age_segments", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column(
            "trend_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("trends.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "color_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("color_trends.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.UniqueConstraint("trend_id", name="analytics_trend_id_key"),
        sa.UniqueConstraint("color_id", name="analytics_color_id_key"),
        sa.CheckConstraint(
            "(trend_id IS NULL) <> (color_id IS NULL)",
            name="check_single_owner",
        ),
        sa.CheckConstraint(
            "cardinality(dates) = cardinality(values)",
            name="check_parallel_series",
        ),
    )

    # ---------------------------------------------------------------------
    # Users
    # ---------------------------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("subscribed_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sheets_access_token", sa.Text(), nullable=True),
        sa.Column("sheets_refresh_token", sa.Text(), nullable=True),
        sa.Column("sheets_token_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.UniqueConstraint("email", name="users_email_key"),
    )


def downgrade() -> None:
    op.drop_table("users")
    op.drop_table("analytics")

    op.drop_index("idx_color_trends_name", table_name="color_trends")
    op.drop_table("color_trends")

    op.drop_index("idx_trends_title", table_name="trends")
    op.drop_index("idx_trends_created", table_name="trends")
    op.drop_index("idx_trends_category", table_name="trends")
    op.drop_table("trends")

    op.drop_index("idx_categories_parent", table_name="categories")
    op.drop_table("categories")
