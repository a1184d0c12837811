"""
Database models for the Trendboard catalog.

This module defines all SQLAlchemy ORM models for the application.
Uses async SQLAlchemy 2.0 patterns.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    false,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

HEX_COLOR_PATTERN = r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"
PALETTE_FIELDS = ("palette1", "palette2", "palette3", "palette4", "palette5")

# =============================================================================
# Base Configuration
# =============================================================================


class Base(DeclarativeBase):
    """Base class for all models."""

    type_annotation_map = {
        dict: JSONB,
        list: JSONB,
        list[str]: ARRAY(String),
        UUID: PGUUID(as_uuid=True),
    }


# =============================================================================
# Catalog Models
# =============================================================================


class Category(Base):
    """
    A node in the category tree.

    Attributes:
        id: Unique identifier
        name: Display name
        slug: Unique URL-safe key, used as the portable reference in exports
        description: Optional long description
        image_url: Optional cover image URL
        parent_id: Parent category (null for roots)
    """

    __tablename__ = "categories"

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    image_url: Mapped[str | None] = mapped_column(Text)
    parent_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("categories.id", ondelete="SET NULL"),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    parent: Mapped[Category | None] = relationship(
        back_populates="children",
        remote_side="Category.id",
    )
    children: Mapped[list[Category]] = relationship(back_populates="parent")
    trends: Mapped[list[Trend]] = relationship(back_populates="category")

    __table_args__ = (Index("idx_categories_parent", "parent_id"),)
    __mapper_args__ = {"eager_defaults": True}


class Trend(Base):
    """
    A curated fashion trend entry.

    Trends may exist without a category; such orphaned trends stay
    queryable and are only removed by explicit cleanup.
    """

    __tablename__ = "trends"

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    image_urls: Mapped[list[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        default=list,
    )
    main_image_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    category_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("categories.id", ondelete="SET NULL"),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    category: Mapped[Category | None] = relationship(back_populates="trends")
    analytics: Mapped[Analytics | None] = relationship(
        back_populates="trend",
        uselist=False,
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("main_image_index >= 0", name="check_main_image_index"),
        Index("idx_trends_category", "category_id"),
        Index("idx_trends_created", "created_at"),
        Index("idx_trends_title", "title"),
    )
    __mapper_args__ = {"eager_defaults": True}


class ColorTrend(Base):
    """
    A trending color with an optional five-swatch palette.

    Attributes:
        hex: Main color (#RGB or #RRGGBB)
        popularity: Popularity score (0 to 100)
        palette1..palette5: Optional companion swatches
    """

    __tablename__ = "color_trends"

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    hex: Mapped[str] = mapped_column(String(7), nullable=False)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    popularity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    palette1: Mapped[str | None] = mapped_column(String(7))
    palette2: Mapped[str | None] = mapped_column(String(7))
    palette3: Mapped[str | None] = mapped_column(String(7))
    palette4: Mapped[str | None] = mapped_column(String(7))
    palette5: Mapped[str | None] = mapped_column(String(7))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    analytics: Mapped[Analytics | None] = relationship(
        back_populates="color",
        uselist=False,
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "popularity >= 0 AND popularity <= 100",
            name="check_popularity_range",
        ),
        CheckConstraint(f"hex ~ '{HEX_COLOR_PATTERN}'", name="check_hex_format"),
        Index("idx_color_trends_name", "name"),
    )
    __mapper_args__ = {"eager_defaults": True}

    @property
    def palette(self) -> list[str | None]:
        return [getattr(self, field) for field in PALETTE_FIELDS]


class Analytics(Base):
    """
    Time series owned by exactly one trend or one color trend.

    `dates` and `values` are parallel arrays in insertion order; they are
    not guaranteed to be sorted.
    """

    __tablename__ = "analytics"

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    dates: Mapped[list[datetime]] = mapped_column(
        ARRAY(DateTime(timezone=True)),
        nullable=False,
        default=list,
    )
    values: Mapped[list[float]] = mapped_column(
        ARRAY(Float),
        nullable=False,
        default=list,
    )
    age_segments: Mapped[list | None] = mapped_column(JSONB)
    trend_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("trends.id", ondelete="CASCADE"),
        unique=True,
    )
    color_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("color_trends.id", ondelete="CASCADE"),
        unique=True,
    )

    # Relationships
    trend: Mapped[Trend | None] = relationship(back_populates="analytics")
    color: Mapped[ColorTrend | None] = relationship(back_populates="analytics")

    __table_args__ = (
        CheckConstraint(
            "(trend_id IS NULL) <> (color_id IS NULL)",
            name="check_single_owner",
        ),
        CheckConstraint(
            "cardinality(dates) = cardinality(values)",
            name="check_parallel_series",
        ),
    )


# =============================================================================
# User Models
# =============================================================================


class User(Base):
    """
    A dashboard account as seen by this service.

    Sign-in and token exchange happen upstream; this table only carries
    the admin flag, subscription window and the Google Sheets token.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(255))
    is_admin: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
    )
    subscribed_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    sheets_access_token: Mapped[str | None] = mapped_column(Text)
    sheets_refresh_token: Mapped[str | None] = mapped_column(Text)
    sheets_token_expiry: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
