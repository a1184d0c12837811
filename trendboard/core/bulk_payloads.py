"""
Wire schemas for bulk cleanup, export and import.

The export document and the import document share one shape, so a file
written by export can be fed back to import unchanged. Field names are
camelCase on the wire; Python code uses snake_case attributes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from trendboard.storage.models import HEX_COLOR_PATTERN

_HEX_RE = re.compile(HEX_COLOR_PATTERN)


def is_valid_hex_color(value: str) -> bool:
    """Return True for `#RGB` and `#RRGGBB` strings."""
    return bool(_HEX_RE.match(value))


def validate_hex_color(value: str, *, field_name: str = "hex") -> str:
    if not is_valid_hex_color(value):
        msg = f"Invalid {field_name} color format: '{value}'"
        raise ValueError(msg)
    return value


def normalize_age_segments(value: Any) -> list[dict[str, Any]] | None:
    """
    Normalize age segments to a list of `{name, value}` objects.

    Accepts either the list form or a `{name: value}` mapping.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        return [{"name": str(name), "value": share} for name, share in value.items()]
    return value


def as_utc_midnight(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# =============================================================================
# Cleanup Options
# =============================================================================


class CategoryCleanupOptions(_WireModel):
    """Category selectors for bulk cleanup."""

    all: bool = False
    slugs: list[str] = Field(default_factory=list)
    orphaned: bool = False


class TrendCleanupOptions(_WireModel):
    """Trend selectors for bulk cleanup."""

    all: bool = False
    titles: list[str] = Field(default_factory=list)
    orphaned: bool = False
    older_than: datetime | None = None

    @field_validator("older_than", mode="before")
    @classmethod
    def _parse_cutoff(cls, value: Any) -> Any:
        if isinstance(value, str) and len(value) == 10:
            return as_utc_midnight(date.fromisoformat(value))
        return value

    @field_validator("older_than")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class ColorCleanupOptions(_WireModel):
    """Color selectors for bulk cleanup."""

    all: bool = False
    names: list[str] = Field(default_factory=list)
    unused: bool = False


class CleanupOptions(_WireModel):
    """Request body of a bulk cleanup call. Omitted groups are left alone."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "categories": {"orphaned": True},
                "trends": {"titles": ["Quiet luxury"], "olderThan": "2023-01-01"},
                "colors": {"unused": True},
            }
        }
    )

    categories: CategoryCleanupOptions | None = None
    trends: TrendCleanupOptions | None = None
    colors: ColorCleanupOptions | None = None


@dataclass(slots=True)
class BulkStats:
    """Per-entity row counts of one bulk operation."""

    categories: int = 0
    trends: int = 0
    colors: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "categories": self.categories,
            "trends": self.trends,
            "colors": self.colors,
        }


# =============================================================================
# Export / Import Documents
# =============================================================================


class AgeSegment(_WireModel):
    """Share of an audience age bucket."""

    name: str = Field(..., min_length=1)
    value: float


class AnalyticsDocument(_WireModel):
    """Time series with day-precision dates."""

    dates: list[date] = Field(default_factory=list)
    values: list[float] = Field(default_factory=list)
    age_segments: list[AgeSegment] | None = None

    @field_validator("age_segments", mode="before")
    @classmethod
    def _normalize_segments(cls, value: Any) -> Any:
        return normalize_age_segments(value)

    @model_validator(mode="after")
    def _check_parallel(self) -> AnalyticsDocument:
        if len(self.dates) != len(self.values):
            msg = "analytics dates and values must have the same length"
            raise ValueError(msg)
        return self


class CategoryDocument(_WireModel):
    """Portable category; the parent is referenced by slug."""

    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    description: str = ""
    image_url: str = ""
    parent_slug: str | None = None


class TrendDocument(_WireModel):
    """Portable trend; an empty category slug marks an orphaned trend."""

    title: str = Field(..., min_length=1)
    description: str = ""
    type: str = Field(..., min_length=1)
    image_urls: list[str] = Field(default_factory=list)
    main_image_index: int = Field(default=0, ge=0)
    category_slug: str = ""
    analytics: AnalyticsDocument | None = None

    @model_validator(mode="after")
    def _check_main_image(self) -> TrendDocument:
        if self.image_urls and self.main_image_index >= len(self.image_urls):
            msg = "mainImageIndex must point into imageUrls"
            raise ValueError(msg)
        return self


class ColorDocument(_WireModel):
    """Portable color trend."""

    name: str = Field(..., min_length=1)
    hex: str
    image_url: str = ""
    popularity: int = Field(default=0, ge=0, le=100)
    palette1: str | None = None
    palette2: str | None = None
    palette3: str | None = None
    palette4: str | None = None
    palette5: str | None = None
    analytics: AnalyticsDocument | None = None

    @field_validator("hex")
    @classmethod
    def _check_hex(cls, value: str) -> str:
        return validate_hex_color(value)

    @field_validator("palette1", "palette2", "palette3", "palette4", "palette5")
    @classmethod
    def _check_palette(cls, value: str | None) -> str | None:
        if not value:
            return None
        return validate_hex_color(value, field_name="palette")


class BulkDocument(_WireModel):
    """Full catalog snapshot exchanged by export and import."""

    categories: list[CategoryDocument] = Field(default_factory=list)
    trends: list[TrendDocument] = Field(default_factory=list)
    colors: list[ColorDocument] = Field(default_factory=list)

    def stats(self) -> BulkStats:
        return BulkStats(
            categories=len(self.categories),
            trends=len(self.trends),
            colors=len(self.colors),
        )
