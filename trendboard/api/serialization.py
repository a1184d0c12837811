"""
Response models shared by the admin and public routes.

Fields are exposed in camelCase for the dashboard frontend.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from trendboard.storage.models import Analytics, Category, ColorTrend, Trend


class CamelModel(BaseModel):
    """Base for camelCase request and response bodies."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class AnalyticsOut(CamelModel):
    dates: list[datetime]
    values: list[float]
    age_segments: list[dict[str, Any]] | None = None


class TrendOut(CamelModel):
    id: UUID
    title: str
    description: str
    type: str
    image_urls: list[str]
    main_image_index: int
    category_id: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    analytics: AnalyticsOut | None = None


class ColorOut(CamelModel):
    id: UUID
    name: str
    hex: str
    image_url: str
    popularity: int
    palette1: str | None = None
    palette2: str | None = None
    palette3: str | None = None
    palette4: str | None = None
    palette5: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    analytics: AnalyticsOut | None = None


class CategoryNode(CamelModel):
    id: UUID
    name: str
    slug: str
    description: str | None = None
    image_url: str | None = None
    parent_id: UUID | None = None
    children: list[CategoryNode] = []
    trends: list[TrendOut] | None = None


def analytics_out(analytics: Analytics | None) -> AnalyticsOut | None:
    if analytics is None:
        return None
    return AnalyticsOut(
        dates=list(analytics.dates),
        values=list(analytics.values),
        age_segments=analytics.age_segments,
    )


def trend_out(trend: Trend, *, include_analytics: bool = True) -> TrendOut:
    return TrendOut(
        id=trend.id,
        title=trend.title,
        description=trend.description,
        type=trend.type,
        image_urls=list(trend.image_urls or []),
        main_image_index=trend.main_image_index,
        category_id=trend.category_id,
        created_at=trend.created_at,
        updated_at=trend.updated_at,
        analytics=analytics_out(trend.analytics) if include_analytics else None,
    )


def color_out(color: ColorTrend, *, include_analytics: bool = True) -> ColorOut:
    return ColorOut(
        id=color.id,
        name=color.name,
        hex=color.hex,
        image_url=color.image_url,
        popularity=color.popularity,
        palette1=color.palette1,
        palette2=color.palette2,
        palette3=color.palette3,
        palette4=color.palette4,
        palette5=color.palette5,
        created_at=color.created_at,
        updated_at=color.updated_at,
        analytics=analytics_out(color.analytics) if include_analytics else None,
    )


def build_category_tree(
    categories: Sequence[Category],
    trends: Sequence[Trend] | None = None,
    *,
    max_depth: int | None = None,
) -> list[CategoryNode]:
    """
    Nest flat category rows under their parents, roots sorted by name.

    Trends are attached to their category when given. `max_depth` limits
    the number of levels returned (1 means roots only).
    """
    children_of: dict[UUID | None, list[Category]] = defaultdict(list)
    known_ids = {category.id for category in categories}
    for category in categories:
        parent_id = category.parent_id if category.parent_id in known_ids else None
        children_of[parent_id].append(category)

    trends_of: dict[UUID, list[Trend]] = defaultdict(list)
    for trend in trends or ():
        if trend.category_id is not None:
            trends_of[trend.category_id].append(trend)

    def _node(category: Category, depth: int, path: frozenset[UUID]) -> CategoryNode:
        child_rows = []
        if max_depth is None or depth < max_depth:
            child_rows = [
                child
                for child in sorted(children_of.get(category.id, []), key=lambda row: row.name)
                if child.id not in path
            ]
        return CategoryNode(
            id=category.id,
            name=category.name,
            slug=category.slug,
            description=category.description,
            image_url=category.image_url,
            parent_id=category.parent_id,
            children=[_node(child, depth + 1, path | {child.id}) for child in child_rows],
            trends=(
                [trend_out(trend) for trend in trends_of.get(category.id, [])]
                if trends is not None
                else None
            ),
        )

    roots = sorted(children_of.get(None, []), key=lambda row: row.name)
    return [_node(root, 1, frozenset({root.id})) for root in roots]
