from __future__ import annotations

from uuid import uuid4

import pytest

from trendboard.api.serialization import build_category_tree
from trendboard.storage.models import Category, Trend

pytestmark = pytest.mark.unit


def _category(name: str, parent: Category | None = None) -> Category:
    return Category(
        id=uuid4(),
        name=name,
        slug=name.lower(),
        parent_id=parent.id if parent else None,
    )


def test_tree_nests_children_and_sorts_by_name() -> None:
    women = _category("Women")
    men = _category("Men")
    dresses = _category("Dresses", women)
    coats = _category("Coats", women)

    tree = build_category_tree([women, dresses, men, coats])

    assert [node.name for node in tree] == ["Men", "Women"]
    assert [child.name for child in tree[1].children] == ["Coats", "Dresses"]
    assert tree[0].trends is None


def test_tree_attaches_trends_to_their_category() -> None:
    women = _category("Women")
    trend = Trend(
        id=uuid4(),
        title="Quiet luxury",
        description="",
        type="style",
        image_urls=[],
        main_image_index=0,
        category_id=women.id,
    )
    orphan = Trend(
        id=uuid4(),
        title="Lost",
        description="",
        type="style",
        image_urls=[],
        main_image_index=0,
        category_id=None,
    )

    tree = build_category_tree([women], [trend, orphan])

    assert [item.title for item in tree[0].trends or []] == ["Quiet luxury"]


def test_tree_treats_unknown_parent_as_root() -> None:
    stray = Category(id=uuid4(), name="Stray", slug="stray", parent_id=uuid4())

    tree = build_category_tree([stray])

    assert [node.slug for node in tree] == ["stray"]


def test_tree_respects_max_depth() -> None:
    root = _category("Root")
    child = _category("Child", root)
    grandchild = _category("Grandchild", child)

    tree = build_category_tree([root, child, grandchild], max_depth=2)

    assert tree[0].children[0].name == "Child"
    assert tree[0].children[0].children == []
