"""
Trendboard command-line interface.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from trendboard.core.bulk_cleanup import run_cleanup
from trendboard.core.bulk_export import export_all
from trendboard.core.bulk_import import ImportValidationError, import_all
from trendboard.core.bulk_payloads import (
    BulkDocument,
    BulkStats,
    CategoryCleanupOptions,
    CleanupOptions,
    ColorCleanupOptions,
    TrendCleanupOptions,
)
from trendboard.core.bulk_transaction import BulkOperationInProgressError, BulkTimeoutError
from trendboard.core.logging_setup import configure_logging
from trendboard.storage.database import async_session_maker

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_INVALID = 2
EXIT_BUSY = 3


def _parse_iso_datetime(value: str | None) -> datetime | None:
    if value is None:
        return None
    normalized = value.strip()
    if not normalized:
        return None
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    parsed = datetime.fromisoformat(normalized)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _format_stats(stats: BulkStats) -> str:
    return (
        f"categories={stats.categories} "
        f"trends={stats.trends} "
        f"colors={stats.colors}"
    )


def _build_cleanup_options(args: argparse.Namespace) -> CleanupOptions | None:
    """Map cleanup flags to options; None when no selector was given."""
    categories = None
    if args.all_categories or args.category_slug or args.orphaned_categories:
        categories = CategoryCleanupOptions(
            all=args.all_categories,
            slugs=args.category_slug or [],
            orphaned=args.orphaned_categories,
        )

    trends = None
    if args.all_trends or args.trend_title or args.orphaned_trends or args.older_than:
        trends = TrendCleanupOptions(
            all=args.all_trends,
            titles=args.trend_title or [],
            orphaned=args.orphaned_trends,
            older_than=_parse_iso_datetime(args.older_than),
        )

    colors = None
    if args.all_colors or args.color_name or args.unused_colors:
        colors = ColorCleanupOptions(
            all=args.all_colors,
            names=args.color_name or [],
            unused=args.unused_colors,
        )

    if categories is None and trends is None and colors is None:
        return None
    return CleanupOptions(categories=categories, trends=trends, colors=colors)


def _load_document(path: str) -> BulkDocument:
    raw: Any = json.loads(Path(path).read_text(encoding="utf-8"))
    # Files saved from the HTTP export keep the response envelope.
    if isinstance(raw, dict) and isinstance(raw.get("data"), dict):
        raw = raw["data"]
    return BulkDocument.model_validate(raw)


async def _run_export(*, output: str) -> int:
    async with async_session_maker() as session:
        document = await export_all(session)

    payload = document.model_dump(mode="json", by_alias=True)
    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    print(f"Exported {_format_stats(document.stats())} to {output_path}")
    return EXIT_OK


async def _run_import(*, path: str) -> int:
    try:
        document = _load_document(path)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        print(f"Invalid import file: {exc}")
        return EXIT_INVALID

    async with async_session_maker() as session:
        try:
            stats = await import_all(session, document)
            await session.commit()
        except ImportValidationError as exc:
            await session.rollback()
            print(f"Import rejected: {exc}")
            return EXIT_INVALID
        except (BulkOperationInProgressError, BulkTimeoutError) as exc:
            await session.rollback()
            print(f"Import aborted: {exc}")
            return EXIT_BUSY

    print(f"Imported {_format_stats(stats)}")
    return EXIT_OK


async def _run_cleanup(*, options: CleanupOptions) -> int:
    async with async_session_maker() as session:
        try:
            stats = await run_cleanup(session, options)
            await session.commit()
        except (BulkOperationInProgressError, BulkTimeoutError) as exc:
            await session.rollback()
            print(f"Cleanup aborted: {exc}")
            return EXIT_BUSY

    print(f"Deleted {_format_stats(stats)}")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trendboard")
    subparsers = parser.add_subparsers(dest="command")

    export_parser = subparsers.add_parser(
        "export",
        help="Write the full catalog as a bulk JSON document.",
    )
    export_parser.add_argument(
        "--output",
        default="trendboard-export.json",
        help="Path of the JSON file to write.",
    )

    import_parser = subparsers.add_parser(
        "import",
        help="Validate and import a bulk JSON document.",
    )
    import_parser.add_argument("path", help="Path of the JSON file to import.")

    cleanup_parser = subparsers.add_parser(
        "cleanup",
        help="Delete catalog entities in one transaction.",
    )
    cleanup_parser.add_argument(
        "--all-categories",
        action="store_true",
        help="Delete every category (trends become orphaned).",
    )
    cleanup_parser.add_argument(
        "--category-slug",
        action="append",
        help="Delete the category with this slug. Repeatable.",
    )
    cleanup_parser.add_argument(
        "--orphaned-categories",
        action="store_true",
        help="Delete root categories without children or trends.",
    )
    cleanup_parser.add_argument(
        "--all-trends",
        action="store_true",
        help="Delete every trend.",
    )
    cleanup_parser.add_argument(
        "--trend-title",
        action="append",
        help="Delete trends with this exact title. Repeatable.",
    )
    cleanup_parser.add_argument(
        "--orphaned-trends",
        action="store_true",
        help="Delete trends without a category.",
    )
    cleanup_parser.add_argument(
        "--older-than",
        default=None,
        help="Delete trends created before this ISO date or datetime.",
    )
    cleanup_parser.add_argument(
        "--all-colors",
        action="store_true",
        help="Delete every color trend.",
    )
    cleanup_parser.add_argument(
        "--color-name",
        action="append",
        help="Delete color trends with this exact name. Repeatable.",
    )
    cleanup_parser.add_argument(
        "--unused-colors",
        action="store_true",
        help="Delete color trends without analytics.",
    )

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging()

    if args.command == "export":
        return asyncio.run(_run_export(output=args.output))
    if args.command == "import":
        return asyncio.run(_run_import(path=args.path))
    if args.command == "cleanup":
        try:
            options = _build_cleanup_options(args)
        except (ValueError, ValidationError) as exc:
            print(f"Invalid cleanup options: {exc}")
            return EXIT_INVALID
        if options is None:
            print("Nothing to clean up: pass at least one selector flag.")
            return EXIT_USAGE
        return asyncio.run(_run_cleanup(options=options))
    parser.print_help()
    return EXIT_USAGE


if __name__ == "__main__":
    raise SystemExit(main())
