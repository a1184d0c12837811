"""
Prometheus metrics registry and helper recorders.
"""

from __future__ import annotations

from prometheus_client import Counter

BULK_DELETED_ROWS_TOTAL = Counter(
    "bulk_deleted_rows_total",
    "Rows removed by bulk cleanup, by entity type.",
    ["entity"],
)
BULK_IMPORTED_ROWS_TOTAL = Counter(
    "bulk_imported_rows_total",
    "Rows created or updated by bulk import, by entity type.",
    ["entity"],
)
BULK_OPERATION_FAILURES_TOTAL = Counter(
    "bulk_operation_failures_total",
    "Bulk operations aborted and rolled back, by operation.",
    ["operation"],
)
SPREADSHEET_IMPORTS_TOTAL = Counter(
    "spreadsheet_imports_total",
    "Spreadsheet analytics imports by owner type and outcome.",
    ["owner", "outcome"],
)
IMAGE_PROBE_FAILURES_TOTAL = Counter(
    "image_probe_failures_total",
    "Image URLs that stayed unreachable after all HEAD attempts.",
)


def record_bulk_stats(counter: Counter, *, categories: int, trends: int, colors: int) -> None:
    """Add per-entity row counts from one bulk operation."""
    for entity, count in (("category", categories), ("trend", trends), ("color", colors)):
        if count > 0:
            counter.labels(entity=entity).inc(count)


def record_bulk_failure(operation: str) -> None:
    """Record one aborted bulk operation."""
    BULK_OPERATION_FAILURES_TOTAL.labels(operation=operation).inc()


def record_spreadsheet_import(*, owner: str, outcome: str) -> None:
    """Record one spreadsheet import attempt."""
    SPREADSHEET_IMPORTS_TOTAL.labels(owner=owner, outcome=outcome).inc()


def record_image_probe_failure() -> None:
    """Record one image URL that failed every probe attempt."""
    IMAGE_PROBE_FAILURES_TOTAL.inc()
