"""
Reachability checks for uploaded image URLs.

Freshly uploaded objects can take a moment to become readable, so each URL
is probed with HEAD several times before it is declared unreachable.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import httpx
import structlog

from trendboard.core.config import settings
from trendboard.core.observability import record_image_probe_failure

logger = structlog.get_logger(__name__)


class ImageUnreachableError(ValueError):
    """Raised when an image URL stays unreachable after every attempt."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Image is not accessible: {url}")


async def is_image_reachable(
    http_client: httpx.AsyncClient,
    url: str,
    *,
    max_attempts: int | None = None,
    retry_delay_seconds: float | None = None,
) -> bool:
    """Return True once a HEAD request for `url` answers with a 2xx status."""
    attempts = max_attempts if max_attempts is not None else settings.IMAGE_CHECK_MAX_ATTEMPTS
    delay = (
        retry_delay_seconds
        if retry_delay_seconds is not None
        else settings.IMAGE_CHECK_RETRY_DELAY_SECONDS
    )

    for attempt in range(attempts):
        try:
            response = await http_client.head(
                url,
                timeout=settings.IMAGE_CHECK_TIMEOUT_SECONDS,
                follow_redirects=True,
            )
            if response.is_success:
                return True
            reason = f"HTTP {response.status_code}"
        except (httpx.UnsupportedProtocol, httpx.InvalidURL) as exc:
            # Malformed URLs never become reachable.
            logger.warning("Image URL rejected", url=url, reason=str(exc))
            record_image_probe_failure()
            return False
        except httpx.HTTPError as exc:
            reason = exc.__class__.__name__

        logger.debug("Image probe attempt failed", url=url, attempt=attempt + 1, reason=reason)
        if attempt + 1 < attempts:
            await asyncio.sleep(delay)

    logger.warning("Image unreachable", url=url, attempts=attempts)
    record_image_probe_failure()
    return False


async def verify_image_urls(
    http_client: httpx.AsyncClient,
    urls: Sequence[str],
    *,
    max_attempts: int | None = None,
    retry_delay_seconds: float | None = None,
) -> None:
    """Raise ImageUnreachableError for the first URL that never becomes reachable."""
    for url in urls:
        reachable = await is_image_reachable(
            http_client,
            url,
            max_attempts=max_attempts,
            retry_delay_seconds=retry_delay_seconds,
        )
        if not reachable:
            raise ImageUnreachableError(url)
