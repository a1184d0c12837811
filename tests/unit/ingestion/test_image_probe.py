from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

import trendboard.ingestion.image_probe as image_probe_module
from trendboard.ingestion.image_probe import (
    ImageUnreachableError,
    is_image_reachable,
    verify_image_urls,
)

pytestmark = pytest.mark.unit

IMAGE_URL = "https://cdn.example/uploads/a.jpg"


def _head(status_code: int) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("HEAD", IMAGE_URL))


@pytest.fixture
def no_sleep(monkeypatch) -> AsyncMock:
    sleep = AsyncMock()
    monkeypatch.setattr(image_probe_module.asyncio, "sleep", sleep)
    return sleep


@pytest.mark.asyncio
async def test_image_reachable_after_transient_failures(mock_http_client, no_sleep) -> None:
    mock_http_client.head.side_effect = [
        _head(404),
        httpx.ConnectError("refused"),
        _head(200),
    ]

    assert await is_image_reachable(mock_http_client, IMAGE_URL, max_attempts=5) is True
    assert mock_http_client.head.await_count == 3
    assert no_sleep.await_count == 2
    assert mock_http_client.head.await_args.kwargs["follow_redirects"] is True


@pytest.mark.asyncio
async def test_image_unreachable_after_all_attempts(mock_http_client, no_sleep) -> None:
    mock_http_client.head.return_value = _head(403)

    result = await is_image_reachable(
        mock_http_client,
        IMAGE_URL,
        max_attempts=3,
        retry_delay_seconds=0.5,
    )

    assert result is False
    assert mock_http_client.head.await_count == 3
    assert no_sleep.await_count == 2
    no_sleep.assert_awaited_with(0.5)


@pytest.mark.asyncio
async def test_verify_image_urls_names_first_unreachable_url(mock_http_client, no_sleep) -> None:
    broken = "https://cdn.example/uploads/broken.jpg"

    async def _head_by_url(url: str, **_kwargs) -> httpx.Response:
        return _head(200 if url == IMAGE_URL else 404)

    mock_http_client.head.side_effect = _head_by_url

    with pytest.raises(ImageUnreachableError) as exc_info:
        await verify_image_urls(mock_http_client, [IMAGE_URL, broken], max_attempts=2)

    assert exc_info.value.url == broken
    assert str(exc_info.value) == f"Image is not accessible: {broken}"


@pytest.mark.asyncio
async def test_image_check_retries_protocol_errors(mock_http_client, no_sleep) -> None:
    mock_http_client.head.side_effect = [
        httpx.RemoteProtocolError("server disconnected"),
        httpx.ProxyError("proxy refused"),
        _head(200),
    ]

    assert await is_image_reachable(mock_http_client, IMAGE_URL, max_attempts=3) is True
    assert mock_http_client.head.await_count == 3


@pytest.mark.asyncio
async def test_image_check_gives_up_on_remote_protocol_errors(mock_http_client, no_sleep) -> None:
    mock_http_client.head.side_effect = httpx.RemoteProtocolError("server disconnected")

    with pytest.raises(ImageUnreachableError):
        await verify_image_urls(mock_http_client, [IMAGE_URL], max_attempts=2)

    assert mock_http_client.head.await_count == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        httpx.UnsupportedProtocol("Request URL has an unsupported protocol 'ftp://'."),
        httpx.InvalidURL("Invalid non-printable ASCII character in URL"),
    ],
)
async def test_image_check_rejects_malformed_url_without_retrying(
    mock_http_client, no_sleep, error
) -> None:
    mock_http_client.head.side_effect = error

    assert await is_image_reachable(mock_http_client, IMAGE_URL, max_attempts=5) is False
    mock_http_client.head.assert_awaited_once()
    no_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_image_check_rejects_unsupported_scheme_with_real_client(no_sleep) -> None:
    url = "ftp://cdn.example/uploads/a.jpg"

    async with httpx.AsyncClient() as client:
        with pytest.raises(ImageUnreachableError) as exc_info:
            await verify_image_urls(client, [url], max_attempts=3)

    assert exc_info.value.url == url
    no_sleep.assert_not_awaited()
