from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from trendboard.core.config import Settings

pytestmark = pytest.mark.unit


def _write_secret(path: Path, value: str) -> str:
    path.write_text(value, encoding="utf-8")
    return str(path)


def test_settings_defaults_match_bulk_and_image_budgets() -> None:
    settings = Settings(_env_file=None)

    assert settings.BULK_TRANSACTION_TIMEOUT_SECONDS == 10.0
    assert settings.IMAGE_CHECK_MAX_ATTEMPTS == 10
    assert settings.IMAGE_CHECK_RETRY_DELAY_SECONDS == 1.0
    assert settings.SHEETS_VALUE_RANGE == "A:D"
    assert settings.FREE_TIER_ITEM_LIMIT == 3
    assert settings.AUTH_USER_HEADER == "X-User-Email"


def test_settings_derives_sync_url_after_file_load(tmp_path: Path) -> None:
    db_url_path = _write_secret(
        tmp_path / "database_url.txt",
        "postgresql://trendboard@postgres:5432/trendboard\n",
    )

    settings = Settings(
        _env_file=None,
        DATABASE_URL_FILE=db_url_path,
    )

    assert settings.DATABASE_URL == "postgresql+asyncpg://trendboard@postgres:5432/trendboard"
    assert settings.DATABASE_URL_SYNC == "postgresql://trendboard@postgres:5432/trendboard"


def test_settings_raises_for_empty_secret_file(tmp_path: Path) -> None:
    secret_path = _write_secret(tmp_path / "empty_secret.txt", "\n")

    with pytest.raises(ValidationError, match="Secret file"):
        Settings(
            _env_file=None,
            DATABASE_URL_FILE=secret_path,
        )


def test_settings_raises_for_missing_secret_file(tmp_path: Path) -> None:
    missing_path = tmp_path / "missing_secret.txt"

    with pytest.raises(ValidationError, match="Could not read secret file"):
        Settings(
            _env_file=None,
            DATABASE_URL_FILE=str(missing_path),
        )


def test_settings_parses_comma_separated_cors_origins() -> None:
    settings = Settings(
        _env_file=None,
        CORS_ORIGINS="https://a.example, https://b.example",
    )

    assert settings.CORS_ORIGINS == ["https://a.example", "https://b.example"]


def test_settings_rejects_non_positive_bulk_timeout() -> None:
    with pytest.raises(ValidationError, match="BULK_TRANSACTION_TIMEOUT_SECONDS"):
        Settings(
            _env_file=None,
            BULK_TRANSACTION_TIMEOUT_SECONDS=0,
        )


def test_effective_log_level_forced_to_debug_by_sql_echo_outside_production() -> None:
    dev = Settings(_env_file=None, SQL_ECHO=True, LOG_LEVEL="WARNING")
    prod = Settings(_env_file=None, SQL_ECHO=True, LOG_LEVEL="WARNING", ENVIRONMENT="production")

    assert dev.effective_log_level == "DEBUG"
    assert prod.effective_log_level == "WARNING"
