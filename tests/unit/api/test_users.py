from __future__ import annotations

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from trendboard.api.routes.users import (
    SubscriptionExtendRequest,
    UserSummary,
    extend_user_subscription,
    list_users,
)

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
async def test_list_users_never_exposes_tokens(mock_db_session, admin_user) -> None:
    mock_db_session.scalars.return_value = SimpleNamespace(all=lambda: [admin_user])

    result = await list_users(session=mock_db_session, _admin=admin_user)

    payload = result[0].model_dump(by_alias=True)
    assert payload["email"] == "admin@trendboard.test"
    assert payload["isSubscribed"] is True
    assert not any("token" in key.lower() for key in payload)
    assert "sheets_access_token" not in UserSummary.model_fields


@pytest.mark.asyncio
async def test_extend_subscription_from_now_for_lapsed_user(
    mock_db_session,
    admin_user,
    regular_user,
) -> None:
    mock_db_session.get.return_value = regular_user
    before = datetime.now(tz=UTC)

    result = await extend_user_subscription(
        regular_user.id,
        SubscriptionExtendRequest(months=1),
        session=mock_db_session,
        admin=admin_user,
    )

    assert result.is_subscribed is True
    assert regular_user.subscribed_until is not None
    assert regular_user.subscribed_until > before + timedelta(days=27)
    mock_db_session.flush.assert_awaited_once()


@pytest.mark.asyncio
async def test_extend_subscription_for_unknown_user_returns_404(mock_db_session, admin_user) -> None:
    mock_db_session.get.return_value = None

    with pytest.raises(HTTPException) as exc_info:
        await extend_user_subscription(
            uuid4(),
            SubscriptionExtendRequest(months=3),
            session=mock_db_session,
            admin=admin_user,
        )

    assert exc_info.value.status_code == 404


def test_subscription_request_requires_positive_months() -> None:
    with pytest.raises(ValidationError):
        SubscriptionExtendRequest(months=0)
