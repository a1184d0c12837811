"""
Subscription window helpers.
"""

from __future__ import annotations

import calendar
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trendboard.storage.models import User


def add_months(moment: datetime, months: int) -> datetime:
    """Shift `moment` by whole calendar months, clamping the day to month end."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def is_subscribed(user: User | None, *, now: datetime | None = None) -> bool:
    """Return True when the user has an active subscription (admins always do)."""
    if user is None:
        return False
    if user.is_admin:
        return True
    if user.subscribed_until is None:
        return False
    current = now or datetime.now(tz=UTC)
    return user.subscribed_until > current


def extend_subscription(user: User, months: int, *, now: datetime | None = None) -> datetime:
    """
    Extend a subscription by `months` and return the new end.

    The extension counts from the current end while it is still in the
    future, otherwise from `now`.
    """
    if months < 1:
        msg = "months must be at least 1"
        raise ValueError(msg)
    current = now or datetime.now(tz=UTC)
    start = user.subscribed_until
    if start is None or start <= current:
        start = current
    user.subscribed_until = add_months(start, months)
    return user.subscribed_until
