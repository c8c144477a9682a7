"""Calendar helpers for bucketing timestamps into days and months.

Timestamps are stored as naive local datetimes. Aware datetimes handed to
these helpers are first converted into the configured application zone, so
a chore recorded at 23:30 local time always lands on the local day.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import NamedTuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from chorecoins.config import APP_TIMEZONE

logger = logging.getLogger(__name__)

try:
    DEFAULT_TZ: tzinfo = ZoneInfo(APP_TIMEZONE)
except (ZoneInfoNotFoundError, ValueError):
    logger.warning("Unknown APP_TIMEZONE %r, falling back to UTC", APP_TIMEZONE)
    DEFAULT_TZ = ZoneInfo("UTC")


class MonthKey(NamedTuple):
    """A calendar month, ordered chronologically."""

    year: int
    month: int

    @classmethod
    def of(cls, moment: datetime, tz: tzinfo | None = None) -> "MonthKey":
        day = local_day(moment, tz)
        return cls(day.year, day.month)


def to_local(moment: datetime, tz: tzinfo | None = None) -> datetime:
    """Return ``moment`` as a naive datetime in the application zone."""

    if moment.tzinfo is None:
        return moment
    return moment.astimezone(tz or DEFAULT_TZ).replace(tzinfo=None)


def local_day(moment: datetime, tz: tzinfo | None = None) -> date:
    return to_local(moment, tz).date()


def local_now(tz: tzinfo | None = None) -> datetime:
    """Current wall clock time in the application zone, without tzinfo."""

    return datetime.now(tz or DEFAULT_TZ).replace(tzinfo=None)


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """Return the half-open ``[start, end)`` interval covering a month."""

    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return start, end


class HistoryPeriod(str, Enum):
    """Preset windows for browsing a child's activity history."""

    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"
    LAST_3_MONTHS = "last_3_months"
    ALL = "all"

    def date_range(self, now: datetime) -> tuple[datetime | None, datetime]:
        """Return ``(start, now)``; ``start`` is ``None`` for the whole history.

        Weeks start on Monday.
        """
        day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        if self is HistoryPeriod.THIS_WEEK:
            return day - timedelta(days=day.weekday()), now
        if self is HistoryPeriod.THIS_MONTH:
            return day.replace(day=1), now
        if self is HistoryPeriod.LAST_3_MONTHS:
            months = now.year * 12 + now.month - 1 - 3
            return datetime(months // 12, months % 12 + 1, 1), now
        return None, now
