"""Coin earnings and streak calculations.

Both functions are pure: they only look at the snapshots they are given,
so they are safe to call from request handlers and the scheduler alike.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, Protocol

from chorecoins.models import DEFAULT_COIN_RATE
from chorecoins.periods import local_day

logger = logging.getLogger(__name__)


class HasTask(Protocol):
    task_id: int
    recorded_at: datetime


class HasRate(Protocol):
    id: int
    coin_rate: int


def rate_table(tasks: Iterable[HasRate]) -> dict[int, int]:
    """Map task ids to the coins paid per completion."""

    return {task.id: task.coin_rate for task in tasks}


def earned(records: Iterable[HasTask], tasks: Iterable[HasRate]) -> int:
    """Total coins earned by ``records`` at the current task rates.

    Rates are looked up at call time, so editing a task's rate also changes
    what older records are worth. Records pointing at unknown tasks are
    worth ``DEFAULT_COIN_RATE``.
    """

    rates = rate_table(tasks)
    total = 0
    for record in records:
        rate = rates.get(record.task_id)
        if rate is None:
            logger.debug(
                "Task %s missing from rate table, using default rate %s",
                record.task_id,
                DEFAULT_COIN_RATE,
            )
            rate = DEFAULT_COIN_RATE
        total += rate
    return total


def streak(
    records: Iterable[HasTask],
    today: date | datetime,
    tz: tzinfo | None = None,
) -> int:
    """Number of consecutive days, ending on ``today``, with at least one record."""

    if isinstance(today, datetime):
        today = local_day(today, tz)
    days = sorted({local_day(record.recorded_at, tz) for record in records}, reverse=True)

    count = 0
    expected = today
    for day in days:
        if day != expected:
            break
        count += 1
        expected = day - timedelta(days=1)
    return count
