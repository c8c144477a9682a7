"""Tracks when a new calendar month has started.

Purely advisory: callers use the signal to refresh cached monthly figures.
Activity and settlement history is never touched.
"""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo

from chorecoins.periods import MonthKey, to_local
from chorecoins.sources import RolloverState

logger = logging.getLogger(__name__)


class MonthRolloverTracker:
    def __init__(self, state: RolloverState, tz: tzinfo | None = None) -> None:
        self.state = state
        self.tz = tz

    async def observe(self, now: datetime) -> bool:
        """Record ``now`` and report whether it falls in a later month.

        The very first observation only stores the timestamp.
        """
        now = to_local(now, self.tz)
        last = await self.state.load()
        if last is None:
            await self.state.store(now)
            return False
        if MonthKey.of(now) > MonthKey.of(last):
            await self.state.store(now)
            logger.info("Month rolled over to %s-%02d", now.year, now.month)
            return True
        return False
