"""Automatic monthly settlement on the configured payment day.

The scheduler keeps no state of its own and does no polling; callers invoke
``run`` whenever convenient (on startup, on every dashboard refresh) and
repeated calls on the same day settle each child at most once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo

from chorecoins.earnings import earned, streak
from chorecoins.models import Child, Settlement
from chorecoins.periods import MonthKey, to_local
from chorecoins.settlement_store import SettlementStore
from chorecoins.sources import (
    ActivitySource,
    ChildSource,
    PaymentSettingsSource,
    RewardTaskSource,
)

logger = logging.getLogger(__name__)

AUTO_SETTLEMENT_NOTE = "Automatic payment"


@dataclass(frozen=True)
class SettlementResult:
    """Summary of one automatic settlement, for display to caregivers."""

    child_id: int
    child_name: str
    record_count: int
    amount: int
    streak_days: int
    month: int
    year: int


class AutoSettlementScheduler:
    def __init__(
        self,
        children: ChildSource,
        activities: ActivitySource,
        tasks: RewardTaskSource,
        settings: PaymentSettingsSource,
        store: SettlementStore,
        tz: tzinfo | None = None,
    ) -> None:
        self.children = children
        self.activities = activities
        self.tasks = tasks
        self.settings = settings
        self.store = store
        self.tz = tz

    async def is_due(self, now: datetime) -> bool:
        """True when auto settlement is enabled and today is the payment day.

        A payment day past the end of the month (e.g. 31 in April) never
        matches.
        """
        settings = await self.settings.load()
        if not settings.auto_settlement_enabled:
            return False
        return to_local(now, self.tz).day == settings.payment_day_of_month

    async def run(self, now: datetime) -> list[SettlementResult]:
        """Settle the current month for every child that earned coins.

        A failure for one child is logged and does not stop the others.
        """
        if not await self.is_due(now):
            return []

        now = to_local(now, self.tz)
        key = MonthKey.of(now)
        children = await self.children.find_all()
        tasks = list(await self.tasks.find_all())

        results = []
        for child in children:
            try:
                result = await self._settle_child(child, tasks, now, key)
            except Exception:
                logger.exception(
                    "Automatic settlement failed for child %s", child.id
                )
                continue
            if result is not None:
                results.append(result)

        if results:
            logger.info(
                "Automatic settlement paid %d children for %s-%02d",
                len(results),
                key.year,
                key.month,
            )
        return results

    async def _settle_child(
        self, child: Child, tasks: list, now: datetime, key: MonthKey
    ) -> SettlementResult | None:
        existing = await self.store.find_by_child_and_month(child.id, key.month, key.year)
        if existing is not None:
            return None

        records = await self.activities.find_by_child_in_current_month(child.id, now)
        if not records:
            return None

        amount = earned(records, tasks)
        streak_days = streak(records, now)
        _, created = await self.store.create_if_absent(
            Settlement(
                child_id=child.id,
                amount=amount,
                month=key.month,
                year=key.year,
                paid_at=now,
                note=AUTO_SETTLEMENT_NOTE,
            )
        )
        if not created:
            # Settled manually between the check above and the write.
            return None
        return SettlementResult(
            child_id=child.id,
            child_name=child.name,
            record_count=len(records),
            amount=amount,
            streak_days=streak_days,
            month=key.month,
            year=key.year,
        )
