"""Contracts for the records the ledger engine reads, plus database backed
implementations.

The engine never talks to the database directly; the scheduler and the
rollover tracker are handed objects satisfying these protocols. Each
database implementation opens a short lived session per call so it can be
shared safely between concurrent requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chorecoins import crud
from chorecoins.models import ActivityRecord, Child, RewardTask
from chorecoins.periods import MonthKey, local_now


@dataclass(frozen=True)
class PaymentSettings:
    payment_day_of_month: int = 1
    auto_settlement_enabled: bool = True


class ActivitySource(Protocol):
    async def find_by_child(self, child_id: int) -> Sequence[ActivityRecord]: ...

    async def find_by_child_in_current_month(
        self, child_id: int, now: datetime | None = None
    ) -> Sequence[ActivityRecord]: ...

    async def find_by_date_range(
        self, start: datetime, end: datetime, child_id: int | None = None
    ) -> Sequence[ActivityRecord]: ...


class RewardTaskSource(Protocol):
    async def find_all(self) -> Sequence[RewardTask]: ...


class ChildSource(Protocol):
    async def find_all(self) -> Sequence[Child]: ...


class PaymentSettingsSource(Protocol):
    async def load(self) -> PaymentSettings: ...


class RolloverState(Protocol):
    async def load(self) -> datetime | None: ...

    async def store(self, moment: datetime) -> None: ...


class _SessionBacked:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory


class DatabaseActivitySource(_SessionBacked):
    async def find_by_child(self, child_id: int) -> Sequence[ActivityRecord]:
        async with self._session_factory() as db:
            return await crud.get_activities_by_child(db, child_id)

    async def find_by_child_in_current_month(
        self, child_id: int, now: datetime | None = None
    ) -> Sequence[ActivityRecord]:
        key = MonthKey.of(now or local_now())
        async with self._session_factory() as db:
            return await crud.get_activities_by_child_in_month(
                db, child_id, key.year, key.month
            )

    async def find_by_date_range(
        self, start: datetime, end: datetime, child_id: int | None = None
    ) -> Sequence[ActivityRecord]:
        async with self._session_factory() as db:
            return await crud.get_activities_by_date_range(
                db, start, end, child_id=child_id
            )


class DatabaseRewardTaskSource(_SessionBacked):
    async def find_all(self) -> Sequence[RewardTask]:
        async with self._session_factory() as db:
            return await crud.get_all_tasks(db)


class DatabaseChildSource(_SessionBacked):
    async def find_all(self) -> Sequence[Child]:
        async with self._session_factory() as db:
            return await crud.get_all_children(db)


class DatabasePaymentSettingsSource(_SessionBacked):
    async def load(self) -> PaymentSettings:
        async with self._session_factory() as db:
            settings = await crud.get_settings(db)
            return PaymentSettings(
                payment_day_of_month=settings.payment_day_of_month,
                auto_settlement_enabled=settings.auto_settlement_enabled,
            )


class DatabaseRolloverState(_SessionBacked):
    """Keeps the last acknowledged month boundary on the settings row."""

    async def load(self) -> datetime | None:
        async with self._session_factory() as db:
            settings = await crud.get_settings(db)
            return settings.last_month_boundary_at

    async def store(self, moment: datetime) -> None:
        async with self._session_factory() as db:
            settings = await crud.get_settings(db)
            settings.last_month_boundary_at = moment
            await crud.save_settings(db, settings)
