"""FastAPI dependencies for the settlement store and the scheduler.

The store is created once at startup and kept on ``app.state``; tests
override these dependencies with their own instances.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chorecoins.database import async_session
from chorecoins.rollover import MonthRolloverTracker
from chorecoins.scheduler import AutoSettlementScheduler
from chorecoins.settlement_store import SettlementStore
from chorecoins.sources import (
    DatabaseActivitySource,
    DatabaseChildSource,
    DatabasePaymentSettingsSource,
    DatabaseRewardTaskSource,
    DatabaseRolloverState,
)


def get_settlement_store(request: Request) -> SettlementStore:
    return request.app.state.settlement_store


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_session


def get_scheduler(
    store: SettlementStore = Depends(get_settlement_store),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AutoSettlementScheduler:
    return AutoSettlementScheduler(
        children=DatabaseChildSource(session_factory),
        activities=DatabaseActivitySource(session_factory),
        tasks=DatabaseRewardTaskSource(session_factory),
        settings=DatabasePaymentSettingsSource(session_factory),
        store=store,
    )


def get_rollover_tracker(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> MonthRolloverTracker:
    return MonthRolloverTracker(DatabaseRolloverState(session_factory))
