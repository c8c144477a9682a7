"""Endpoints for paying allowance and reconciling what is still owed."""

import logging
import uuid
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from chorecoins.arrears import total_outstanding
from chorecoins.crud import (
    get_activities_by_child_in_month,
    get_all_children,
    get_all_tasks,
    get_child,
)
from chorecoins.database import get_session
from chorecoins.dependencies import (
    get_rollover_tracker,
    get_scheduler,
    get_settlement_store,
)
from chorecoins.earnings import earned
from chorecoins.periods import MonthKey, local_now, to_local
from chorecoins.rollover import MonthRolloverTracker
from chorecoins.routes.children import child_arrears
from chorecoins.scheduler import AutoSettlementScheduler
from chorecoins.schemas import (
    ArrearsResponse,
    AutoSettlementResponse,
    PaymentCreate,
    SettlementRead,
    SettlementResultRead,
    UnpaidPeriodRead,
)
from chorecoins.settlement_store import MANUAL_SETTLEMENT_NOTE, SettlementStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.get("/", response_model=List[SettlementRead])
async def list_settlements_paid_between(
    start: datetime = Query(...),
    end: datetime = Query(...),
    store: SettlementStore = Depends(get_settlement_store),
):
    """Settlements paid between ``start`` and ``end`` inclusive, newest first."""
    start, end = to_local(start), to_local(end)
    if start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")
    return await store.find_by_date_range(start, end)


@router.get("/child/{child_id}", response_model=List[SettlementRead])
async def list_settlements(
    child_id: int, store: SettlementStore = Depends(get_settlement_store)
):
    """All settlements for a child, most recent payment first."""
    return await store.find_by_child(child_id)


@router.post("/child/{child_id}", response_model=SettlementRead)
async def pay_allowance(
    child_id: int,
    data: PaymentCreate,
    db: AsyncSession = Depends(get_session),
    store: SettlementStore = Depends(get_settlement_store),
):
    """Pay allowance for a month (the current one unless given).

    Without an explicit amount the payment covers whatever the month's
    earnings exceed what has already been paid. Paying a month that already
    has a settlement tops it up.
    """
    if not await get_child(db, child_id):
        raise HTTPException(status_code=404, detail="Child not found")
    now = local_now()
    current = MonthKey.of(now)
    key = MonthKey(
        current.year if data.year is None else data.year,
        current.month if data.month is None else data.month,
    )

    amount = data.amount
    if amount is None:
        records = await get_activities_by_child_in_month(db, child_id, key.year, key.month)
        expected = earned(records, await get_all_tasks(db))
        existing = await store.find_by_child_and_month(child_id, key.month, key.year)
        amount = expected - (existing.amount if existing else 0)
        if amount <= 0:
            raise HTTPException(status_code=400, detail="Nothing to pay")

    note = data.note
    if note is None and key != current:
        note = f"Allowance for {key.year}-{key.month:02d}"
    settlement = await store.add_payment(
        child_id,
        key.month,
        key.year,
        amount,
        paid_at=now,
        note=note if note is not None else MANUAL_SETTLEMENT_NOTE,
    )
    logger.info(
        "Paid %s coins to child %s for %s-%02d", amount, child_id, key.year, key.month
    )
    return settlement


@router.delete("/{settlement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_settlement(
    settlement_id: uuid.UUID, store: SettlementStore = Depends(get_settlement_store)
):
    if not await store.delete(settlement_id):
        raise HTTPException(status_code=404, detail="Settlement not found")
    return None


@router.post("/auto", response_model=AutoSettlementResponse)
async def run_auto_settlement(
    scheduler: AutoSettlementScheduler = Depends(get_scheduler),
    tracker: MonthRolloverTracker = Depends(get_rollover_tracker),
):
    """Refresh hook: note a month change and settle if today is payment day.

    Safe to call as often as the client likes.
    """
    now = local_now()
    rolled_over = await tracker.observe(now)
    results = await scheduler.run(now)
    return AutoSettlementResponse(
        rolled_over=rolled_over,
        results=[SettlementResultRead.model_validate(r) for r in results],
    )


@router.get("/arrears", response_model=ArrearsResponse)
async def read_arrears(
    db: AsyncSession = Depends(get_session),
    store: SettlementStore = Depends(get_settlement_store),
):
    """Unpaid past months across every child."""
    now = local_now()
    periods = []
    for child in await get_all_children(db):
        periods.extend(await child_arrears(db, store, child.id, now))
    return ArrearsResponse(
        total_outstanding=total_outstanding(periods),
        periods=[UnpaidPeriodRead.model_validate(p) for p in periods],
    )


@router.get("/{settlement_id}", response_model=SettlementRead)
async def read_settlement(
    settlement_id: uuid.UUID, store: SettlementStore = Depends(get_settlement_store)
):
    settlement = await store.find_by_id(settlement_id)
    if settlement is None:
        raise HTTPException(status_code=404, detail="Settlement not found")
    return settlement
