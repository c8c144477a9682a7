"""Routes for managing children and viewing their coin ledger."""

import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from chorecoins.arrears import (
    UnpaidPeriod,
    detect_unpaid_periods,
    summarize_months,
    total_outstanding,
)
from chorecoins.crud import (
    create_child,
    delete_child,
    get_activities_by_child,
    get_activities_by_child_in_month,
    get_all_children,
    get_all_tasks,
    get_child,
    save_child,
)
from chorecoins.database import get_session
from chorecoins.dependencies import get_settlement_store
from chorecoins.earnings import earned, streak
from chorecoins.models import Child
from chorecoins.periods import MonthKey, local_now
from chorecoins.schemas import (
    ArrearsResponse,
    ChildCreate,
    ChildRead,
    ChildSummary,
    ChildUpdate,
    MonthlySummaryRead,
    UnpaidPeriodRead,
)
from chorecoins.settlement_store import SettlementStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/children", tags=["children"])


async def _get_child_or_404(db: AsyncSession, child_id: int) -> Child:
    child = await get_child(db, child_id)
    if not child:
        raise HTTPException(status_code=404, detail="Child not found")
    return child


async def child_arrears(
    db: AsyncSession, store: SettlementStore, child_id: int, now: datetime
) -> list[UnpaidPeriod]:
    """Load a child's full history and reconcile it against settlements."""

    records = await get_activities_by_child(db, child_id)
    tasks = await get_all_tasks(db)
    settlements = await store.find_by_child(child_id)
    return detect_unpaid_periods(child_id, records, settlements, tasks, now)


@router.post("/", response_model=ChildRead)
async def add_child(data: ChildCreate, db: AsyncSession = Depends(get_session)):
    child = await create_child(db, Child(name=data.name, theme_color=data.theme_color))
    logger.info("Child %s created", child.id)
    return child


@router.get("/", response_model=List[ChildRead])
async def list_children(db: AsyncSession = Depends(get_session)):
    return await get_all_children(db)


@router.get("/{child_id}", response_model=ChildRead)
async def read_child(child_id: int, db: AsyncSession = Depends(get_session)):
    return await _get_child_or_404(db, child_id)


@router.put("/{child_id}", response_model=ChildRead)
async def update_child(
    child_id: int, data: ChildUpdate, db: AsyncSession = Depends(get_session)
):
    child = await _get_child_or_404(db, child_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(child, field, value)
    updated = await save_child(db, child)
    logger.info("Child %s updated", child_id)
    return updated


@router.delete("/{child_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_child(child_id: int, db: AsyncSession = Depends(get_session)):
    """Delete a child and their activity; settlements are kept as history."""
    child = await _get_child_or_404(db, child_id)
    await delete_child(db, child)
    logger.info("Child %s deleted", child_id)
    return None


@router.get("/{child_id}/summary", response_model=ChildSummary)
async def child_summary(
    child_id: int,
    db: AsyncSession = Depends(get_session),
    store: SettlementStore = Depends(get_settlement_store),
):
    """Coins earned this month, the current streak and payment status."""
    await _get_child_or_404(db, child_id)
    now = local_now()
    key = MonthKey.of(now)
    records = await get_activities_by_child_in_month(db, child_id, key.year, key.month)
    tasks = await get_all_tasks(db)
    settlement = await store.find_by_child_and_month(child_id, key.month, key.year)

    amount = earned(records, tasks)
    settled = settlement.amount if settlement else 0
    return ChildSummary(
        child_id=child_id,
        month=key.month,
        year=key.year,
        record_count=len(records),
        earned=amount,
        streak_days=streak(records, now),
        is_paid=settlement is not None,
        settled_amount=settled,
        amount_due=max(amount - settled, 0),
    )


@router.get("/{child_id}/history", response_model=List[MonthlySummaryRead])
async def child_history(
    child_id: int,
    db: AsyncSession = Depends(get_session),
    store: SettlementStore = Depends(get_settlement_store),
):
    """Month by month earnings and payments, newest first."""
    await _get_child_or_404(db, child_id)
    records = await get_activities_by_child(db, child_id)
    tasks = await get_all_tasks(db)
    settlements = await store.find_by_child(child_id)
    summaries = summarize_months(records, settlements, tasks)
    return [MonthlySummaryRead.model_validate(s) for s in summaries]


@router.get("/{child_id}/arrears", response_model=ArrearsResponse)
async def read_child_arrears(
    child_id: int,
    db: AsyncSession = Depends(get_session),
    store: SettlementStore = Depends(get_settlement_store),
):
    await _get_child_or_404(db, child_id)
    periods = await child_arrears(db, store, child_id, local_now())
    return ArrearsResponse(
        total_outstanding=total_outstanding(periods),
        periods=[UnpaidPeriodRead.model_validate(p) for p in periods],
    )
