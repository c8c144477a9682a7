"""Endpoints for recording completed chores."""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from chorecoins.database import get_session
from chorecoins.models import ActivityRecord
from chorecoins.periods import HistoryPeriod, local_now, to_local
from chorecoins.schemas import ActivityCreate, ActivityRead, ActivityUpdate
from chorecoins.crud import (
    create_activity,
    get_activity,
    get_activities_by_child,
    get_activities_by_date_range,
    get_child,
    get_task,
    save_activity,
    delete_activity,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/activities", tags=["activities"])


@router.post("/", response_model=ActivityRead)
async def record_activity(data: ActivityCreate, db: AsyncSession = Depends(get_session)):
    if not await get_child(db, data.child_id):
        raise HTTPException(status_code=404, detail="Child not found")
    if not await get_task(db, data.task_id):
        raise HTTPException(status_code=404, detail="Task not found")
    record = ActivityRecord(
        child_id=data.child_id,
        task_id=data.task_id,
        recorded_at=to_local(data.recorded_at) if data.recorded_at else local_now(),
    )
    new_record = await create_activity(db, record)
    logger.info("Child %s completed task %s", data.child_id, data.task_id)
    return new_record


@router.get("/child/{child_id}", response_model=List[ActivityRead])
async def list_activities(
    child_id: int,
    period: Optional[HistoryPeriod] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    db: AsyncSession = Depends(get_session),
):
    """A child's completed chores, newest first.

    ``period`` selects a preset window ending now and takes precedence over
    an explicit ``start``/``end``. Either bound may be left open.
    """
    if period is not None:
        start, end = period.date_range(local_now())
    if start is None and end is None:
        return await get_activities_by_child(db, child_id)
    start = to_local(start) if start else datetime.min
    end = to_local(end) if end else datetime.max
    if start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")
    return await get_activities_by_date_range(db, start, end, child_id=child_id)


@router.put("/{record_id}", response_model=ActivityRead)
async def update_activity(
    record_id: int, data: ActivityUpdate, db: AsyncSession = Depends(get_session)
):
    """Change the task or time of a recorded chore."""
    record = await get_activity(db, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Activity not found")
    if data.task_id is not None:
        if not await get_task(db, data.task_id):
            raise HTTPException(status_code=404, detail="Task not found")
        record.task_id = data.task_id
    if data.recorded_at is not None:
        record.recorded_at = to_local(data.recorded_at)
    updated = await save_activity(db, record)
    logger.info("Activity %s updated", record_id)
    return updated


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_activity_route(record_id: int, db: AsyncSession = Depends(get_session)):
    record = await get_activity(db, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Activity not found")
    await delete_activity(db, record)
    logger.info("Activity %s deleted", record_id)
    return None
