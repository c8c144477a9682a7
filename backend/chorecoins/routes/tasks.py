"""Endpoints for reward task (chore) definitions."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from chorecoins.database import get_session
from chorecoins.models import RewardTask
from chorecoins.schemas import RewardTaskCreate, RewardTaskRead, RewardTaskUpdate
from chorecoins.crud import (
    create_task,
    get_task,
    get_all_tasks,
    get_active_tasks,
    save_task,
    delete_task,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("/", response_model=RewardTaskRead)
async def add_task(data: RewardTaskCreate, db: AsyncSession = Depends(get_session)):
    task = await create_task(db, RewardTask(**data.model_dump()))
    logger.info("Task %s created", task.id)
    return task


@router.get("/", response_model=List[RewardTaskRead])
async def list_tasks(db: AsyncSession = Depends(get_session)):
    return await get_all_tasks(db)


@router.get("/active", response_model=List[RewardTaskRead])
async def list_active_tasks(db: AsyncSession = Depends(get_session)):
    return await get_active_tasks(db)


@router.put("/{task_id}", response_model=RewardTaskRead)
async def update_task(
    task_id: int, data: RewardTaskUpdate, db: AsyncSession = Depends(get_session)
):
    """Edit a task. A new coin rate also applies to previously recorded chores."""
    task = await get_task(db, task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(task, field, value)
    updated = await save_task(db, task)
    logger.info("Task %s updated", task_id)
    return updated


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task_route(task_id: int, db: AsyncSession = Depends(get_session)):
    task = await get_task(db, task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    await delete_task(db, task)
    logger.info("Task %s deleted", task_id)
    return None
