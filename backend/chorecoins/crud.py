"""Asynchronous CRUD helpers for the application's data models.

Each function in this module encapsulates a specific database operation
using SQLModel and SQLAlchemy.  Centralizing the logic keeps route
handlers light and makes behavior easier to test.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select, delete

from chorecoins.models import Child, RewardTask, ActivityRecord, Settings
from chorecoins.periods import month_bounds

logger = logging.getLogger(__name__)

DEFAULT_TASKS = [
    "Look after a younger sibling",
    "Run the bath",
    "Set the table",
    "Clear the dishes",
    "Tidy up toys",
    "Line up shoes at the door",
    "Help take out the trash",
    "Carry the laundry",
    "Wipe the table",
    "Clean own room",
]


# --- Settings helpers -----------------------------------------------------


async def get_settings(db: AsyncSession) -> Settings:
    """Fetch the singleton settings record, creating it if necessary."""
    result = await db.execute(select(Settings).where(Settings.id == 1))
    settings = result.scalar_one_or_none()
    if not settings:
        settings = Settings()
        db.add(settings)
        await db.commit()
        await db.refresh(settings)
    return settings


async def save_settings(db: AsyncSession, settings: Settings) -> Settings:
    """Persist settings changes and return the refreshed object."""

    db.add(settings)
    await db.commit()
    await db.refresh(settings)
    return settings


# --- Child helpers --------------------------------------------------------


async def create_child(db: AsyncSession, child: Child) -> Child:
    """Persist a new child record."""

    db.add(child)
    await db.commit()
    await db.refresh(child)
    return child


async def get_child(db: AsyncSession, child_id: int) -> Child | None:
    """Fetch a child by id or ``None`` if not found."""
    result = await db.execute(select(Child).where(Child.id == child_id))
    return result.scalar_one_or_none()


async def get_all_children(db: AsyncSession) -> list[Child]:
    """Return all children ordered by id."""

    result = await db.execute(select(Child).order_by(Child.id))
    return result.scalars().all()


async def save_child(db: AsyncSession, child: Child) -> Child:
    """Persist changes to a child record."""

    db.add(child)
    await db.commit()
    await db.refresh(child)
    return child


async def delete_child(db: AsyncSession, child: Child) -> None:
    """Remove a child together with their activity history."""
    await db.execute(
        delete(ActivityRecord).where(ActivityRecord.child_id == child.id)
    )
    await db.delete(child)
    await db.commit()


# --- Reward task helpers --------------------------------------------------


async def ensure_default_tasks(db: AsyncSession) -> None:
    """Seed the starter chore list when no tasks exist yet."""

    result = await db.execute(select(RewardTask.id).limit(1))
    if result.first() is not None:
        return
    for name in DEFAULT_TASKS:
        db.add(RewardTask(name=name))
    await db.commit()


async def create_task(db: AsyncSession, task: RewardTask) -> RewardTask:
    db.add(task)
    await db.commit()
    await db.refresh(task)
    return task


async def get_task(db: AsyncSession, task_id: int) -> RewardTask | None:
    result = await db.execute(select(RewardTask).where(RewardTask.id == task_id))
    return result.scalar_one_or_none()


async def get_all_tasks(db: AsyncSession) -> list[RewardTask]:
    """Return every task, active or not, ordered by id."""

    result = await db.execute(select(RewardTask).order_by(RewardTask.id))
    return result.scalars().all()


async def get_active_tasks(db: AsyncSession) -> list[RewardTask]:
    result = await db.execute(
        select(RewardTask)
        .where(RewardTask.is_active == True)  # noqa: E712
        .order_by(RewardTask.id)
    )
    return result.scalars().all()


async def save_task(db: AsyncSession, task: RewardTask) -> RewardTask:
    db.add(task)
    await db.commit()
    await db.refresh(task)
    return task


async def delete_task(db: AsyncSession, task: RewardTask) -> None:
    """Remove a task definition; recorded activity keeps its task id."""

    await db.delete(task)
    await db.commit()


# --- Activity helpers -----------------------------------------------------


async def create_activity(db: AsyncSession, record: ActivityRecord) -> ActivityRecord:
    """Persist a completed chore."""
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return record


async def get_activity(db: AsyncSession, record_id: int) -> ActivityRecord | None:
    result = await db.execute(
        select(ActivityRecord).where(ActivityRecord.id == record_id)
    )
    return result.scalar_one_or_none()


async def save_activity(db: AsyncSession, record: ActivityRecord) -> ActivityRecord:
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return record


async def delete_activity(db: AsyncSession, record: ActivityRecord) -> None:
    await db.delete(record)
    await db.commit()


async def get_activities_by_child(
    db: AsyncSession, child_id: int
) -> list[ActivityRecord]:
    """Return all activity for a child, newest first."""

    result = await db.execute(
        select(ActivityRecord)
        .where(ActivityRecord.child_id == child_id)
        .order_by(ActivityRecord.recorded_at.desc())
    )
    return result.scalars().all()


async def get_activities_by_child_in_month(
    db: AsyncSession, child_id: int, year: int, month: int
) -> list[ActivityRecord]:
    """Return a child's activity recorded during the given calendar month."""

    try:
        start, end = month_bounds(year, month)
    except ValueError:
        logger.warning("No calendar bounds for %s-%02d, treating it as empty", year, month)
        return []
    result = await db.execute(
        select(ActivityRecord)
        .where(
            ActivityRecord.child_id == child_id,
            ActivityRecord.recorded_at >= start,
            ActivityRecord.recorded_at < end,
        )
        .order_by(ActivityRecord.recorded_at.desc())
    )
    return result.scalars().all()


async def get_activities_by_date_range(
    db: AsyncSession,
    start: datetime,
    end: datetime,
    child_id: int | None = None,
) -> list[ActivityRecord]:
    """Return activity between ``start`` and ``end`` inclusive, newest first.

    Covers every child unless ``child_id`` is given.
    """

    query = select(ActivityRecord).where(
        ActivityRecord.recorded_at >= start,
        ActivityRecord.recorded_at <= end,
    )
    if child_id is not None:
        query = query.where(ActivityRecord.child_id == child_id)
    result = await db.execute(query.order_by(ActivityRecord.recorded_at.desc()))
    return result.scalars().all()
