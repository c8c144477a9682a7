"""Schemas for completed chore activity."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ActivityCreate(BaseModel):
    child_id: int
    task_id: int
    recorded_at: Optional[datetime] = None


class ActivityRead(BaseModel):
    id: int
    child_id: int
    task_id: int
    recorded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ActivityUpdate(BaseModel):
    task_id: Optional[int] = None
    recorded_at: Optional[datetime] = None
