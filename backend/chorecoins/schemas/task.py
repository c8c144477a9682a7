"""Schemas for reward task (chore) definitions."""

from pydantic import BaseModel, ConfigDict, Field


class RewardTaskBase(BaseModel):
    name: str
    is_active: bool = True
    coin_rate: int = Field(default=10, gt=0)


class RewardTaskCreate(RewardTaskBase):
    pass


class RewardTaskRead(RewardTaskBase):
    id: int

    model_config = ConfigDict(from_attributes=True)


class RewardTaskUpdate(BaseModel):
    name: str | None = None
    is_active: bool | None = None
    coin_rate: int | None = Field(default=None, gt=0)
