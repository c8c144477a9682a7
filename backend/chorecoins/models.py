"""Database models for children, chores and completed chore activity.

The models are defined with SQLModel (built on SQLAlchemy and Pydantic).
Settlements are plain (non table) models: they are kept by the snapshot
backed ``SettlementStore`` rather than in the database.
"""

import uuid
from typing import Optional, List
from datetime import datetime
from sqlmodel import SQLModel, Field, Relationship

from chorecoins.periods import local_now


DEFAULT_COIN_RATE = 10


class Child(SQLModel, table=True):
    """Child who earns coins by completing chores."""

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    theme_color: str = "#3B82F6"
    created_at: datetime = Field(default_factory=local_now)

    activities: List["ActivityRecord"] = Relationship(
        back_populates="child", sa_relationship_kwargs={"passive_deletes": True}
    )


class RewardTask(SQLModel, table=True):
    """Chore definition together with the coins paid per completion."""

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    is_active: bool = True
    coin_rate: int = DEFAULT_COIN_RATE


class ActivityRecord(SQLModel, table=True):
    """A single completed chore.

    ``task_id`` is intentionally not a foreign key: deleting a chore keeps
    its history, and earnings fall back to the default rate.
    """

    id: Optional[int] = Field(default=None, primary_key=True)
    child_id: int = Field(foreign_key="child.id", index=True)
    task_id: int
    recorded_at: datetime = Field(default_factory=local_now, index=True)

    child: Child = Relationship(back_populates="activities")


class Settings(SQLModel, table=True):
    """Singleton table storing payment configuration."""

    id: Optional[int] = Field(default=1, primary_key=True)
    payment_day_of_month: int = 1
    auto_settlement_enabled: bool = True
    # Last month boundary acknowledged by the rollover tracker.
    last_month_boundary_at: Optional[datetime] = None


class Settlement(SQLModel):
    """Allowance paid out for one child and calendar month.

    Not a table: settlements are kept by ``SettlementStore``. A supplemental
    payment increases ``amount`` on the existing record for the month.
    """

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    child_id: int
    amount: int = Field(ge=0)
    month: int = Field(ge=1, le=12)
    year: int
    paid_at: datetime = Field(default_factory=local_now)
    note: Optional[str] = None

    @property
    def key(self) -> tuple[int, int, int]:
        """Natural key ``(child_id, year, month)`` used for reconciliation."""
        return (self.child_id, self.year, self.month)
