"""Schemas for allowance settlements and reconciliation results."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SettlementRead(BaseModel):
    id: uuid.UUID
    child_id: int
    amount: int
    month: int
    year: int
    paid_at: datetime
    note: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PaymentCreate(BaseModel):
    """Manual payment; month and year default to the current month."""

    amount: Optional[int] = Field(default=None, ge=0)
    month: Optional[int] = Field(default=None, ge=1, le=12)
    # Upper bound leaves room for the end of December.
    year: Optional[int] = Field(default=None, ge=1, le=9998)
    note: Optional[str] = None


class UnpaidPeriodRead(BaseModel):
    child_id: int
    month: int
    year: int
    outstanding: int

    model_config = ConfigDict(from_attributes=True)


class ArrearsResponse(BaseModel):
    total_outstanding: int
    periods: list[UnpaidPeriodRead]


class MonthlySummaryRead(BaseModel):
    year: int
    month: int
    record_count: int
    earned: int
    paid: int
    outstanding: int
    is_paid: bool
    settlement: Optional[SettlementRead] = None

    model_config = ConfigDict(from_attributes=True)


class SettlementResultRead(BaseModel):
    child_id: int
    child_name: str
    record_count: int
    amount: int
    streak_days: int
    month: int
    year: int

    model_config = ConfigDict(from_attributes=True)


class AutoSettlementResponse(BaseModel):
    rolled_over: bool
    results: list[SettlementResultRead]
