"""Request and response models for children."""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _check_color(value: Optional[str]) -> Optional[str]:
    if value is not None and not _HEX_COLOR.match(value):
        raise ValueError("theme_color must look like #RRGGBB")
    return value


class ChildCreate(BaseModel):
    name: str
    theme_color: str = "#3B82F6"

    @field_validator("theme_color")
    @classmethod
    def valid_color(cls, value: str) -> str:
        return _check_color(value)


class ChildRead(BaseModel):
    id: int
    name: str
    theme_color: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChildUpdate(BaseModel):
    name: str | None = None
    theme_color: str | None = None

    @field_validator("theme_color")
    @classmethod
    def valid_color(cls, value: str | None) -> str | None:
        return _check_color(value)


class ChildSummary(BaseModel):
    """Current month figures shown on the dashboard."""

    child_id: int
    month: int
    year: int
    record_count: int
    earned: int
    streak_days: int
    is_paid: bool
    settled_amount: int
    # Full earnings, or the shortfall once the month has been settled.
    amount_due: int
