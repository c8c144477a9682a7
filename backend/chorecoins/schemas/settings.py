"""Pydantic models for payment configuration settings."""

from pydantic import BaseModel, field_validator


class SettingsRead(BaseModel):
    payment_day_of_month: int
    auto_settlement_enabled: bool


class SettingsUpdate(BaseModel):
    payment_day_of_month: int | None = None
    auto_settlement_enabled: bool | None = None

    @field_validator("payment_day_of_month")
    @classmethod
    def clamp_payment_day(cls, value: int | None) -> int | None:
        """Out of range days are clamped into 1-31 rather than rejected."""
        if value is None:
            return value
        return max(1, min(31, value))
