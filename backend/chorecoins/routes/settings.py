"""Endpoints for viewing and updating payment settings."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from chorecoins.database import get_session
from chorecoins.schemas import SettingsRead, SettingsUpdate
from chorecoins.crud import get_settings, save_settings

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/", response_model=SettingsRead)
async def read_settings(db: AsyncSession = Depends(get_session)):
    """Retrieve the current payment configuration."""
    settings = await get_settings(db)
    return SettingsRead(
        payment_day_of_month=settings.payment_day_of_month,
        auto_settlement_enabled=settings.auto_settlement_enabled,
    )


@router.put("/", response_model=SettingsRead)
async def update_settings(data: SettingsUpdate, db: AsyncSession = Depends(get_session)):
    """Update the payment day or toggle automatic settlement."""
    settings = await get_settings(db)
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(settings, field, value)
    updated = await save_settings(db, settings)
    return SettingsRead(
        payment_day_of_month=updated.payment_day_of_month,
        auto_settlement_enabled=updated.auto_settlement_enabled,
    )
