"""Convenience imports for all schema classes used by the API."""

from .child import ChildCreate, ChildRead, ChildUpdate, ChildSummary
from .task import RewardTaskCreate, RewardTaskRead, RewardTaskUpdate
from .activity import ActivityCreate, ActivityRead, ActivityUpdate
from .settlement import (
    SettlementRead,
    PaymentCreate,
    UnpaidPeriodRead,
    ArrearsResponse,
    MonthlySummaryRead,
    SettlementResultRead,
    AutoSettlementResponse,
)
from .settings import SettingsRead, SettingsUpdate

__all__ = [
    "ChildCreate",
    "ChildRead",
    "ChildUpdate",
    "ChildSummary",
    "RewardTaskCreate",
    "RewardTaskRead",
    "RewardTaskUpdate",
    "ActivityCreate",
    "ActivityRead",
    "ActivityUpdate",
    "SettlementRead",
    "PaymentCreate",
    "UnpaidPeriodRead",
    "ArrearsResponse",
    "MonthlySummaryRead",
    "SettlementResultRead",
    "AutoSettlementResponse",
    "SettingsRead",
    "SettingsUpdate",
]
