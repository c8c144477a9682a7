"""Aggregate import for all API route modules."""

from . import (
    children,
    tasks,
    activities,
    settlements,
    settings,
)

__all__ = [
    "children",
    "tasks",
    "activities",
    "settlements",
    "settings",
]
