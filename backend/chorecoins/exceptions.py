"""Error types raised by the chore coin engine."""


class ChoreCoinsError(Exception):
    """Base class for application specific errors."""


class SettlementStoreError(ChoreCoinsError):
    """Raised when the settlement snapshot cannot be written."""
