"""Environment driven configuration values.

Deployments adjust these through environment variables; everything that
caregivers change at runtime (payment day, auto settlement) lives in the
``Settings`` table instead.
"""

import os

DATABASE_URL = os.getenv(
    "DATABASE_URL", "sqlite+aiosqlite:///./chore_coins.db"
)  # swap with Postgres URL if needed

SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Durable blob holding every settlement record.
SETTLEMENT_SNAPSHOT_PATH = os.getenv("SETTLEMENT_SNAPSHOT_PATH", "./settlements.json")

# Zone used to decide which calendar day/month a timestamp belongs to.
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "UTC")
