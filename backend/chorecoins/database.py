import logging
from sqlmodel import SQLModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
)

from chorecoins.config import DATABASE_URL, SQL_ECHO

# Route SQL echo output through logging
if SQL_ECHO:
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

engine = create_async_engine(DATABASE_URL, echo=SQL_ECHO)

async_session = async_sessionmaker(engine, expire_on_commit=False)


async def create_db_and_tables() -> None:
    from .models import Child, RewardTask, ActivityRecord, Settings

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

        # --- simple schema migration for existing installs ---
        pragma = "PRAGMA table_info('{table}')"

        async def has_column(table: str, column: str) -> bool:
            result = await conn.execute(text(pragma.format(table=table)))
            cols = [row[1] for row in result.fetchall()]
            return column in cols

        if not await has_column("settings", "last_month_boundary_at"):
            await conn.execute(
                text("ALTER TABLE settings ADD COLUMN last_month_boundary_at DATETIME")
            )
        if not await has_column("rewardtask", "coin_rate"):
            await conn.execute(
                text("ALTER TABLE rewardtask ADD COLUMN coin_rate INTEGER DEFAULT 10")
            )


async def get_session() -> AsyncSession:
    async with async_session() as session:
        yield session
