"""FastAPI application entry point.

This module wires together the API routers, opens the settlement store,
and runs the month rollover check and automatic settlement once at
startup. Clients re-trigger the same work through ``POST /settlements/auto``
whenever they refresh.
"""

import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from chorecoins.routes import (
    children,
    tasks,
    activities,
    settlements,
    settings,
)
from chorecoins.config import LOG_LEVEL, SETTLEMENT_SNAPSHOT_PATH
from chorecoins.crud import ensure_default_tasks
from chorecoins.database import create_db_and_tables, async_session
from chorecoins.dependencies import get_rollover_tracker, get_scheduler
from chorecoins.exceptions import SettlementStoreError
from chorecoins.periods import local_now
from chorecoins.settlement_store import SettlementStore

# Basic logging configuration.  The log level can be controlled with an
# environment variable so deployments can adjust verbosity without code
# changes.
logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))
logger = logging.getLogger(__name__)

app = FastAPI(title="Chore Coins")

# CORS setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def on_startup():
    """Initialize the database and the settlement store."""

    await create_db_and_tables()
    async with async_session() as session:
        await ensure_default_tasks(session)
    app.state.settlement_store = SettlementStore(SETTLEMENT_SNAPSHOT_PATH)
    await startup_settlement_pass()


async def startup_settlement_pass():
    """Acknowledge a new month and pay allowance if today is payment day."""

    store = app.state.settlement_store
    now = local_now()
    try:
        tracker = get_rollover_tracker(async_session)
        if await tracker.observe(now):
            logger.info("New month detected at startup")
        scheduler = get_scheduler(store, async_session)
        results = await scheduler.run(now)
        for result in results:
            logger.info(
                "Paid %s coins to %s for %s-%02d (%s chores, %s day streak)",
                result.amount,
                result.child_name,
                result.year,
                result.month,
                result.record_count,
                result.streak_days,
            )
    except Exception as exc:
        logger.exception("Startup settlement pass failed: %s", exc)


app.include_router(children.router)
app.include_router(tasks.router)
app.include_router(activities.router)
app.include_router(settlements.router)
app.include_router(settings.router)


@app.get("/")
async def read_root():
    return {"message": "Welcome to Chore Coins API"}


@app.exception_handler(SettlementStoreError)
async def settlement_store_error_handler(request: Request, exc: SettlementStoreError):
    logger.error("Settlement store failure during %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={
            "code": "settlement_store_unavailable",
            "message": "Settlements could not be saved, please try again",
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all exception handler that logs the stack trace once."""
    logger.exception("Unhandled error during request %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "code": "internal_server_error",
            "message": "An unexpected error occurred",
        },
    )
