import asyncio
import logging
import os
from typing import Optional

from fastapi import FastAPI

from api import state
from api.routers import ai, alarms, auth, events, ops
from api.workers import _alarm_worker
from storage import db
from storage.event_store import PostgresEventStore
from storage.user_store import PostgresUserStore

# Logging configuration
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s"
)
logger = logging.getLogger(__name__)

ENABLE_ALARM_WORKER = os.getenv("ENABLE_ALARM_WORKER", "true").lower() in {"1", "true", "yes"}

app = FastAPI(title="PlannerSmart")

app.include_router(ops.router)
app.include_router(auth.router, prefix="/api")
app.include_router(events.router, prefix="/api")
app.include_router(ai.router, prefix="/api")
app.include_router(alarms.router, prefix="/api")

_alarm_task: Optional[asyncio.Task] = None


@app.on_event("startup")
async def startup() -> None:
    global _alarm_task

    if db.USE_DATABASE:
        await db.init_db_pool()
        await db.init_schema()
        state.reset(PostgresEventStore(), PostgresUserStore())
        logger.info("Using PostgreSQL stores")
    else:
        logger.info("Using in-memory stores (USE_DATABASE not set)")

    if ENABLE_ALARM_WORKER:
        _alarm_task = asyncio.create_task(_alarm_worker())


@app.on_event("shutdown")
async def shutdown() -> None:
    if _alarm_task is not None:
        _alarm_task.cancel()
    await db.close_db_pool()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
