import logging

from fastapi import APIRouter, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from api import state
from api.metrics import ACTIVE_SESSIONS
from storage import db

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/")
async def root() -> dict:
    return {"message": "PlannerSmart backend is running!"}


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint for container orchestration."""
    health = {
        "status": "healthy",
        "storage": "postgres" if db.USE_DATABASE else "in-memory",
        "active_sessions": len(state.sessions),
    }

    if db.USE_DATABASE:
        db_health = await db.health_check()
        health["database"] = db_health
        if db_health["status"] != "healthy":
            health["status"] = "degraded"

    return health


@router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus scrape endpoint.
    """
    ACTIVE_SESSIONS.set(len(state.sessions))
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
