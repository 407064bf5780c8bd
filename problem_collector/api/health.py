"""Health check endpoints."""

import logging

from fastapi import APIRouter, Request

from problem_collector.config import get_settings
from problem_collector.core.dependencies import ensure_job_services
from problem_collector.core.redis import is_redis_available

logger = logging.getLogger(__name__)
router = APIRouter()
settings = get_settings()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint.

    A Redis that answers again after a degraded start gets its job services
    built here, so `redis` and `executor` report the same state.
    """
    redis_ok = await is_redis_available()
    if redis_ok:
        await ensure_job_services(request.app)
    executor = getattr(request.app.state, "job_executor", None)

    return {
        "status": "healthy",
        "version": settings.app_version,
        "database": "sqlite" if settings.database_url.startswith("sqlite") else "external",
        "redis": "connected" if redis_ok else "unavailable",
        "executor": executor.mode if executor is not None else "unavailable",
    }


@router.get("/version")
async def version():
    """Get version info."""
    return {"name": settings.app_name, "version": settings.app_version}
