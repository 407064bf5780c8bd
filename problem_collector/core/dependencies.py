"""FastAPI dependencies resolving the job services on app.state.

The lifespan builds the services when Redis is up at startup. After a
degraded start they are built here, by the first request that finds Redis
reachable again.
"""

import asyncio
import logging

from fastapi import FastAPI, Request

from problem_collector.config import get_settings
from problem_collector.core.exceptions import ServiceUnavailableError
from problem_collector.core.redis import get_redis_pool
from problem_collector.services.factory import start_job_services
from problem_collector.services.job_launcher import JobLauncher
from problem_collector.services.job_metrics import JobMetrics
from problem_collector.services.status_reporter import StatusReporter

logger = logging.getLogger(__name__)

_start_lock = asyncio.Lock()


async def ensure_job_services(app: FastAPI) -> bool:
    """Start the job services if they are missing and Redis is reachable.

    Returns whether the services are available.
    """
    state = app.state
    if getattr(state, "job_launcher", None) is not None:
        return True

    async with _start_lock:
        if getattr(state, "job_launcher", None) is None:
            pool = await get_redis_pool(reconnect=True)
            if pool is None:
                return False
            await start_job_services(state, getattr(state, "settings", None) or get_settings(), pool)
            logger.info("Redis reachable again, job services started")
    return True


async def get_job_launcher(request: Request) -> JobLauncher:
    if not await ensure_job_services(request.app):
        raise ServiceUnavailableError("Redis is unavailable; collection jobs cannot be started")
    return request.app.state.job_launcher


async def get_status_reporter(request: Request) -> StatusReporter:
    if not await ensure_job_services(request.app):
        raise ServiceUnavailableError("Redis is unavailable; job status cannot be read")
    return request.app.state.status_reporter


def get_job_metrics(request: Request) -> JobMetrics:
    return request.app.state.job_metrics
