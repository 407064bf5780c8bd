"""ARQ worker settings.

Start a standalone worker with:
    arq problem_collector.workers.settings.WorkerSettings
"""

import logging

from arq.connections import RedisSettings

from problem_collector.config import get_settings
from problem_collector.workers.tasks import run_collection_job

logger = logging.getLogger(__name__)


async def on_startup(ctx: dict) -> None:
    """ARQ worker startup: initialize shared resources."""
    from problem_collector.core.logging import configure_logging
    from problem_collector.db.database import init_db
    from problem_collector.services.factory import get_job_runner
    from problem_collector.services.job_metrics import JobMetrics
    from problem_collector.services.job_status_store import JobStatusStore

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    init_db()

    store = JobStatusStore(ctx["redis"], ttl_hours=settings.job_status_ttl_hours)
    ctx["settings"] = settings
    ctx["runner"] = get_job_runner(settings, store, metrics=JobMetrics())
    logger.info("ARQ worker started, job runner initialized")


async def on_shutdown(ctx: dict) -> None:
    """ARQ worker shutdown: clean up resources."""
    runner = ctx.get("runner")
    if runner is not None:
        await runner.aclose()
    logger.info("ARQ worker shutting down")


class WorkerSettings:
    """ARQ WorkerSettings for `arq problem_collector.workers.settings.WorkerSettings`."""

    settings = get_settings()

    functions = [run_collection_job]
    redis_settings = RedisSettings.from_dsn(settings.redis_url)
    max_jobs = settings.arq_max_jobs
    job_timeout = settings.arq_job_timeout
    health_check_interval = settings.arq_health_check_interval
    max_tries = 1
    on_startup = on_startup
    on_shutdown = on_shutdown
