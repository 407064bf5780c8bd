"""Service factories shared by the API process and the standalone worker."""

import logging
from collections.abc import Callable
from typing import Any

from arq.connections import ArqRedis
from sqlalchemy.orm import Session

from problem_collector.config import Settings
from problem_collector.services.boj_crawler import BojCrawler
from problem_collector.services.job_executor import ArqJobExecutor, InProcessJobExecutor
from problem_collector.services.job_launcher import JobLauncher
from problem_collector.services.job_metrics import JobMetrics
from problem_collector.services.job_runner import JobRunner
from problem_collector.services.job_status_store import JobStatusStore
from problem_collector.services.job_strategies import build_strategies
from problem_collector.services.pacing import build_pacer
from problem_collector.services.solvedac_client import SolvedAcClient
from problem_collector.services.status_reporter import StatusReporter
from problem_collector.workers.arq_worker import EmbeddedArqWorker

logger = logging.getLogger(__name__)


def get_job_runner(
    settings: Settings,
    store: JobStatusStore,
    metrics: JobMetrics | None = None,
    session_factory: Callable[[], Session] | None = None,
) -> JobRunner:
    """Wire a runner with the external clients, pacing and storage.

    The caller owns the runner and must ``await runner.aclose()``.
    """
    if session_factory is None:
        from problem_collector.db.database import SessionLocal

        session_factory = SessionLocal

    solvedac = SolvedAcClient.from_settings(settings)
    crawler = BojCrawler.from_settings(settings)
    logger.info(
        f"Creating JobRunner: solved.ac={settings.solvedac_base_url}, boj={settings.boj_base_url}"
    )
    return JobRunner(
        store=store,
        pacer=build_pacer(settings),
        strategies=build_strategies(solvedac, crawler, settings.boj_base_url),
        session_factory=session_factory,
        metrics=metrics,
        checkpoint_interval=settings.checkpoint_save_interval,
        clients=[solvedac, crawler],
    )


async def start_job_services(state: Any, settings: Settings, redis_pool: ArqRedis) -> None:
    """Build the status store, runner, executor, launcher and reporter on ``state``.

    Called by the lifespan when Redis is up at startup, and by the request
    dependencies when Redis comes back after a degraded start.
    """
    store = JobStatusStore(redis_pool, ttl_hours=settings.job_status_ttl_hours)
    runner = get_job_runner(settings, store, metrics=getattr(state, "job_metrics", None))

    arq_worker: EmbeddedArqWorker | None = None
    executor: ArqJobExecutor | InProcessJobExecutor
    if settings.use_arq_worker:
        executor = ArqJobExecutor(redis_pool)
        arq_worker = EmbeddedArqWorker(redis_pool, settings, runner)
        await arq_worker.start()
        logger.info("Collection jobs run on the ARQ worker")
    else:
        executor = InProcessJobExecutor(runner, max_jobs=settings.arq_max_jobs)
        logger.info("Collection jobs run as in-process tasks")

    state.job_runner = runner
    state.arq_worker = arq_worker
    state.job_executor = executor
    state.job_launcher = JobLauncher(store, executor)
    state.status_reporter = StatusReporter(store)


async def stop_job_services(state: Any) -> None:
    """Stop whatever ``start_job_services`` put on ``state``."""
    arq_worker = getattr(state, "arq_worker", None)
    if arq_worker is not None:
        await arq_worker.stop()
    executor = getattr(state, "job_executor", None)
    if isinstance(executor, InProcessJobExecutor):
        await executor.shutdown()
    runner = getattr(state, "job_runner", None)
    if runner is not None:
        await runner.aclose()

    for name in ("job_runner", "arq_worker", "job_executor", "job_launcher", "status_reporter"):
        setattr(state, name, None)
