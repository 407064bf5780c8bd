"""Embedded ARQ worker that runs inside the FastAPI lifespan.

Instead of running `arq` as a separate CLI process, this embeds the worker
as an asyncio.Task managed by FastAPI's startup/shutdown lifecycle. It shares
the app's Redis pool and JobRunner.
"""

import asyncio
import logging
import signal

from arq.connections import ArqRedis
from arq.worker import Worker

from problem_collector.config import Settings
from problem_collector.services.job_runner import JobRunner
from problem_collector.workers.tasks import run_collection_job

logger = logging.getLogger(__name__)


class EmbeddedArqWorker:
    """Wraps an ARQ Worker so it runs as a background task inside FastAPI.

    Key differences from the standalone ``arq`` CLI worker:
    * ``handle_signals=False``: uvicorn owns process signals.
    * Accepts a **shared** ``redis_pool`` instead of opening a second connection.
    * Custom ``stop()`` that does **not** close the shared pool.
    """

    def __init__(self, redis_pool: ArqRedis, settings: Settings, runner: JobRunner) -> None:
        self._redis_pool = redis_pool
        self._settings = settings
        self._runner = runner
        self._task: asyncio.Task | None = None
        self._worker: Worker | None = None

    async def start(self) -> None:
        """Create the ARQ Worker and launch its poll loop as an asyncio task."""
        self._worker = Worker(
            functions=[run_collection_job],
            redis_pool=self._redis_pool,
            max_jobs=self._settings.arq_max_jobs,
            job_timeout=self._settings.arq_job_timeout,
            health_check_interval=self._settings.arq_health_check_interval,
            max_tries=1,
            handle_signals=False,
            ctx={"settings": self._settings, "runner": self._runner},
        )
        self._task = asyncio.create_task(self._run(), name="arq-worker")
        # Worker.main_task is only set by run()/async_run(); handle_sig() needs it
        self._worker.main_task = self._task
        logger.info("EmbeddedArqWorker started")

    async def _run(self) -> None:
        try:
            await self._worker.main()
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("EmbeddedArqWorker crashed")

    async def stop(self) -> None:
        """Stop the worker without closing the shared Redis pool.

        ``Worker.close()`` would close the pool the rest of the app uses, so
        shutdown is triggered manually and in-flight jobs are awaited.
        """
        if self._worker is None:
            return

        logger.info("EmbeddedArqWorker stopping...")
        self._worker.handle_sig(signal.SIGUSR1)

        if self._task and not self._task.done():
            try:
                await asyncio.wait_for(self._task, timeout=30)
            except (TimeoutError, asyncio.CancelledError):
                logger.warning("EmbeddedArqWorker did not stop within timeout")

        if self._worker.tasks:
            await asyncio.gather(*self._worker.tasks.values(), return_exceptions=True)

        try:
            await self._redis_pool.delete(self._worker.health_check_key)
        except Exception as e:
            logger.debug(f"Could not remove worker health check key: {e}")

        self._worker = None
        self._task = None
        logger.info("EmbeddedArqWorker stopped")
