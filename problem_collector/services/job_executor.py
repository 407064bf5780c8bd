"""Hand-off of launched jobs to a bounded pool of workers.

``ArqJobExecutor`` queues the job on Redis for an ARQ worker (embedded in
the API process or standalone). ``InProcessJobExecutor`` runs it as an
asyncio task in this process, for setups without a worker.
"""

import asyncio
import logging
from typing import Any, Protocol

from arq.connections import ArqRedis

from problem_collector.schemas.jobs import JobKind
from problem_collector.services.job_runner import JobRunner

logger = logging.getLogger(__name__)

COLLECTION_TASK_NAME = "run_collection_job"


class JobExecutor(Protocol):
    mode: str

    async def submit(self, job_id: str, kind: JobKind, params: dict[str, Any]) -> None:
        """Schedule the job and return without waiting for it."""
        ...


class ArqJobExecutor:
    mode = "arq"

    def __init__(self, redis: ArqRedis):
        self.redis = redis

    async def submit(self, job_id: str, kind: JobKind, params: dict[str, Any]) -> None:
        job = await self.redis.enqueue_job(
            COLLECTION_TASK_NAME, job_id, kind.value, params, _job_id=job_id
        )
        if job is None:
            raise RuntimeError(f"Job {job_id} is already queued")
        logger.info(f"[ARQ] Enqueued {kind} job {job_id}")


class InProcessJobExecutor:
    """Runs jobs as asyncio tasks, at most ``max_jobs`` at a time."""

    mode = "in_process"

    def __init__(self, runner: JobRunner, max_jobs: int = 2):
        self.runner = runner
        self._semaphore = asyncio.Semaphore(max_jobs)
        self._tasks: set[asyncio.Task] = set()

    async def submit(self, job_id: str, kind: JobKind, params: dict[str, Any]) -> None:
        task = asyncio.create_task(self._run(job_id, kind, params), name=f"collect-{job_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, job_id: str, kind: JobKind, params: dict[str, Any]) -> None:
        async with self._semaphore:
            try:
                await self.runner.run(job_id, kind, params)
            except Exception:
                logger.exception(f"In-process job {job_id} crashed")

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    async def shutdown(self) -> None:
        """Cancel running jobs; each records itself FAILED before it exits."""
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
