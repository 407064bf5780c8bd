"""Generic collection job runner.

Drives one job from PENDING to a terminal state:

    resolve work set -> RUNNING -> fetch/persist each item -> COMPLETED

A failing item is counted and skipped; only a failure to resolve the work
set or to write progress (status store or checkpoint) fails the whole job.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from problem_collector.core.exceptions import ItemNotFoundError, JobStatusStoreError
from problem_collector.core.logging import job_log_context
from problem_collector.db.repositories import CheckpointRepository
from problem_collector.schemas.jobs import ItemOutcome, JobKind, JobStatus
from problem_collector.services.job_metrics import ItemEvent, JobMetrics
from problem_collector.services.job_status_store import JobStatusStore
from problem_collector.services.job_strategies import JobStrategy
from problem_collector.services.pacing import Pacer

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class JobRunner:
    def __init__(
        self,
        store: JobStatusStore,
        pacer: Pacer,
        strategies: dict[JobKind, JobStrategy],
        session_factory: Callable[[], Session],
        metrics: JobMetrics | None = None,
        checkpoint_interval: int = 10,
        clients: list[Any] | None = None,
    ):
        self.store = store
        self.pacer = pacer
        self.strategies = strategies
        self.session_factory = session_factory
        self.metrics = metrics
        self.checkpoint_interval = max(1, checkpoint_interval)
        self._clients = clients or []

    async def aclose(self) -> None:
        """Close the HTTP clients the strategies share."""
        for client in self._clients:
            await client.aclose()

    async def run(self, job_id: str, kind: JobKind, params: dict[str, Any]) -> JobStatus:
        """Execute a job to completion and return its final status."""
        kind = JobKind(kind)
        status = await self.store.load(job_id)
        if status is None:
            logger.warning(f"No stored status for job {job_id}, starting a fresh record")
            status = JobStatus(job_id=job_id, kind=kind, started_at=now_ms(), params=params)
        elif status.is_terminal:
            logger.warning(f"Job {job_id} already {status.status}, not running it again")
            return status

        strategy = self.strategies[kind]
        with job_log_context(job_id, kind), self.session_factory() as db:
            try:
                await self._execute(db, status, strategy, params)
            except asyncio.CancelledError:
                # arq enforces job_timeout by cancelling the task
                db.rollback()
                logger.warning(f"Job {job_id} ({kind}) cancelled after {status.processed_count} items")
                await self._fail(status, "Job cancelled or timed out")
                raise
            except Exception as e:
                db.rollback()
                logger.exception(f"Job {job_id} ({kind}) failed: {e}")
                await self._fail(status, str(e))
        return status

    async def _execute(
        self, db: Session, status: JobStatus, strategy: JobStrategy, params: dict[str, Any]
    ) -> None:
        checkpoints = CheckpointRepository(db)
        after = None
        if params.get("resume", True):
            checkpoint = checkpoints.get(status.kind.value)
            if checkpoint is not None:
                after = int(checkpoint.last_item_key)
                logger.info(f"Job {status.job_id} resuming {status.kind} after item {after}")

        work_set = strategy.resolve_work_set(db, params, after)
        status.mark_running(len(work_set), now_ms())
        await self.store.save(status)
        logger.info(f"Job {status.job_id} running: {status.kind}, {len(work_set)} items")

        for index, item_key in enumerate(work_set):
            started = time.monotonic()
            outcome = await self._process_item(db, strategy, status.job_id, item_key)
            status.record(outcome, item_key)

            if self.metrics is not None:
                self.metrics.record(
                    ItemEvent(
                        kind=status.kind.value,
                        outcome=outcome.value,
                        duration_seconds=time.monotonic() - started,
                        at=time.time(),
                    )
                )

            is_last = index == len(work_set) - 1
            if status.processed_count % self.checkpoint_interval == 0 or is_last:
                self._save_checkpoint(db, checkpoints, status)
                await self.store.save(status)

            if not is_last:
                await self.pacer.wait(status.kind)

        checkpoints.delete_for(status.kind.value)
        db.commit()
        status.mark_completed(now_ms())
        await self.store.save(status)
        logger.info(
            f"Job {status.job_id} completed: {status.success_count} succeeded, "
            f"{status.fail_count} failed of {status.total_count}"
        )

    async def _process_item(
        self, db: Session, strategy: JobStrategy, job_id: str, item_key: int
    ) -> ItemOutcome:
        try:
            payload = await strategy.fetch_item(item_key)
            strategy.persist(db, item_key, payload)
            db.commit()
            return ItemOutcome.SUCCESS
        except ItemNotFoundError:
            logger.debug(f"Job {job_id}: item {item_key} not found, skipped")
            return ItemOutcome.SKIPPED_NOT_FOUND
        except Exception as e:
            db.rollback()
            logger.warning(f"Job {job_id}: item {item_key} failed: {e}")
            return ItemOutcome.FAILED_TRANSIENT

    def _save_checkpoint(
        self, db: Session, checkpoints: CheckpointRepository, status: JobStatus
    ) -> None:
        try:
            checkpoints.save(status.kind.value, str(status.last_checkpoint), job_id=status.job_id)
            db.commit()
        except SQLAlchemyError as e:
            raise JobStatusStoreError(f"Failed to save checkpoint for job {status.job_id}: {e}") from e
        logger.debug(
            f"Job {status.job_id} checkpoint at item {status.last_checkpoint} "
            f"({status.processed_count}/{status.total_count})"
        )

    async def _fail(self, status: JobStatus, error_message: str) -> None:
        if status.is_terminal:
            return
        status.mark_failed(error_message, now_ms())
        try:
            await self.store.save(status)
        except JobStatusStoreError as e:
            logger.error(f"Could not record failure of job {status.job_id}: {e}")
