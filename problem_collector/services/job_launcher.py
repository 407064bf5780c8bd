"""Job launcher: validate, record PENDING, hand off."""

import logging
import uuid
from typing import Any

from problem_collector.core.exceptions import (
    InvalidJobParamsError,
    JobStatusStoreError,
    ServiceUnavailableError,
)
from problem_collector.schemas.jobs import JobKind, JobStatus
from problem_collector.services.job_executor import JobExecutor
from problem_collector.services.job_runner import now_ms
from problem_collector.services.job_status_store import JobStatusStore

logger = logging.getLogger(__name__)


def validate_params(kind: JobKind, params: dict[str, Any]) -> dict[str, Any]:
    """Normalize launch parameters for a job kind.

    Raises:
        InvalidJobParamsError: a metadata range is missing, non-positive or
            reversed.
    """
    resume = bool(params.get("resume", True))
    if kind is not JobKind.METADATA_COLLECT:
        return {"resume": resume}

    try:
        start, end = int(params["start"]), int(params["end"])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidJobParamsError("start and end must be integers") from e
    if start < 1 or end < 1:
        raise InvalidJobParamsError(
            "start and end must be positive", context={"start": start, "end": end}
        )
    if start > end:
        raise InvalidJobParamsError(
            "start must be less than or equal to end", context={"start": start, "end": end}
        )
    return {"start": start, "end": end, "resume": resume}


def estimate_total(kind: JobKind, params: dict[str, Any]) -> int:
    """Item count known without touching storage; 0 until the runner resolves it."""
    if kind is JobKind.METADATA_COLLECT:
        return params["end"] - params["start"] + 1
    return 0


class JobLauncher:
    def __init__(self, store: JobStatusStore, executor: JobExecutor):
        self.store = store
        self.executor = executor

    async def launch(self, kind: JobKind, params: dict[str, Any] | None = None) -> JobStatus:
        """Start a job and return its PENDING status without waiting for it.

        Raises:
            InvalidJobParamsError: before anything is written.
            ServiceUnavailableError: the status store or the queue is down.
        """
        kind = JobKind(kind)
        params = validate_params(kind, params or {})

        status = JobStatus(
            job_id=str(uuid.uuid4()),
            kind=kind,
            total_count=estimate_total(kind, params),
            started_at=now_ms(),
            params=params,
        )
        try:
            await self.store.save(status)
        except JobStatusStoreError as e:
            raise ServiceUnavailableError("Job status store is unavailable") from e

        try:
            await self.executor.submit(status.job_id, kind, params)
        except Exception as e:
            logger.exception(f"Failed to submit job {status.job_id}")
            status.mark_failed(f"Submission failed: {e}", now_ms())
            try:
                await self.store.save(status)
            except JobStatusStoreError:
                logger.error(f"Could not record submission failure of job {status.job_id}")
            raise ServiceUnavailableError(
                "Job could not be scheduled", context={"job_id": status.job_id}
            ) from e

        logger.info(f"Job {status.job_id} launched: {kind} {params}")
        return status
