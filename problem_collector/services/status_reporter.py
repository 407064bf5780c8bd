"""Read-side view of job status."""

import logging

from problem_collector.schemas.jobs import JobKind, JobStatusResponse
from problem_collector.services.job_status_store import JobStatusStore

logger = logging.getLogger(__name__)


class StatusReporter:
    def __init__(self, store: JobStatusStore):
        self.store = store

    async def get_status(self, job_id: str, kind: JobKind | None = None) -> JobStatusResponse | None:
        """Load a job's status and derive progress and ETA.

        Returns None for unknown or expired jobs, and for jobs of a kind
        other than ``kind`` when one is given. Read-only.

        Raises:
            JobStatusStoreError: the store is unreachable.
        """
        status = await self.store.load(job_id)
        if status is None:
            return None
        if kind is not None and status.kind != kind:
            logger.debug(f"Job {job_id} is {status.kind}, not {kind}")
            return None
        return JobStatusResponse.from_status(status)
