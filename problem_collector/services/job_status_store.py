"""Redis-backed job status store.

One JSON document per job under ``collector:job:{job_id}``, written with a
TTL. Expiry is the only cleanup path. Writes are last-writer-wins; each job
has exactly one writer (its runner), so no locking is needed.
"""

import logging
from datetime import timedelta
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError
from redis.exceptions import RedisError

from problem_collector.core.exceptions import JobStatusStoreError
from problem_collector.schemas.jobs import JobStatus

logger = logging.getLogger(__name__)

JOB_KEY_PREFIX = "collector:job:"


class StringStore(Protocol):
    """The subset of ``redis.asyncio.Redis`` the status store relies on."""

    async def set(self, name: str, value: str, ex: timedelta | int | None = None) -> object: ...

    async def get(self, name: str) -> str | bytes | None: ...


class JobStatusStore:
    """Serializes JobStatus records to and from a TTL-keyed string store."""

    def __init__(self, redis: StringStore, ttl_hours: int = 24):
        self._redis = redis
        self._ttl = timedelta(hours=ttl_hours)

    @staticmethod
    def key_for(job_id: str) -> str:
        return f"{JOB_KEY_PREFIX}{job_id}"

    async def save(self, status: JobStatus) -> None:
        """Write the full snapshot, refreshing the TTL.

        Raises:
            JobStatusStoreError: Redis rejected the write or is unreachable.
        """
        try:
            await self._redis.set(self.key_for(status.job_id), status.model_dump_json(), ex=self._ttl)
        except (RedisError, ConnectionError, OSError) as e:
            raise JobStatusStoreError(f"Failed to save status for job {status.job_id}: {e}") from e

    async def load(self, job_id: str) -> JobStatus | None:
        """Read a job's snapshot.

        Returns None when the key is absent or expired. An unparseable record
        is logged and also treated as absent.

        Raises:
            JobStatusStoreError: Redis is unreachable.
        """
        try:
            raw = await self._redis.get(self.key_for(job_id))
        except (RedisError, ConnectionError, OSError) as e:
            raise JobStatusStoreError(f"Failed to load status for job {job_id}: {e}") from e

        if raw is None:
            return None
        try:
            return JobStatus.model_validate_json(raw)
        except PydanticValidationError:
            logger.error(f"Corrupt status record for job {job_id}", exc_info=True)
            return None
