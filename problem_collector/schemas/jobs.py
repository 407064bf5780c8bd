"""Job status schemas.

``JobStatus`` is the record serialized into the status store. It is mutated
only by the runner that owns the job, through the ``mark_*``/``record``
methods, which enforce forward-only transitions and the counter invariant.
``JobStatusResponse`` adds the fields computed at read time.
"""

from enum import StrEnum
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from problem_collector.core.exceptions import InvalidTransitionError


class JobKind(StrEnum):
    METADATA_COLLECT = "metadata_collect"
    DETAILS_COLLECT = "details_collect"
    LANGUAGE_UPDATE = "language_update"

    @property
    def avg_seconds_per_item(self) -> int:
        """Expected seconds per item under the kind's pacing policy."""
        if self is JobKind.METADATA_COLLECT:
            return 1  # 0.5s fixed delay + API call
        return 3  # 2-4s jitter band


class JobState(StrEnum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TERMINAL_STATES = frozenset({JobState.COMPLETED, JobState.FAILED})

_ALLOWED_TRANSITIONS: dict[JobState, frozenset[JobState]] = {
    JobState.PENDING: frozenset({JobState.RUNNING, JobState.FAILED}),
    JobState.RUNNING: frozenset({JobState.RUNNING, JobState.COMPLETED, JobState.FAILED}),
    JobState.COMPLETED: frozenset(),
    JobState.FAILED: frozenset(),
}


class ItemOutcome(StrEnum):
    """Per-item result, only used to bump the in-memory tally."""

    SUCCESS = "success"
    SKIPPED_NOT_FOUND = "skipped_not_found"
    FAILED_TRANSIENT = "failed_transient"


class JobStatus(BaseModel):
    """Stored progress record for one collection job."""

    job_id: str
    kind: JobKind
    status: JobState = JobState.PENDING
    total_count: int = Field(default=0, ge=0)
    processed_count: int = Field(default=0, ge=0)
    success_count: int = Field(default=0, ge=0)
    fail_count: int = Field(default=0, ge=0)
    started_at: int  # epoch millis
    completed_at: int | None = None
    error_message: str | None = None
    last_checkpoint: int | None = None
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def _transition(self, target: JobState) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(self.job_id, self.status, target)
        self.status = target

    def mark_running(self, total_count: int, now_ms: int) -> None:
        """Enter RUNNING with a fresh tally over a newly resolved work set."""
        self._transition(JobState.RUNNING)
        self.total_count = total_count
        self.processed_count = self.success_count = self.fail_count = 0
        self.started_at = now_ms

    def record(self, outcome: ItemOutcome, item_key: int) -> None:
        """Count one processed item and move the checkpoint past it."""
        if self.status is not JobState.RUNNING:
            raise InvalidTransitionError(self.job_id, self.status, JobState.RUNNING)
        if outcome is ItemOutcome.SUCCESS:
            self.success_count += 1
        else:
            self.fail_count += 1
        self.processed_count += 1
        self.last_checkpoint = item_key

    def mark_completed(self, now_ms: int) -> None:
        self._transition(JobState.COMPLETED)
        self.completed_at = now_ms

    def mark_failed(self, error_message: str, now_ms: int) -> None:
        self._transition(JobState.FAILED)
        self.error_message = error_message
        self.completed_at = now_ms


class JobStatusResponse(JobStatus):
    """Job status with progress fields derived at read time."""

    progress_percentage: int = 0
    estimated_remaining_seconds: int | None = None

    @classmethod
    def from_status(cls, status: JobStatus) -> "JobStatusResponse":
        if status.total_count > 0:
            progress = min(100, status.processed_count * 100 // status.total_count)
        else:
            progress = 0

        eta = None
        if status.status is JobState.RUNNING and status.processed_count > 0:
            remaining = max(0, status.total_count - status.processed_count)
            eta = remaining * status.kind.avg_seconds_per_item

        return cls(
            **status.model_dump(),
            progress_percentage=progress,
            estimated_remaining_seconds=eta,
        )


class JobLaunchResponse(BaseModel):
    """Returned immediately when a job is accepted."""

    job_id: str
    kind: JobKind
    status: JobState
    message: str
    range: str | None = None


class CheckpointResponse(BaseModel):
    job_kind: str
    last_item_key: str
    job_id: str | None = None
    updated_at: datetime | None = None


class KindMetrics(BaseModel):
    outcomes: dict[str, int]
    avg_item_seconds: float


class JobMetricsResponse(BaseModel):
    window_seconds: int
    kinds: dict[str, KindMetrics]
