"""Custom exceptions for the problem collector."""


# -----------------------------------------------------------------------------
# Application Base Error
# -----------------------------------------------------------------------------


class AppError(Exception):
    """Base application error with HTTP semantics.

    All domain exceptions that should map to HTTP responses inherit from this.
    The global error handler in error_handlers.py catches these and returns
    a consistent JSON response.
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, detail: str = "An unexpected error occurred", context: dict | None = None):
        self.detail = detail
        self.context = context
        super().__init__(self.detail)


class EntityNotFound(AppError):
    """Entity not found by primary key (404)."""

    status_code = 404
    error_code = "NOT_FOUND"


class ValidationError(AppError):
    """Generic validation error (400)."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class InvalidJobParamsError(ValidationError):
    """Job parameters rejected before any status was written (400)."""

    error_code = "INVALID_JOB_PARAMS"


class ServiceUnavailableError(AppError):
    """A backing service (Redis, task queue) is unreachable (503)."""

    status_code = 503
    error_code = "SERVICE_UNAVAILABLE"


# -----------------------------------------------------------------------------
# Collection Exceptions
# -----------------------------------------------------------------------------


class CollectorError(Exception):
    """Base exception for collection job errors."""

    pass


class ExternalSourceError(CollectorError):
    """Base exception for a failed fetch from an external source.

    Always scoped to a single work item; the runner counts it and moves on.
    """

    def __init__(self, item_key: int, message: str):
        self.item_key = item_key
        super().__init__(message)


class ItemNotFoundError(ExternalSourceError):
    """The external source has no record for this item (skipped).

    Causes:
        - Problem id was never assigned or has been deleted upstream
    """

    pass


class TransientFetchError(ExternalSourceError):
    """The fetch failed for a reason that may not repeat.

    Causes:
        - Network error or timeout
        - Upstream 5xx
        - Rate limit (429) still rejected after retries
        - Malformed or unexpected payload
    """

    pass


class JobStatusStoreError(CollectorError):
    """The job status store could not be read or written.

    Fatal for a running job: progress can no longer be reported or
    checkpointed, so the job is marked FAILED.
    """

    pass


class InvalidTransitionError(CollectorError):
    """A job status was asked to move backwards or leave a terminal state."""

    def __init__(self, job_id: str, current: str, requested: str):
        self.job_id = job_id
        self.current = current
        self.requested = requested
        super().__init__(f"Job {job_id}: cannot transition {current} -> {requested}")
