"""Tests for the JobStatus record, its transitions and derived fields."""

import pytest

from problem_collector.core.exceptions import InvalidTransitionError
from problem_collector.schemas.jobs import (
    ItemOutcome,
    JobKind,
    JobState,
    JobStatus,
    JobStatusResponse,
)


def _status(kind=JobKind.METADATA_COLLECT, **kwargs) -> JobStatus:
    return JobStatus(job_id="job-1", kind=kind, started_at=1_000, **kwargs)


class TestTransitions:
    """Status only moves forward and freezes once terminal."""

    def test_new_status_is_pending(self):
        status = _status()
        assert status.status is JobState.PENDING
        assert status.processed_count == 0
        assert not status.is_terminal

    def test_pending_to_running_to_completed(self):
        status = _status()
        status.mark_running(total_count=2, now_ms=2_000)
        assert status.status is JobState.RUNNING
        assert status.total_count == 2
        assert status.started_at == 2_000

        status.mark_completed(now_ms=3_000)
        assert status.status is JobState.COMPLETED
        assert status.completed_at == 3_000
        assert status.is_terminal

    def test_pending_can_fail_directly(self):
        status = _status()
        status.mark_failed("queue down", now_ms=5)
        assert status.status is JobState.FAILED
        assert status.error_message == "queue down"
        assert status.completed_at == 5

    def test_pending_cannot_complete(self):
        with pytest.raises(InvalidTransitionError):
            _status().mark_completed(now_ms=1)

    @pytest.mark.parametrize("terminal", [JobState.COMPLETED, JobState.FAILED])
    def test_terminal_status_rejects_changes(self, terminal):
        status = _status(status=terminal)
        with pytest.raises(InvalidTransitionError):
            status.mark_running(total_count=1, now_ms=1)
        with pytest.raises(InvalidTransitionError):
            status.mark_failed("again", now_ms=1)
        with pytest.raises(InvalidTransitionError):
            status.record(ItemOutcome.SUCCESS, 1)

    def test_record_requires_running(self):
        with pytest.raises(InvalidTransitionError):
            _status().record(ItemOutcome.SUCCESS, 1)

    def test_mark_running_resets_tally(self):
        status = _status(status=JobState.RUNNING, total_count=5, processed_count=3, success_count=3)
        status.mark_running(total_count=2, now_ms=10)
        assert (status.processed_count, status.success_count, status.fail_count) == (0, 0, 0)
        assert status.total_count == 2


class TestRecord:
    """Per-item tally keeps success + fail == processed."""

    def test_counts_and_checkpoint(self):
        status = _status()
        status.mark_running(total_count=3, now_ms=1)
        status.record(ItemOutcome.SUCCESS, 1000)
        status.record(ItemOutcome.SKIPPED_NOT_FOUND, 1001)
        status.record(ItemOutcome.FAILED_TRANSIENT, 1002)

        assert status.processed_count == 3
        assert status.success_count == 1
        assert status.fail_count == 2
        assert status.success_count + status.fail_count == status.processed_count
        assert status.last_checkpoint == 1002

    def test_json_round_trip_keeps_enums(self):
        status = _status(kind=JobKind.LANGUAGE_UPDATE, params={"resume": False})
        restored = JobStatus.model_validate_json(status.model_dump_json())
        assert restored == status
        assert restored.kind is JobKind.LANGUAGE_UPDATE


class TestDerivedFields:
    """progress_percentage and estimated_remaining_seconds."""

    def test_progress_zero_without_total(self):
        view = JobStatusResponse.from_status(_status())
        assert view.progress_percentage == 0
        assert view.estimated_remaining_seconds is None

    def test_progress_and_eta_while_running(self):
        status = _status(kind=JobKind.DETAILS_COLLECT)
        status.mark_running(total_count=10, now_ms=1)
        for key in range(4):
            status.record(ItemOutcome.SUCCESS, key)

        view = JobStatusResponse.from_status(status)
        assert view.progress_percentage == 40
        assert view.estimated_remaining_seconds == 6 * 3

    def test_eta_uses_metadata_average(self):
        status = _status()
        status.mark_running(total_count=100, now_ms=1)
        status.record(ItemOutcome.SUCCESS, 1)
        assert JobStatusResponse.from_status(status).estimated_remaining_seconds == 99

    def test_no_eta_before_first_item(self):
        status = _status()
        status.mark_running(total_count=100, now_ms=1)
        assert JobStatusResponse.from_status(status).estimated_remaining_seconds is None

    def test_no_eta_once_completed(self):
        status = _status()
        status.mark_running(total_count=1, now_ms=1)
        status.record(ItemOutcome.SUCCESS, 1)
        status.mark_completed(now_ms=2)
        view = JobStatusResponse.from_status(status)
        assert view.progress_percentage == 100
        assert view.estimated_remaining_seconds is None

    def test_progress_capped_at_100(self):
        status = _status(status=JobState.RUNNING, total_count=2, processed_count=3, success_count=3)
        assert JobStatusResponse.from_status(status).progress_percentage == 100

    def test_avg_seconds_per_kind(self):
        assert JobKind.METADATA_COLLECT.avg_seconds_per_item == 1
        assert JobKind.DETAILS_COLLECT.avg_seconds_per_item == 3
        assert JobKind.LANGUAGE_UPDATE.avg_seconds_per_item == 3
