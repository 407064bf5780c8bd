"""Tests for job launching and parameter validation."""

import uuid

import pytest

from problem_collector.core.exceptions import InvalidJobParamsError, ServiceUnavailableError
from problem_collector.schemas.jobs import JobKind, JobState
from problem_collector.services.job_launcher import JobLauncher, estimate_total, validate_params


class TestValidateParams:
    def test_metadata_range_normalized(self):
        assert validate_params(JobKind.METADATA_COLLECT, {"start": "5", "end": 9}) == {
            "start": 5,
            "end": 9,
            "resume": True,
        }

    @pytest.mark.parametrize(
        "params",
        [
            {"start": 100, "end": 50},
            {"start": 0, "end": 5},
            {"start": -3, "end": 5},
            {"start": 1},
            {"start": "abc", "end": 5},
        ],
    )
    def test_invalid_metadata_params(self, params):
        with pytest.raises(InvalidJobParamsError):
            validate_params(JobKind.METADATA_COLLECT, params)

    def test_record_kinds_only_take_resume(self):
        assert validate_params(JobKind.DETAILS_COLLECT, {"resume": False, "start": 1}) == {"resume": False}

    def test_estimate_total(self):
        assert estimate_total(JobKind.METADATA_COLLECT, {"start": 1000, "end": 1002}) == 3
        assert estimate_total(JobKind.LANGUAGE_UPDATE, {}) == 0


class TestLaunch:
    @pytest.mark.asyncio
    async def test_launch_writes_pending_and_submits(self, status_store, executor):
        launcher = JobLauncher(status_store, executor)

        job = await launcher.launch(JobKind.METADATA_COLLECT, {"start": 1000, "end": 1002})

        uuid.UUID(job.job_id)
        assert job.status is JobState.PENDING
        stored = await status_store.load(job.job_id)
        assert stored.status is JobState.PENDING
        assert stored.total_count == 3
        assert stored.processed_count == 0
        assert executor.submitted == [
            (job.job_id, JobKind.METADATA_COLLECT, {"start": 1000, "end": 1002, "resume": True})
        ]

    @pytest.mark.asyncio
    async def test_job_ids_are_unique(self, status_store, executor):
        launcher = JobLauncher(status_store, executor)
        ids = {(await launcher.launch(JobKind.DETAILS_COLLECT)).job_id for _ in range(5)}
        assert len(ids) == 5

    @pytest.mark.asyncio
    async def test_invalid_range_writes_nothing(self, status_store, fake_redis, executor):
        launcher = JobLauncher(status_store, executor)

        with pytest.raises(InvalidJobParamsError):
            await launcher.launch(JobKind.METADATA_COLLECT, {"start": 100, "end": 50})

        assert fake_redis.data == {}
        assert executor.submitted == []

    @pytest.mark.asyncio
    async def test_store_down_is_service_unavailable(self, status_store, fake_redis, executor):
        fake_redis.fail_after = 0
        launcher = JobLauncher(status_store, executor)

        with pytest.raises(ServiceUnavailableError):
            await launcher.launch(JobKind.DETAILS_COLLECT)
        assert executor.submitted == []

    @pytest.mark.asyncio
    async def test_submit_failure_marks_job_failed(self, status_store, fake_redis, executor):
        executor.error = ConnectionError("queue unreachable")
        launcher = JobLauncher(status_store, executor)

        with pytest.raises(ServiceUnavailableError) as exc_info:
            await launcher.launch(JobKind.LANGUAGE_UPDATE)

        job_id = exc_info.value.context["job_id"]
        stored = await status_store.load(job_id)
        assert stored.status is JobState.FAILED
        assert "queue unreachable" in stored.error_message
