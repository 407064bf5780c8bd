"""Tests for the problem collection admin API."""

from unittest.mock import AsyncMock, patch

from problem_collector.db.models import Problem
from problem_collector.db.repositories import CheckpointRepository
from problem_collector.schemas.jobs import ItemOutcome, JobKind, JobStatus
from problem_collector.services.job_metrics import ItemEvent

PREFIX = "/api/admin/problems"


class TestLaunchEndpoints:
    def test_collect_metadata_accepted(self, client, executor):
        response = client.post(f"{PREFIX}/collect-metadata", params={"start": 1000, "end": 1002})

        assert response.status_code == 202
        data = response.json()
        assert data["kind"] == "metadata_collect"
        assert data["status"] == "PENDING"
        assert data["range"] == "1000-1002"
        assert executor.submitted[0][0] == data["job_id"]

    def test_collect_metadata_invalid_range(self, client, executor, fake_redis):
        response = client.post(f"{PREFIX}/collect-metadata", params={"start": 100, "end": 50})

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "INVALID_JOB_PARAMS"
        assert data["start"] == 100
        assert fake_redis.data == {}
        assert executor.submitted == []

    def test_collect_metadata_requires_range(self, client):
        response = client.post(f"{PREFIX}/collect-metadata")
        assert response.status_code == 422

    def test_collect_details_and_language(self, client, executor):
        r1 = client.post(f"{PREFIX}/collect-details")
        r2 = client.post(f"{PREFIX}/update-language", params={"resume": "false"})

        assert r1.status_code == 202 and r2.status_code == 202
        assert r1.json()["kind"] == "details_collect"
        assert executor.submitted[1][1] is JobKind.LANGUAGE_UPDATE
        assert executor.submitted[1][2] == {"resume": False}

    def test_launch_without_redis_is_503(self, client):
        client.app.state.job_launcher = None
        with patch("problem_collector.core.dependencies.get_redis_pool", AsyncMock(return_value=None)):
            response = client.post(f"{PREFIX}/collect-details", headers={"X-Request-ID": "req-42"})
        assert response.status_code == 503
        data = response.json()
        assert data["error_code"] == "SERVICE_UNAVAILABLE"
        assert data["request_id"] == "req-42"

    def test_launch_after_redis_recovers(self, client, fake_redis):
        from problem_collector.config import Settings

        state = client.app.state
        state.job_launcher = None
        state.settings = Settings(use_arq_worker=False)
        try:
            with (
                patch("problem_collector.core.dependencies.get_redis_pool", AsyncMock(return_value=fake_redis)),
                patch("problem_collector.services.job_executor.InProcessJobExecutor.submit", AsyncMock()),
            ):
                response = client.post(f"{PREFIX}/collect-details")
            assert response.status_code == 202
            assert state.job_executor.mode == "in_process"
            assert f"collector:job:{response.json()['job_id']}" in fake_redis.data
        finally:
            for name in ("settings", "job_runner", "arq_worker"):
                setattr(state, name, None)


class TestStatusEndpoints:
    def test_status_after_launch(self, client):
        job_id = client.post(f"{PREFIX}/collect-metadata", params={"start": 1, "end": 4}).json()["job_id"]

        response = client.get(f"{PREFIX}/collect-metadata/status/{job_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "PENDING"
        assert data["total_count"] == 4
        assert data["progress_percentage"] == 0
        assert data["estimated_remaining_seconds"] is None

    def test_status_reflects_progress(self, client, status_store):
        import asyncio

        status = JobStatus(job_id="p1", kind=JobKind.DETAILS_COLLECT, started_at=1)
        status.mark_running(total_count=10, now_ms=2)
        for key in range(5):
            status.record(ItemOutcome.SUCCESS, key)
        asyncio.run(status_store.save(status))

        data = client.get(f"{PREFIX}/collect-details/status/p1").json()
        assert data["progress_percentage"] == 50
        assert data["estimated_remaining_seconds"] == 15
        assert data["last_checkpoint"] == 4

    def test_unknown_job_404(self, client):
        response = client.get(f"{PREFIX}/update-language/status/nonexistent")
        assert response.status_code == 404

    def test_wrong_kind_404(self, client):
        job_id = client.post(f"{PREFIX}/collect-details").json()["job_id"]
        assert client.get(f"{PREFIX}/collect-metadata/status/{job_id}").status_code == 404
        assert client.get(f"{PREFIX}/collect-details/status/{job_id}").status_code == 200

    def test_store_down_is_503(self, client, fake_redis):
        fake_redis.fail_reads = True
        response = client.get(f"{PREFIX}/collect-details/status/anything")
        assert response.status_code == 503
        data = response.json()
        assert data["error_code"] == "SERVICE_UNAVAILABLE"
        assert data["detail"] == "Job status store is unavailable"
        assert "request_id" in data


class TestStatsAndCheckpoints:
    def test_stats(self, client, db):
        db.add_all(
            [
                Problem(id=1000, title="a", tier="Bronze V", level=1, url="u", language="ko",
                        description_html="<p>x</p>"),
                Problem(id=1001, title="b", tier="Bronze V", level=1, url="u", language="other"),
                Problem(id=1005, title="c", tier="Bronze V", level=1, url="u", language="en"),
            ]
        )
        db.flush()

        data = client.get(f"{PREFIX}/stats").json()

        assert data == {
            "total_count": 3,
            "min_problem_id": 1000,
            "max_problem_id": 1005,
            "min_null_description_problem_id": 1001,
            "min_null_language_problem_id": 1001,
        }

    def test_list_and_clear_checkpoints(self, client, db):
        CheckpointRepository(db).save("details_collect", "1234", job_id="j9")
        db.flush()

        listed = client.get(f"{PREFIX}/checkpoints").json()
        assert listed[0]["job_kind"] == "details_collect"
        assert listed[0]["last_item_key"] == "1234"

        assert client.delete(f"{PREFIX}/checkpoints/details_collect").status_code == 204
        assert client.get(f"{PREFIX}/checkpoints").json() == []
        assert client.delete(f"{PREFIX}/checkpoints/details_collect").status_code == 404

    def test_clear_checkpoint_unknown_kind(self, client):
        assert client.delete(f"{PREFIX}/checkpoints/bogus").status_code == 422


class TestMetricsEndpoint:
    def test_metrics_window(self, client):
        import time

        client.app.state.job_metrics.record(ItemEvent("metadata_collect", "success", 0.7, at=time.time()))

        data = client.get(f"{PREFIX}/metrics", params={"window_seconds": 60}).json()

        assert data["window_seconds"] == 60
        assert data["kinds"]["metadata_collect"]["outcomes"] == {"success": 1}
