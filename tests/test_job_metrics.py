"""Tests for the in-memory job metrics recorder."""

from problem_collector.services.job_metrics import ItemEvent, JobMetrics


def test_query_groups_by_kind_and_outcome():
    metrics = JobMetrics()
    metrics.record(ItemEvent("metadata_collect", "success", 1.0, at=1000.0))
    metrics.record(ItemEvent("metadata_collect", "failed_transient", 3.0, at=1001.0))
    metrics.record(ItemEvent("details_collect", "success", 2.5, at=1002.0))

    result = metrics.query(window_seconds=60, now=1010.0)

    assert result["metadata_collect"]["outcomes"] == {"success": 1, "failed_transient": 1}
    assert result["metadata_collect"]["avg_item_seconds"] == 2.0
    assert result["details_collect"]["outcomes"] == {"success": 1}


def test_window_excludes_old_events():
    metrics = JobMetrics()
    metrics.record(ItemEvent("metadata_collect", "success", 1.0, at=0.0))
    metrics.record(ItemEvent("metadata_collect", "success", 1.0, at=950.0))

    result = metrics.query(window_seconds=100, now=1000.0)

    assert result["metadata_collect"]["outcomes"] == {"success": 1}


def test_bounded_event_log():
    metrics = JobMetrics(max_events=2)
    for i in range(5):
        metrics.record(ItemEvent("language_update", "success", 0.1, at=float(i)))
    assert metrics.query(window_seconds=100, now=10.0)["language_update"]["outcomes"]["success"] == 2
