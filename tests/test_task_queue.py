"""Tests for task_queue.py - fetch task creation and status transitions."""

from datetime import datetime, timezone

import config
import task_queue
from models import FetchTask, SourceDescriptor

NOW = datetime(2026, 2, 18, 12, 0, 0, tzinfo=timezone.utc)
NOW_MS = 1771416000000

SOURCES = [
    SourceDescriptor("greenhouse", "acme"),
    SourceDescriptor("lever", "metabase"),
    SourceDescriptor("workday", "nvidia", {"domain": "wd5"}),
]


def test_create_tasks_ids_and_status(tmp_store):
    tasks = task_queue.create_tasks(tmp_store, SOURCES, now=NOW)

    assert [t.task_id for t in tasks] == [
        f"greenhouse_acme_{NOW_MS}_0",
        f"lever_metabase_{NOW_MS}_1",
        f"workday_nvidia_{NOW_MS}_2",
    ]
    assert all(t.status == "pending" for t in tasks)
    assert {t.execution_id for t in tasks} == {f"manual_{NOW_MS}"}

    doc = tmp_store.get(config.TASKS_COLLECTION, tasks[2].task_id)
    assert doc["provider"] == "workday"
    assert doc["company"] == "nvidia"
    assert doc["provider_extra"] == {"domain": "wd5"}
    assert doc["retry_count"] == 0
    assert doc["max_retries"] == 3
    assert doc["created_at"] == "2026-02-18T12:00:00+00:00"


def test_create_tasks_records_run_summary(tmp_store):
    task_queue.create_tasks(tmp_store, SOURCES, execution_id="nightly_1", trigger="scheduled", now=NOW)

    metrics = tmp_store.get(config.METRICS_COLLECTION, "nightly_1")
    assert metrics["tasks_created"] == 3
    assert metrics["sources"] == ["greenhouse:acme", "lever:metabase", "workday:nvidia"]
    assert metrics["trigger"] == "scheduled"
    assert metrics["status"] == "completed"


def test_load_pending_oldest_first(tmp_store):
    task_queue.create_tasks(tmp_store, SOURCES[:1], now=datetime(2026, 2, 18, 13, tzinfo=timezone.utc))
    task_queue.create_tasks(tmp_store, SOURCES[1:2], now=NOW)

    pending = task_queue.load_pending(tmp_store)

    assert [t.source.provider for t in pending] == ["lever", "greenhouse"]
    assert isinstance(pending[0], FetchTask)


def test_mark_completed_and_failed(tmp_store):
    first, second, _ = task_queue.create_tasks(tmp_store, SOURCES, now=NOW)

    task_queue.mark_completed(tmp_store, first, jobs_fetched=4, jobs_written=3)
    task_queue.mark_failed(tmp_store, second, "boom")

    done = tmp_store.get(config.TASKS_COLLECTION, first.task_id)
    assert done["status"] == "completed"
    assert done["jobs_fetched"] == 4
    assert done["jobs_written"] == 3
    assert done["completed_at"]

    failed = tmp_store.get(config.TASKS_COLLECTION, second.task_id)
    assert failed["status"] == "failed"
    assert failed["error"] == "boom"

    assert [t.task_id for t in task_queue.load_pending(tmp_store)] == [f"workday_nvidia_{NOW_MS}_2"]


def test_requeue_failed_respects_max_retries(tmp_store):
    a, b, _ = task_queue.create_tasks(tmp_store, SOURCES, now=NOW)
    task_queue.mark_failed(tmp_store, a, "timeout")
    task_queue.mark_failed(tmp_store, b, "timeout")
    tmp_store.update(config.TASKS_COLLECTION, b.task_id, {"retry_count": 3})

    requeued, total = task_queue.requeue_failed(tmp_store)

    assert (requeued, total) == (1, 2)
    doc = tmp_store.get(config.TASKS_COLLECTION, a.task_id)
    assert doc["status"] == "pending"
    assert doc["retry_count"] == 1
    assert doc["error"] is None
    assert tmp_store.get(config.TASKS_COLLECTION, b.task_id)["status"] == "failed"
