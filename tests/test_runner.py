"""Tests for runner.py - batched task execution with per-task isolation."""

from datetime import datetime, timezone

import responses

import config
import task_queue
from models import RawJob, SourceDescriptor
from runner import run_pending_tasks, run_tasks
from sources import FETCHERS
from sources.base import BaseFetcher
from tests.conftest import load_fixture

NOW = datetime(2026, 2, 18, 12, 0, 0, tzinfo=timezone.utc)


class FakeFetcher(BaseFetcher):
    """Returns one job per handle, or raises for handles listed in fail_on."""

    name = "greenhouse"

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.calls = []

    def fetch(self, handle, extra=None):
        self.calls.append(handle)
        if handle in self.fail_on:
            raise RuntimeError(f"upstream exploded for {handle}")
        return [RawJob(
            title="Engineer",
            company=handle.title(),
            apply_url=f"https://example.com/{handle}",
            ats="greenhouse",
            external_id=f"{handle}-1",
            posted_at="2026-02-18T10:00:00Z",
        )]


def _queue(store, handles, provider="greenhouse"):
    return task_queue.create_tasks(store, [SourceDescriptor(provider, h) for h in handles], now=NOW)


def test_batches_and_delays(tmp_store):
    """12 tasks at batch size 5 → 3 batches, 2 sleeps."""
    _queue(tmp_store, [f"co{i}" for i in range(12)])
    sleeps = []

    stats = run_pending_tasks(tmp_store, fetchers={"greenhouse": FakeFetcher()}, sleep=sleeps.append)

    assert stats.batches == 3
    assert sleeps == [2.0, 2.0]
    assert stats.succeeded == 12
    assert stats.jobs_written == 12


def test_no_delay_for_single_batch(tmp_store):
    _queue(tmp_store, ["a", "b"])
    sleeps = []
    stats = run_pending_tasks(tmp_store, fetchers={"greenhouse": FakeFetcher()}, sleep=sleeps.append)
    assert stats.batches == 1
    assert sleeps == []


def test_one_failure_does_not_affect_siblings(tmp_store):
    tasks = _queue(tmp_store, ["a", "b", "bad", "c", "d"])

    stats = run_pending_tasks(
        tmp_store, fetchers={"greenhouse": FakeFetcher(fail_on={"bad"})}, sleep=lambda s: None
    )

    assert (stats.succeeded, stats.failed) == (4, 1)
    statuses = {
        t.source.company_handle: tmp_store.get(config.TASKS_COLLECTION, t.task_id) for t in tasks
    }
    assert statuses["bad"]["status"] == "failed"
    assert "upstream exploded" in statuses["bad"]["error"]
    assert statuses["bad"]["completed_at"]
    for handle in ("a", "b", "c", "d"):
        assert statuses[handle]["status"] == "completed"
        assert statuses[handle]["jobs_written"] == 1


def test_every_task_reaches_terminal_status(tmp_store):
    _queue(tmp_store, [f"co{i}" for i in range(7)])
    run_pending_tasks(tmp_store, fetchers={"greenhouse": FakeFetcher(fail_on={"co3"})}, sleep=lambda s: None)
    assert task_queue.load_pending(tmp_store) == []


@responses.activate
def test_http_500_completes_with_zero_jobs(tmp_store):
    """A fetcher that fails soft still completes its task."""
    responses.add(responses.GET, "https://boards-api.greenhouse.io/v1/boards/acme/jobs", status=500)
    tasks = _queue(tmp_store, ["acme"])

    stats = run_pending_tasks(tmp_store, sleep=lambda s: None)

    doc = tmp_store.get(config.TASKS_COLLECTION, tasks[0].task_id)
    assert doc["status"] == "completed"
    assert doc["jobs_fetched"] == 0
    assert stats.succeeded == 1


def test_workday_tasks_are_skipped(tmp_store):
    tasks = _queue(tmp_store, ["nvidia"], provider="workday")

    stats = run_pending_tasks(tmp_store, sleep=lambda s: None)

    assert stats.skipped == 1
    doc = tmp_store.get(config.TASKS_COLLECTION, tasks[0].task_id)
    assert doc["status"] == "completed"
    assert doc["skipped"] is True


def test_stop_event_leaves_remaining_pending(tmp_store):
    import threading

    _queue(tmp_store, [f"co{i}" for i in range(10)])
    stop = threading.Event()

    stats = run_pending_tasks(
        tmp_store, fetchers={"greenhouse": FakeFetcher()}, sleep=lambda s: stop.set(), stop_event=stop
    )

    assert stats.batches == 1
    assert len(task_queue.load_pending(tmp_store)) == 5


@responses.activate
def test_acme_end_to_end_refetch_updates_in_place(tmp_store):
    """Fetch acme twice: same documents, updated titles, no duplicates."""
    url = "https://boards-api.greenhouse.io/v1/boards/acme/jobs"
    fixture = load_fixture("greenhouse_response.json")
    responses.add(responses.GET, url, json=fixture, status=200)

    _queue(tmp_store, ["acme"])
    first = run_pending_tasks(tmp_store, sleep=lambda s: None)

    assert first.jobs_written == 3
    assert tmp_store.count(config.JOBS_COLLECTION) == 3
    doc = tmp_store.get(config.JOBS_COLLECTION, "greenhouse_4012345")
    assert doc["company"] == "Acme"
    assert doc["posted_at"] == "2026-02-17T14:30:00+00:00"

    fixture["jobs"][0]["title"] = "Senior Backend Engineer (Platform)"
    responses.replace(responses.GET, url, json=fixture, status=200)
    task_queue.create_tasks(tmp_store, [SourceDescriptor("greenhouse", "acme")])
    run_pending_tasks(tmp_store, sleep=lambda s: None)

    assert tmp_store.count(config.JOBS_COLLECTION) == 3
    assert tmp_store.get(config.JOBS_COLLECTION, "greenhouse_4012345")["title"] == "Senior Backend Engineer (Platform)"


def test_run_tasks_with_enrich(tmp_store):
    tasks = _queue(tmp_store, ["acme"])
    run_tasks(tasks, tmp_store, fetchers={"greenhouse": FakeFetcher()}, enrich=True)

    doc = tmp_store.get(config.JOBS_COLLECTION, "greenhouse_acme-1")
    assert doc["enriched_version"] == config.ENRICHMENT_VERSION
    assert doc["seniority"] == "mid"


def test_unknown_provider_in_fetcher_table_fails_task(tmp_store):
    tasks = _queue(tmp_store, ["metabase"], provider="lever")
    stats = run_pending_tasks(tmp_store, fetchers={"greenhouse": FakeFetcher()}, sleep=lambda s: None)
    assert stats.failed == 1
    assert "lever" in tmp_store.get(config.TASKS_COLLECTION, tasks[0].task_id)["error"]


def test_default_fetchers_cover_providers():
    assert "greenhouse" in FETCHERS
