"""Drain pending fetch tasks in fixed-size concurrent batches.

Each batch fans out on a thread pool and fans back in before the next one
starts. A failure inside one task is recorded on that task only.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import config
import task_queue
from dedup import upsert_jobs
from models import FetchTask
from sources import get_fetcher
from store import DocumentStore

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass
class TaskOutcome:
    task_id: str
    result: str  # SUCCEEDED, FAILED or SKIPPED
    jobs_fetched: int = 0
    jobs_written: int = 0
    error: str | None = None


@dataclass
class RunStats:
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    jobs_written: int = 0
    batches: int = 0

    def add(self, outcome: TaskOutcome) -> None:
        if outcome.result == SUCCEEDED:
            self.succeeded += 1
        elif outcome.result == SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
        self.jobs_written += outcome.jobs_written


def process_task(task: FetchTask, store: DocumentStore, fetchers=None, enrich: bool = False) -> TaskOutcome:
    """Fetch, write and settle one task. Never raises for fetch or write errors."""
    label = task.source.label
    try:
        fetcher = get_fetcher(task.source.provider, fetchers)
        if not fetcher.supported:
            task_queue.mark_completed(store, task, 0, 0, skipped=True)
            logger.info(f"[{label}] Skipped: provider not implemented")
            return TaskOutcome(task.task_id, SKIPPED)

        jobs = fetcher.fetch(task.source.company_handle, dict(task.source.provider_extra))
        written = upsert_jobs(jobs, store, enrich=enrich)
        task_queue.mark_completed(store, task, len(jobs), written)
        logger.info(f"[{label}] Completed: {len(jobs)} fetched, {written} written")
        return TaskOutcome(task.task_id, SUCCEEDED, len(jobs), written)
    except Exception as e:
        error = str(e) or type(e).__name__
        logger.error(f"[{label}] Failed: {error}")
        task_queue.mark_failed(store, task, error)
        return TaskOutcome(task.task_id, FAILED, error=error)


def _settle(future, task: FetchTask) -> TaskOutcome:
    try:
        return future.result()
    except Exception as e:
        # Only reachable when recording the failure itself failed
        logger.error(f"[{task.source.label}] Could not record task outcome: {e}", exc_info=True)
        return TaskOutcome(task.task_id, FAILED, error=str(e))


def run_batch(tasks: list[FetchTask], store: DocumentStore, fetchers=None, enrich: bool = False) -> list[TaskOutcome]:
    """Run every task in the batch concurrently and wait for all of them."""
    with ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="fetch") as pool:
        futures = [(pool.submit(process_task, task, store, fetchers, enrich), task) for task in tasks]
        return [_settle(future, task) for future, task in futures]


def run_tasks(
    tasks: list[FetchTask],
    store: DocumentStore,
    fetchers=None,
    batch_size: int | None = None,
    delay: float | None = None,
    sleep=time.sleep,
    stop_event: threading.Event | None = None,
    enrich: bool = False,
) -> RunStats:
    batch_size = batch_size or config.BATCH_SIZE
    delay = config.BATCH_DELAY_SECONDS if delay is None else delay
    stats = RunStats()
    total_batches = (len(tasks) + batch_size - 1) // batch_size

    for start in range(0, len(tasks), batch_size):
        if stop_event is not None and stop_event.is_set():
            logger.warning(f"Stop requested; {len(tasks) - start} tasks left pending")
            break
        batch = tasks[start:start + batch_size]
        stats.batches += 1
        logger.info(f"Batch {stats.batches}/{total_batches}: {len(batch)} tasks")
        for outcome in run_batch(batch, store, fetchers, enrich):
            stats.add(outcome)
        if start + batch_size < len(tasks):
            sleep(delay)

    return stats


def run_pending_tasks(store: DocumentStore, fetchers=None, batch_size: int | None = None,
                      delay: float | None = None, sleep=time.sleep,
                      stop_event: threading.Event | None = None, enrich: bool = False) -> RunStats:
    """Drain every pending task. Returns aggregate counts."""
    tasks = task_queue.load_pending(store)
    logger.info(f"Found {len(tasks)} pending tasks")
    stats = run_tasks(tasks, store, fetchers, batch_size, delay, sleep, stop_event, enrich)
    logger.info(
        f"Run finished: {stats.succeeded} succeeded, {stats.failed} failed, "
        f"{stats.skipped} skipped, {stats.jobs_written} jobs written"
    )
    return stats
