import logging

import config
from models import (
    TASK_COMPLETED,
    TASK_FAILED,
    TASK_PENDING,
    FetchTask,
    SourceDescriptor,
    to_utc_iso,
    utcnow,
)
from store import DocumentStore

logger = logging.getLogger(__name__)


def _epoch_ms(now) -> int:
    return int(now.timestamp() * 1000)


def create_tasks(
    store: DocumentStore,
    sources: list[SourceDescriptor],
    execution_id: str | None = None,
    trigger: str = "manual",
    now=None,
) -> list[FetchTask]:
    """Write one pending task per source in a single batch and record the run.

    Every task shares the execution id (default ``manual_<epoch ms>``).
    """
    now = now or utcnow()
    ms = _epoch_ms(now)
    execution_id = execution_id or f"manual_{ms}"

    tasks = [
        FetchTask(
            task_id=f"{source.provider}_{source.company_handle}_{ms}_{i}",
            source=source,
            max_retries=config.MAX_RETRIES,
            created_at=now,
            execution_id=execution_id,
        )
        for i, source in enumerate(sources)
    ]

    with store.batch() as batch:
        for task in tasks:
            batch.set(config.TASKS_COLLECTION, task.task_id, task.to_document())
        batch.set(config.METRICS_COLLECTION, execution_id, {
            "execution_id": execution_id,
            "timestamp": to_utc_iso(now),
            "tasks_created": len(tasks),
            "sources": [f"{s.provider}:{s.company_handle}" for s in sources],
            "status": "completed",
            "trigger": trigger,
        })

    logger.info(f"Created {len(tasks)} fetch tasks (execution {execution_id})")
    return tasks


def load_pending(store: DocumentStore) -> list[FetchTask]:
    """All pending tasks, oldest first."""
    docs = store.where(config.TASKS_COLLECTION, "status", TASK_PENDING, order_by="created_at")
    return [FetchTask.from_document(doc.data) for doc in docs]


def mark_completed(store: DocumentStore, task: FetchTask, jobs_fetched: int, jobs_written: int,
                   skipped: bool = False) -> None:
    task.status = TASK_COMPLETED
    task.completed_at = utcnow()
    task.jobs_fetched = jobs_fetched
    task.jobs_written = jobs_written
    task.skipped = skipped
    task.error = None
    store.update(config.TASKS_COLLECTION, task.task_id, {
        "status": task.status,
        "completed_at": to_utc_iso(task.completed_at),
        "jobs_fetched": jobs_fetched,
        "jobs_written": jobs_written,
        "skipped": skipped,
        "error": None,
    })


def mark_failed(store: DocumentStore, task: FetchTask, error: str) -> None:
    task.status = TASK_FAILED
    task.completed_at = utcnow()
    task.error = error
    store.update(config.TASKS_COLLECTION, task.task_id, {
        "status": task.status,
        "completed_at": to_utc_iso(task.completed_at),
        "error": error,
    })


def requeue_failed(store: DocumentStore) -> tuple[int, int]:
    """Return failed tasks with retries left to pending.

    Returns (requeued, total_failed). Tasks at max_retries stay failed.
    """
    failed = store.where(config.TASKS_COLLECTION, "status", TASK_FAILED)
    requeued = 0
    with store.batch() as batch:
        for doc in failed:
            task = FetchTask.from_document(doc.data)
            if task.retry_count >= task.max_retries:
                continue
            batch.update(config.TASKS_COLLECTION, doc.key, {
                "status": TASK_PENDING,
                "retry_count": task.retry_count + 1,
                "error": None,
                "completed_at": None,
            })
            requeued += 1
    logger.info(f"Requeued {requeued} of {len(failed)} failed tasks")
    return requeued, len(failed)
