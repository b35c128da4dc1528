#!/usr/bin/env python3
"""ATS job ingestion: create fetch tasks, drain them, and classify stored jobs."""

import argparse
import logging
import signal
import sqlite3
import sys
import threading

import config
import enrichment
import runner
import task_queue
from models import SourceDescriptor
from store import DocumentStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _print_summary(title: str, rows: list[tuple[str, object]]) -> None:
    print(f"\n{'='*50}")
    print(title)
    print(f"{'='*50}")
    for label, value in rows:
        print(f"{label}: {value}")
    print(f"{'='*50}")


def open_store() -> DocumentStore:
    """Open the document store. Raises sqlite3.Error when it is unreachable."""
    store = DocumentStore(config.DB_PATH)
    store.init()
    return store


def cmd_create_tasks(args, store: DocumentStore) -> int:
    tasks = task_queue.create_tasks(
        store, config.SOURCES, execution_id=args.execution_id, trigger=args.trigger
    )
    _print_summary("Fetch Tasks Created", [
        ("Tasks created", len(tasks)),
        ("Execution ID", tasks[0].execution_id if tasks else args.execution_id or "-"),
    ])
    return 0


def _run_with_interrupt(func):
    """Run func(stop_event); Ctrl-C lets the current batch finish, then stops."""
    stop_event = threading.Event()

    def _request_stop(signum, frame):
        logger.warning("Interrupt received; finishing current batch")
        stop_event.set()

    previous = signal.signal(signal.SIGINT, _request_stop)
    try:
        return func(stop_event)
    finally:
        signal.signal(signal.SIGINT, previous)


def cmd_run(args, store: DocumentStore) -> int:
    stats = _run_with_interrupt(
        lambda stop: runner.run_pending_tasks(store, stop_event=stop, enrich=args.enrich)
    )
    _print_summary("Fetch Run", [
        ("Batches", stats.batches),
        ("Succeeded", stats.succeeded),
        ("Failed", stats.failed),
        ("Skipped", stats.skipped),
        ("Jobs written", stats.jobs_written),
    ])
    return 0


def cmd_reclassify(args, store: DocumentStore) -> int:
    stats = enrichment.reclassify_all(
        store,
        version=args.version,
        page_size=args.page_size,
        skip_current=args.skip_current,
    )
    _print_summary("Re-classification", [
        ("Processed", stats.processed),
        ("Updated", stats.updated),
        ("Skipped", stats.skipped),
        ("Errors", stats.errors),
        ("Internship tags removed", stats.internship_fixed),
        ("Senior tags added", stats.senior_added),
    ])
    return 0


def cmd_retry_failed(args, store: DocumentStore) -> int:
    requeued, total = task_queue.requeue_failed(store)
    _print_summary("Retry Failed Tasks", [
        ("Failed tasks", total),
        ("Requeued", requeued),
    ])
    return 0


def _parse_extra(pairs: list[str]) -> dict:
    extra = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got {pair!r}")
        extra[key] = value
    return extra


def cmd_process_task(args, store: DocumentStore) -> int:
    source = SourceDescriptor(args.provider, args.handle, _parse_extra(args.extra))
    tasks = task_queue.create_tasks(store, [source], trigger="manual_single")
    stats = runner.run_tasks(tasks, store, enrich=args.enrich)
    _print_summary(f"Task {tasks[0].task_id}", [
        ("Succeeded", stats.succeeded),
        ("Failed", stats.failed),
        ("Skipped", stats.skipped),
        ("Jobs written", stats.jobs_written),
    ])
    return 1 if stats.failed else 0


def cmd_enrich_job(args, store: DocumentStore) -> int:
    result = enrichment.enrich_job(store, args.job_id)
    if result is None:
        print(f"No job found with id {args.job_id}")
        return 1
    _print_summary(f"Job {args.job_id}", [
        ("Seniority", result.seniority),
        ("Employment types", ", ".join(result.employment_types)),
        ("Work locations", ", ".join(result.work_locations)),
        ("Industries", ", ".join(result.industries) or "-"),
        ("Technologies", ", ".join(result.technologies) or "-"),
        ("Role function", result.role_function),
        ("Quality", result.enrichment_quality),
    ])
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fetch, store and classify ATS job postings.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("create-tasks", help="Queue one fetch task per registered source")
    p.add_argument("--execution-id", default=None, help="Shared id for this batch of tasks")
    p.add_argument("--trigger", default="manual", help="Recorded on the run summary")
    p.set_defaults(func=cmd_create_tasks)

    p = sub.add_parser("run", help="Process all pending fetch tasks")
    p.add_argument("--enrich", action="store_true", help="Classify jobs as they are written")
    p.set_defaults(func=cmd_run)

    p = sub.add_parser("reclassify", help="Re-run classification over every stored job")
    p.add_argument("--version", default=None, help="Version stamp (default from settings)")
    p.add_argument("--skip-current", action="store_true",
                   help="Leave jobs already stamped with this version alone")
    p.add_argument("--page-size", type=int, default=None)
    p.set_defaults(func=cmd_reclassify)

    p = sub.add_parser("retry-failed", help="Requeue failed tasks that have retries left")
    p.set_defaults(func=cmd_retry_failed)

    p = sub.add_parser("process-task", help="Fetch one source immediately")
    p.add_argument("provider")
    p.add_argument("handle")
    p.add_argument("--extra", action="append", default=[], metavar="KEY=VALUE")
    p.add_argument("--enrich", action="store_true")
    p.set_defaults(func=cmd_process_task)

    p = sub.add_parser("enrich-job", help="Re-classify a single stored job")
    p.add_argument("job_id")
    p.set_defaults(func=cmd_enrich_job)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        store = open_store()
    except (sqlite3.Error, OSError) as e:
        logger.error(f"Cannot open job store at {config.DB_PATH}: {e}")
        return 1

    try:
        return args.func(args, store)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Command {args.command} failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
