"""Configuration derived from pipeline.json. Backward-compatible exports."""

import os

from pipeline_settings import get_settings
from registry import ATS_SOURCES, load_sources
from taxonomy import TAXONOMY_VERSION


def _load():
    """Load all config values from the current settings."""
    global DB_PATH, BATCH_SIZE, BATCH_DELAY_SECONDS, REQUEST_TIMEOUT
    global MAX_RETRIES, WRITE_BATCH_SIZE, RESCAN_PAGE_SIZE, RESCAN_PAGE_DELAY
    global ENRICHMENT_VERSION, SOURCES

    _s = get_settings()
    DB_PATH = os.environ.get("JOBS_DB_PATH") or _s.get("db_path", "jobs.db")
    BATCH_SIZE = int(_s.get("batch_size", 5))
    BATCH_DELAY_SECONDS = float(_s.get("batch_delay_seconds", 2))
    REQUEST_TIMEOUT = float(_s.get("request_timeout", 30))
    MAX_RETRIES = int(_s.get("max_retries", 3))
    WRITE_BATCH_SIZE = int(_s.get("write_batch_size", 400))
    RESCAN_PAGE_SIZE = int(_s.get("rescan", {}).get("page_size", 500))
    RESCAN_PAGE_DELAY = float(_s.get("rescan", {}).get("page_delay_seconds", 0.1))
    ENRICHMENT_VERSION = str(_s.get("enrichment_version", TAXONOMY_VERSION))
    # An explicit "sources" list replaces the built-in registry entirely
    SOURCES = load_sources(_s["sources"]) if "sources" in _s else list(ATS_SOURCES)


JOBS_COLLECTION = "jobs"
TASKS_COLLECTION = "job_fetch_tasks"
METRICS_COLLECTION = "scheduler_metrics"

# Initial load
_load()


def reload():
    """Re-read pipeline.json and refresh all module-level constants."""
    _load()
