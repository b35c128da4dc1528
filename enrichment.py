"""Re-classify stored jobs in place.

Pages through the jobs collection newest first and rewrites only the tag
fields, so fetched content is never touched.
"""

import logging
import time
from dataclasses import dataclass

import config
from classifier import Classification, classify
from models import utcnow
from store import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentStats:
    processed: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    internship_fixed: int = 0
    senior_added: int = 0


def _hints(doc: dict) -> dict:
    # Only fields supplied from outside; our own denormalized tags are never fed back in
    return {
        "summary": doc.get("summary") or "",
        "level": doc.get("level") or "",
        "remote_policy": doc.get("remote_policy") or "",
    }


def classify_document(doc: dict) -> Classification:
    return classify(
        doc.get("title") or "",
        doc.get("description") or "",
        company=doc.get("company") or "",
        location=doc.get("location") or "",
        hints=_hints(doc),
    )


def reclassify_all(
    store: DocumentStore,
    version: str | None = None,
    page_size: int | None = None,
    skip_current: bool = False,
    sleep=time.sleep,
) -> EnrichmentStats:
    version = version or config.ENRICHMENT_VERSION
    page_size = page_size or config.RESCAN_PAGE_SIZE
    stats = EnrichmentStats()
    last = None

    while True:
        page = store.page(config.JOBS_COLLECTION, "posted_at", page_size, start_after=last)
        if not page:
            break

        now = utcnow()
        with store.batch() as batch:
            for doc in page:
                stats.processed += 1
                if skip_current and doc.data.get("enriched_version") == version:
                    stats.skipped += 1
                    continue
                try:
                    result = classify_document(doc.data)
                except Exception as e:
                    stats.errors += 1
                    logger.error(f"[reclassify] Error processing job {doc.key}: {e}")
                    continue

                old_levels = doc.data.get("experience_levels") or []
                if "internship" in old_levels and "internship" not in result.experience_levels:
                    stats.internship_fixed += 1
                    logger.info(f"[reclassify] Removed internship tag from {doc.data.get('title')!r}")
                if "senior" not in old_levels and "senior" in result.experience_levels:
                    stats.senior_added += 1

                batch.update(config.JOBS_COLLECTION, doc.key, result.to_update(version, now))
                stats.updated += 1

        logger.info(
            f"[reclassify] Page of {len(page)}: {stats.processed} processed, "
            f"{stats.updated} updated, {stats.errors} errors"
        )
        last = page[-1]
        sleep(config.RESCAN_PAGE_DELAY)

    logger.info(
        f"[reclassify] Done: {stats.internship_fixed} internship tags removed, "
        f"{stats.senior_added} senior tags added"
    )
    return stats


def enrich_job(store: DocumentStore, job_id: str, version: str | None = None) -> Classification | None:
    """Re-classify one stored job. Returns None when the id is unknown."""
    doc = store.get(config.JOBS_COLLECTION, job_id)
    if doc is None:
        logger.warning(f"[enrich] No job {job_id}")
        return None
    result = classify_document(doc)
    store.update(config.JOBS_COLLECTION, job_id, result.to_update(version or config.ENRICHMENT_VERSION, utcnow()))
    return result
