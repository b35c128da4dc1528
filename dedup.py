import logging
import re

import config
from classifier import classify
from models import JobRecord, RawJob, parse_timestamp, to_utc_iso, utcnow
from store import DocumentStore

logger = logging.getLogger(__name__)

_UNSAFE_ID_CHARS = re.compile(r'[/\\:*?"<>|]')
_MAX_ID_LENGTH = 200
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def sanitize_external_id(external_id: str) -> str:
    """Make a provider id safe to use inside a document key."""
    return _UNSAFE_ID_CHARS.sub("_", external_id)[:_MAX_ID_LENGTH]


def hash_string(text: str) -> str:
    """32-bit rolling hash (h*31 + code, signed wrap), absolute value in base 36.

    Stable across processes and platforms, unlike hash().
    """
    h = 0
    # Hash UTF-16 code units so ids match ones minted by browser-side code;
    # lone surrogates are kept as their own unit
    units = text.encode("utf-16-le", errors="surrogatepass")
    for i in range(0, len(units), 2):
        h = (h * 31 + (units[i] | units[i + 1] << 8)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    h = abs(h)
    if h == 0:
        return "0"
    digits = []
    while h:
        h, rem = divmod(h, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def job_document_id(job: RawJob) -> str:
    """Deterministic key: provider id when present, else a hash of title|company|apply_url."""
    if job.external_id:
        return f"{job.ats}_{sanitize_external_id(job.external_id)}"
    return f"{job.ats}_{hash_string(f'{job.title}|{job.company}|{job.apply_url}')}"


def build_document(job: RawJob, now=None) -> dict:
    """Fields written for one fetched job. Raises ValueError on an unreadable posted_at."""
    now = now or utcnow()
    doc = {
        "title": job.title,
        "company": job.company,
        "location": job.location,
        "description": job.description,
        "apply_url": job.apply_url,
        "ats": job.ats,
        "external_id": job.external_id,
        "posted_at": to_utc_iso(parse_timestamp(job.posted_at) if job.posted_at else now),
        "fetched_at": to_utc_iso(now),
    }
    # Empty provider skills would wipe classifier-assigned ones on re-fetch
    if job.skills:
        doc["skills"] = list(job.skills)
    return doc


def upsert(job: RawJob, store: DocumentStore, enrich: bool = False) -> JobRecord:
    """Merge-write a single job and return the stored record."""
    job_id = job_document_id(job)
    doc = build_document(job)
    if enrich:
        doc.update(_classify(job))
    store.set(config.JOBS_COLLECTION, job_id, doc, merge=True)
    return JobRecord.from_document(job_id, store.get(config.JOBS_COLLECTION, job_id))


def upsert_jobs(jobs: list[RawJob], store: DocumentStore, enrich: bool = False) -> int:
    """Merge-write many jobs in chunked batches. Returns the number written.

    A job whose document cannot be built is logged and skipped; the rest of
    its chunk is still committed.
    """
    written = 0
    now = utcnow()
    for start in range(0, len(jobs), config.WRITE_BATCH_SIZE):
        chunk = jobs[start:start + config.WRITE_BATCH_SIZE]
        with store.batch() as batch:
            for job in chunk:
                try:
                    job_id = job_document_id(job)
                    doc = build_document(job, now=now)
                    if enrich:
                        doc.update(_classify(job))
                except ValueError as e:
                    logger.warning(f"[{job.ats}/{job.external_id or job.title!r}] Skipping job: {e}")
                    continue
                batch.set(config.JOBS_COLLECTION, job_id, doc, merge=True)
            pending = len(batch)
        written += pending
    return written


def _classify(job: RawJob) -> dict:
    result = classify(job.title, job.description, company=job.company, location=job.location)
    return result.to_update(config.ENRICHMENT_VERSION, utcnow())
