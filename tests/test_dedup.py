"""Tests for dedup.py - document identity and idempotent upsert."""

from freezegun import freeze_time

import config
from dedup import (
    build_document,
    hash_string,
    job_document_id,
    sanitize_external_id,
    upsert,
    upsert_jobs,
)


# --- identity ---


def test_id_from_external_id(make_raw_job):
    assert job_document_id(make_raw_job(ats="lever", external_id="abc-123")) == "lever_abc-123"


def test_external_id_sanitized():
    assert sanitize_external_id('a/b\\c:d*e?f"g<h>i|j') == "a_b_c_d_e_f_g_h_i_j"


def test_external_id_truncated():
    assert len(sanitize_external_id("x" * 500)) == 200


def test_fallback_hash_is_stable(make_raw_job):
    """No external id → hash of title|company|apply_url, same on every run."""
    job = make_raw_job(external_id="", title="Engineer", company="Acme", apply_url="https://x/1")
    first = job_document_id(job)
    assert first == job_document_id(
        make_raw_job(external_id="", title="Engineer", company="Acme", apply_url="https://x/1")
    )
    assert first == f"greenhouse_{hash_string('Engineer|Acme|https://x/1')}"


def test_fallback_hash_differs_by_url(make_raw_job):
    a = make_raw_job(external_id="", apply_url="https://x/1")
    b = make_raw_job(external_id="", apply_url="https://x/2")
    assert job_document_id(a) != job_document_id(b)


def test_fallback_hash_differs_by_title(make_raw_job):
    a = make_raw_job(external_id="", title="Data Engineer")
    b = make_raw_job(external_id="", title="Data Engineel")
    assert job_document_id(a) != job_document_id(b)


def test_fallback_hash_differs_by_company(make_raw_job):
    a = make_raw_job(external_id="", company="Acme")
    b = make_raw_job(external_id="", company="Acne")
    assert job_document_id(a) != job_document_id(b)


def test_hash_string_lone_surrogate():
    """A truncated emoji leaves a lone surrogate; it hashes as its own code unit."""
    assert hash_string("\ud83d") == format_base36(0xD83D)
    assert hash_string("ab\ud83d") == format_base36(3105 * 31 + 0xD83D)


def test_hash_string_known_values():
    """32-bit h*31+c with signed wrap, absolute value in base 36."""
    assert hash_string("") == "0"
    assert hash_string("a") == "2p"  # 97
    assert hash_string("ab") == "2e9"  # 97*31 + 98 = 3105
    # overflows 32 bits along the way
    assert hash_string("hello world") == format_base36(1794106052)
    # lands exactly on -2**31; the absolute value is 2**31
    assert hash_string("polygenelubricants") == "zik0zk"


def test_hash_collisions_share_an_id():
    """Colliding inputs are treated as the same job."""
    assert hash_string("Aa") == hash_string("BB")


def format_base36(n):
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    out = ""
    while n:
        n, r = divmod(n, 36)
        out = digits[r] + out
    return out or "0"


# --- document building ---


@freeze_time("2026-02-18 12:00:00")
def test_build_document_normalizes_posted_at(make_raw_job):
    doc = build_document(make_raw_job(posted_at="2026-02-17T09:30:00-05:00"))
    assert doc["posted_at"] == "2026-02-17T14:30:00+00:00"
    assert doc["fetched_at"] == "2026-02-18T12:00:00+00:00"


def test_build_document_omits_empty_skills(make_raw_job):
    assert "skills" not in build_document(make_raw_job(skills=[]))
    assert build_document(make_raw_job(skills=["sql"]))["skills"] == ["sql"]


# --- upsert ---


def test_upsert_is_idempotent(make_raw_job, tmp_store):
    job = make_raw_job()
    upsert(job, tmp_store)
    upsert(job, tmp_store)
    assert tmp_store.count(config.JOBS_COLLECTION) == 1


def test_refetch_updates_in_place(make_raw_job, tmp_store):
    upsert(make_raw_job(title="Backend Engineer"), tmp_store)
    record = upsert(make_raw_job(title="Backend Engineer II"), tmp_store)

    assert record.job_id == "greenhouse_1"
    assert record.title == "Backend Engineer II"
    assert tmp_store.count(config.JOBS_COLLECTION) == 1


def test_refetch_keeps_classifier_fields(make_raw_job, tmp_store):
    """Fields the fetcher doesn't supply survive a re-fetch."""
    upsert(make_raw_job(), tmp_store)
    tmp_store.update(config.JOBS_COLLECTION, "greenhouse_1", {
        "skills": ["agile"],
        "seniority": "senior",
    })

    upsert(make_raw_job(), tmp_store)

    doc = tmp_store.get(config.JOBS_COLLECTION, "greenhouse_1")
    assert doc["skills"] == ["agile"]
    assert doc["seniority"] == "senior"


def test_upsert_jobs_skips_unparseable_dates(make_raw_job, tmp_store):
    jobs = [
        make_raw_job(external_id="1"),
        make_raw_job(external_id="2", posted_at="sometime last week"),
        make_raw_job(external_id="3"),
    ]
    written = upsert_jobs(jobs, tmp_store)

    assert written == 2
    assert tmp_store.get(config.JOBS_COLLECTION, "greenhouse_2") is None
    assert tmp_store.get(config.JOBS_COLLECTION, "greenhouse_3") is not None


def test_upsert_jobs_hashes_lone_surrogate_titles(make_raw_job, tmp_store):
    jobs = [
        make_raw_job(external_id="1"),
        make_raw_job(external_id="", title="Engineer \ud83d"),
        make_raw_job(external_id="3"),
    ]
    assert upsert_jobs(jobs, tmp_store) == 3
    assert tmp_store.get(config.JOBS_COLLECTION, "greenhouse_1") is not None
    assert tmp_store.get(config.JOBS_COLLECTION, "greenhouse_3") is not None


def test_upsert_jobs_skips_job_whose_id_cannot_be_built(make_raw_job, tmp_store, monkeypatch):
    import dedup

    real_id = dedup.job_document_id

    def flaky_id(job):
        if job.external_id == "2":
            raise ValueError("bad id")
        return real_id(job)

    monkeypatch.setattr(dedup, "job_document_id", flaky_id)
    jobs = [make_raw_job(external_id=str(i)) for i in (1, 2, 3)]

    assert upsert_jobs(jobs, tmp_store) == 2
    assert tmp_store.get(config.JOBS_COLLECTION, "greenhouse_3") is not None


def test_upsert_jobs_chunks_writes(make_raw_job, tmp_store, monkeypatch):
    monkeypatch.setattr(config, "WRITE_BATCH_SIZE", 2)
    jobs = [make_raw_job(external_id=str(i)) for i in range(5)]

    assert upsert_jobs(jobs, tmp_store) == 5
    assert tmp_store.count(config.JOBS_COLLECTION) == 5


def test_upsert_jobs_empty(tmp_store):
    assert upsert_jobs([], tmp_store) == 0


def test_upsert_with_enrich_writes_tags(make_raw_job, tmp_store):
    record = upsert(make_raw_job(title="Senior Backend Engineer"), tmp_store, enrich=True)

    assert record.seniority == "senior"
    assert "python" in record.technologies
    assert record.enriched_version == config.ENRICHMENT_VERSION
