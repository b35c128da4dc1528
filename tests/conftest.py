"""Shared test fixtures for the ATS pipeline test suite."""

import json
import os

import pytest

from models import RawJob

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")


def _load_sample_settings():
    with open(os.path.join(FIXTURES_DIR, "sample_settings.json")) as f:
        return json.load(f)


@pytest.fixture(autouse=True)
def mock_settings(monkeypatch, tmp_path):
    """Autouse fixture that injects known pipeline settings for every test.

    Resets pipeline_settings._settings so get_settings() returns the test
    data, points the store at a per-test database, and calls config.reload()
    to refresh all config globals.
    """
    import config
    import pipeline_settings

    settings = _load_sample_settings()
    settings["db_path"] = str(tmp_path / "jobs.db")
    monkeypatch.delenv("JOBS_DB_PATH", raising=False)
    monkeypatch.setattr(pipeline_settings, "_settings", settings)
    config.reload()
    yield settings


@pytest.fixture
def make_raw_job():
    """Factory fixture for creating RawJob instances with defaults."""

    def _make(**overrides):
        defaults = {
            "title": "Backend Engineer",
            "company": "Acme",
            "location": "Paris, France",
            "description": "<p>Build APIs in Python and PostgreSQL.</p>",
            "skills": [],
            "apply_url": "https://boards.greenhouse.io/acme/jobs/1",
            "ats": "greenhouse",
            "external_id": "1",
            "posted_at": "2026-02-18T10:00:00Z",
        }
        defaults.update(overrides)
        return RawJob(**defaults)

    return _make


@pytest.fixture
def tmp_store(mock_settings):
    """An initialized DocumentStore on the per-test database."""
    from store import DocumentStore

    store = DocumentStore(mock_settings["db_path"])
    store.init()
    return store


@pytest.fixture
def fixture_path():
    """Return the path to the fixtures directory."""
    return FIXTURES_DIR


def load_fixture(filename):
    """Load a fixture file by name."""
    path = os.path.join(FIXTURES_DIR, filename)
    with open(path) as f:
        if filename.endswith(".json"):
            return json.load(f)
        return f.read()
