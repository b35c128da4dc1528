import logging
from abc import ABC, abstractmethod
from urllib.parse import quote

import requests

import config
from models import RawJob, to_utc_iso, utcnow

logger = logging.getLogger(__name__)


class BaseFetcher(ABC):
    """Abstract base class for all ATS fetchers."""

    name: str = "base"
    supported: bool = True

    @abstractmethod
    def fetch(self, handle: str, extra: dict | None = None) -> list[RawJob]:
        """Fetch one company's postings. Returns [] when the listing is unavailable."""
        ...

    def _get_json(self, url: str, handle: str, params: dict | None = None):
        """GET and decode JSON so one dead listing doesn't kill the batch.

        Non-2xx and malformed bodies are logged and return None. Transport
        errors propagate to the caller.
        """
        resp = requests.get(url, params=params, timeout=config.REQUEST_TIMEOUT)
        if not resp.ok:
            logger.warning(f"[{self.name}/{handle}] HTTP {resp.status_code} from {url}")
            return None
        try:
            return resp.json()
        except ValueError as e:
            logger.warning(f"[{self.name}/{handle}] Malformed JSON from {url}: {e}")
            return None

    @staticmethod
    def _quote(handle: str) -> str:
        return quote(handle, safe="")

    @staticmethod
    def _company_name(handle: str) -> str:
        return handle[:1].upper() + handle[1:]

    @staticmethod
    def _now() -> str:
        return to_utc_iso(utcnow())

    @staticmethod
    def _text(value) -> str:
        return value if isinstance(value, str) else ""

    @staticmethod
    def _dict(value) -> dict:
        return value if isinstance(value, dict) else {}
