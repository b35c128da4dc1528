import logging

from models import RawJob
from sources.base import BaseFetcher

logger = logging.getLogger(__name__)

API_BASE = "https://api.lever.co/v0/postings/{company}"


class LeverFetcher(BaseFetcher):
    name = "lever"

    def fetch(self, handle: str, extra: dict | None = None) -> list[RawJob]:
        url = API_BASE.format(company=self._quote(handle))
        data = self._get_json(url, handle, params={"mode": "json"})
        # Lever answers with a bare array; anything else means no postings
        if not isinstance(data, list):
            return []

        jobs = []
        for item in data:
            if not isinstance(item, dict):
                continue
            categories = self._dict(item.get("categories"))
            jobs.append(RawJob(
                title=self._text(item.get("text")),
                company=self._company_name(handle),
                location=self._text(categories.get("location")) or self._text(item.get("location")),
                description=self._text(item.get("description")) or self._text(item.get("descriptionPlain")),
                skills=[],
                apply_url=self._text(item.get("hostedUrl")) or self._text(item.get("applyUrl")),
                ats=self.name,
                external_id=self._text(item.get("id")),
                posted_at=self._created_at(item.get("createdAt")),
            ))

        logger.info(f"[lever/{handle}] Fetched {len(jobs)} jobs")
        return jobs

    def _created_at(self, value) -> str | int:
        """createdAt is epoch milliseconds, passed through for the writer to parse and validate."""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        return self._text(value) or self._now()
