import logging

from models import RawJob
from sources.base import BaseFetcher

logger = logging.getLogger(__name__)

API_BASE = "https://api.smartrecruiters.com/v1/companies/{company}/postings"


class SmartRecruitersFetcher(BaseFetcher):
    name = "smartrecruiters"

    def fetch(self, handle: str, extra: dict | None = None) -> list[RawJob]:
        url = API_BASE.format(company=self._quote(handle))
        data = self._get_json(url, handle)
        if not isinstance(data, dict):
            return []

        jobs = []
        for item in data.get("content") or []:
            if not isinstance(item, dict):
                continue
            jobs.append(RawJob(
                title=self._text(item.get("name")),
                company=self._company_name(handle),
                location=self._text(self._dict(item.get("location")).get("city")),
                description=self._description(item),
                skills=[],
                apply_url=self._text(item.get("ref")),
                ats=self.name,
                external_id=str(item.get("id") or ""),
                posted_at=self._text(item.get("releasedDate")) or self._now(),
            ))

        logger.info(f"[smartrecruiters/{handle}] Fetched {len(jobs)} jobs")
        return jobs

    def _description(self, item: dict) -> str:
        """jobAd.sections.jobDescription.text, '' when any level is absent."""
        node = item
        for key in ("jobAd", "sections", "jobDescription"):
            node = self._dict(node.get(key))
        return self._text(node.get("text"))
