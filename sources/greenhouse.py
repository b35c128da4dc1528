import logging

from models import RawJob
from sources.base import BaseFetcher

logger = logging.getLogger(__name__)

API_BASE = "https://boards-api.greenhouse.io/v1/boards/{board}/jobs"


class GreenhouseFetcher(BaseFetcher):
    name = "greenhouse"

    def fetch(self, handle: str, extra: dict | None = None) -> list[RawJob]:
        url = API_BASE.format(board=self._quote(handle))
        data = self._get_json(url, handle, params={"content": "true"})
        if not isinstance(data, dict):
            return []

        jobs = []
        for item in data.get("jobs") or []:
            if not isinstance(item, dict):
                continue
            job_id = item.get("id")
            jobs.append(RawJob(
                title=self._text(item.get("title")),
                company=self._company_name(handle),
                location=self._text(self._dict(item.get("location")).get("name")),
                description=self._text(item.get("content")),
                skills=[],
                apply_url=self._text(item.get("absolute_url")),
                ats=self.name,
                external_id=str(job_id) if job_id is not None else "",
                posted_at=self._text(item.get("updated_at")) or self._now(),
            ))

        logger.info(f"[greenhouse/{handle}] Fetched {len(jobs)} jobs")
        return jobs
