import logging

from models import RawJob
from sources.base import BaseFetcher

logger = logging.getLogger(__name__)

API_BASE = "https://api.ashbyhq.com/posting-api/job-board/{board}"


class AshbyFetcher(BaseFetcher):
    name = "ashby"

    def fetch(self, handle: str, extra: dict | None = None) -> list[RawJob]:
        url = API_BASE.format(board=self._quote(handle))
        data = self._get_json(url, handle)
        if not isinstance(data, dict):
            return []

        jobs = []
        for item in data.get("jobs") or []:
            if not isinstance(item, dict):
                continue
            jobs.append(RawJob(
                title=self._text(item.get("title")),
                company=self._company_name(handle),
                location=self._text(item.get("locationName")) or self._text(item.get("location")),
                description=self._text(item.get("descriptionHtml")) or self._text(item.get("description")),
                skills=[],
                apply_url=self._text(item.get("jobUrl")),
                ats=self.name,
                external_id=self._text(item.get("id")),
                posted_at=(
                    self._text(item.get("publishedAt"))
                    or self._text(item.get("publishedDate"))
                    or self._now()
                ),
            ))

        logger.info(f"[ashby/{handle}] Fetched {len(jobs)} jobs")
        return jobs
