"""Workday placeholder.

Workday posting ids come from externalPath and change between listings, so
re-fetches would not collapse onto the same records. The fetcher stays
unimplemented until a stable id is available; the runner reports these
tasks as skipped.
"""

import logging

from models import RawJob
from sources.base import BaseFetcher

logger = logging.getLogger(__name__)


class WorkdayFetcher(BaseFetcher):
    name = "workday"
    supported = False

    def fetch(self, handle: str, extra: dict | None = None) -> list[RawJob]:
        logger.info(f"[workday/{handle}] Skipping: no stable externalId")
        return []
