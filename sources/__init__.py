from sources.ashby import AshbyFetcher
from sources.base import BaseFetcher
from sources.greenhouse import GreenhouseFetcher
from sources.lever import LeverFetcher
from sources.smartrecruiters import SmartRecruitersFetcher
from sources.workday import WorkdayFetcher

FETCHERS: dict[str, BaseFetcher] = {
    f.name: f
    for f in (
        GreenhouseFetcher(),
        LeverFetcher(),
        SmartRecruitersFetcher(),
        AshbyFetcher(),
        WorkdayFetcher(),
    )
}


def get_fetcher(provider: str, fetchers: dict[str, BaseFetcher] | None = None) -> BaseFetcher:
    """Look up the fetcher for a provider. Raises ValueError for unknown providers."""
    table = FETCHERS if fetchers is None else fetchers
    try:
        return table[provider]
    except KeyError:
        raise ValueError(f"No fetcher registered for provider: {provider}") from None
