"""Static list of ATS feeds to poll, one SourceDescriptor per (provider, company)."""

from models import SourceDescriptor


def _sources(provider: str, handles: list[str]) -> list[SourceDescriptor]:
    return [SourceDescriptor(provider, handle) for handle in handles]


ATS_SOURCES = [
    *_sources("greenhouse", [
        "stripe", "datadog", "airbnb", "gitlab", "coinbase", "robinhood", "figma",
        "discord", "plaid", "affirm", "benchling", "gusto", "chime", "brex",
        "amplitude", "airtable", "segment", "dropbox", "doordash", "instacart",
        "grubhub", "lyft", "squarespace", "etsy", "pinterest", "reddit", "twitch",
        "uber", "asana", "atlassian", "autodesk", "duolingo", "flexport",
        "hashicorp", "hudl", "hubspot", "intercom", "databricks", "snowflake",
        "confluent", "cockroachlabs", "mongodb", "elastic", "cloudflare", "fastly",
        "netlify", "vercel", "render", "fly", "planetscale", "supabase", "neon",
        "retool", "postman", "miro", "canva", "grammarly", "coursera", "udemy",
        "calm", "headspace", "peloton", "strava", "allbirds", "warbyparker",
        "glossier", "sweetgreen",
    ]),
    *_sources("lever", ["metabase"]),
    *_sources("smartrecruiters", [
        "devoteam", "vestiaire-collective", "aircall", "contentsquare", "dataiku",
        "doctolib", "deezer", "blablacar", "leboncoin", "meero", "alan", "qonto",
        "shift-technology", "swile", "spendesk", "ledger", "ivalua", "mirakl",
        "algolia", "criteo",
    ]),
    SourceDescriptor(
        "workday", "nvidia",
        provider_extra={"domain": "wd5", "site_id": "NVIDIAExternalCareerSite"},
    ),
    *_sources("ashby", [
        "notion", "linear", "zapier", "replit", "ramp", "deel", "vercel", "temporal",
    ]),
]


def load_sources(entries: list[dict]) -> list[SourceDescriptor]:
    """Build descriptors from settings entries like {"provider": ..., "company": ...}."""
    sources = []
    for entry in entries:
        sources.append(SourceDescriptor(
            provider=(entry.get("provider") or "").lower(),
            company_handle=entry.get("company", ""),
            provider_extra={str(k): str(v) for k, v in (entry.get("extra") or {}).items()},
        ))
    return sources
