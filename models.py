from dataclasses import dataclass, field
from datetime import datetime, timezone

PROVIDERS = ("greenhouse", "lever", "smartrecruiters", "ashby", "workday")

TASK_PENDING = "pending"
TASK_COMPLETED = "completed"
TASK_FAILED = "failed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc_iso(value: datetime) -> str:
    """Render a datetime as a second-precision UTC ISO string (sortable as text)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="seconds")


def parse_timestamp(value) -> datetime:
    """Parse a provider timestamp. Raises ValueError when it cannot be read."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Epoch milliseconds (Lever)
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Unreadable timestamp: {value!r}") from e
    if isinstance(value, str) and value.strip():
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise ValueError(f"Unreadable timestamp: {value!r}")


@dataclass(frozen=True)
class SourceDescriptor:
    provider: str  # one of PROVIDERS
    company_handle: str
    provider_extra: dict = field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self):
        if self.provider not in PROVIDERS:
            raise ValueError(f"Unknown ATS provider: {self.provider}")
        if not self.company_handle:
            raise ValueError("SourceDescriptor.company_handle cannot be empty")

    @property
    def label(self) -> str:
        return f"{self.provider}/{self.company_handle}"


@dataclass
class FetchTask:
    task_id: str
    source: SourceDescriptor
    status: str = TASK_PENDING
    retry_count: int = 0
    max_retries: int = 3
    created_at: datetime = field(default_factory=utcnow)
    completed_at: datetime | None = None
    error: str | None = None
    jobs_fetched: int = 0
    jobs_written: int = 0
    execution_id: str = ""
    skipped: bool = False

    def to_document(self) -> dict:
        return {
            "task_id": self.task_id,
            "provider": self.source.provider,
            "company": self.source.company_handle,
            "provider_extra": dict(self.source.provider_extra),
            "status": self.status,
            "retry_count": self.retry_count,
            "max_retries": self.max_retries,
            "created_at": to_utc_iso(self.created_at),
            "completed_at": to_utc_iso(self.completed_at) if self.completed_at else None,
            "error": self.error,
            "jobs_fetched": self.jobs_fetched,
            "jobs_written": self.jobs_written,
            "execution_id": self.execution_id,
            "skipped": self.skipped,
        }

    @classmethod
    def from_document(cls, doc: dict) -> "FetchTask":
        completed = doc.get("completed_at")
        return cls(
            task_id=doc["task_id"],
            source=SourceDescriptor(
                provider=doc["provider"],
                company_handle=doc["company"],
                provider_extra=doc.get("provider_extra") or {},
            ),
            status=doc.get("status", TASK_PENDING),
            retry_count=doc.get("retry_count", 0),
            max_retries=doc.get("max_retries", 3),
            created_at=parse_timestamp(doc["created_at"]) if doc.get("created_at") else utcnow(),
            completed_at=parse_timestamp(completed) if completed else None,
            error=doc.get("error"),
            jobs_fetched=doc.get("jobs_fetched", 0),
            jobs_written=doc.get("jobs_written", 0),
            execution_id=doc.get("execution_id", ""),
            skipped=doc.get("skipped", False),
        )


@dataclass
class RawJob:
    title: str
    company: str
    apply_url: str
    ats: str  # "greenhouse", "lever", etc.
    external_id: str = ""
    location: str = ""
    description: str = ""
    skills: list = field(default_factory=list)
    posted_at: str | int = ""  # as supplied by the provider (Lever: epoch ms); normalized on write


@dataclass
class JobRecord:
    job_id: str
    title: str
    company: str
    apply_url: str
    ats: str
    external_id: str = ""
    location: str = ""
    description: str = ""
    skills: list = field(default_factory=list)
    posted_at: datetime | None = None
    fetched_at: datetime | None = None
    employment_types: list = field(default_factory=list)
    work_locations: list = field(default_factory=list)
    experience_levels: list = field(default_factory=list)
    industries: list = field(default_factory=list)
    technologies: list = field(default_factory=list)
    salary_range: str | None = None
    role_function: str | None = None
    language_requirements: list = field(default_factory=list)
    enrichment_quality: int | None = None
    type: str | None = None
    remote: str | None = None
    seniority: str | None = None
    enriched_at: datetime | None = None
    enriched_version: str | None = None

    @classmethod
    def from_document(cls, job_id: str, doc: dict) -> "JobRecord":
        def _ts(key):
            return parse_timestamp(doc[key]) if doc.get(key) else None

        return cls(
            job_id=job_id,
            title=doc.get("title", ""),
            company=doc.get("company", ""),
            apply_url=doc.get("apply_url", ""),
            ats=doc.get("ats", ""),
            external_id=doc.get("external_id", ""),
            location=doc.get("location", ""),
            description=doc.get("description", ""),
            skills=doc.get("skills", []),
            posted_at=_ts("posted_at"),
            fetched_at=_ts("fetched_at"),
            employment_types=doc.get("employment_types", []),
            work_locations=doc.get("work_locations", []),
            experience_levels=doc.get("experience_levels", []),
            industries=doc.get("industries", []),
            technologies=doc.get("technologies", []),
            salary_range=doc.get("salary_range"),
            role_function=doc.get("role_function"),
            language_requirements=doc.get("language_requirements", []),
            enrichment_quality=doc.get("enrichment_quality"),
            type=doc.get("type"),
            remote=doc.get("remote"),
            seniority=doc.get("seniority"),
            enriched_at=_ts("enriched_at"),
            enriched_version=doc.get("enriched_version"),
        )
