"""Rule-based job classification.

classify() is a pure function: no network, no storage. Each axis is a
Tagger stage that names the stages it reads, and the pipeline runs them in
dependency order. A stage that raises is logged and falls back to its
default, so one bad rule never blanks the whole record.
"""

import html
import logging
from dataclasses import dataclass, field
from typing import Callable

from bs4 import BeautifulSoup

import taxonomy
from models import to_utc_iso
from taxonomy import compile_terms, fold

logger = logging.getLogger(__name__)


def _compile_rules(rules):
    return [(rule.label, rule.compile()) for rule in rules]


_INDUSTRY = _compile_rules(taxonomy.INDUSTRY_RULES)
_TECHNOLOGY = _compile_rules(taxonomy.TECHNOLOGY_RULES)
_SKILL = _compile_rules(taxonomy.SKILL_RULES)
_EMPLOYMENT = _compile_rules(taxonomy.EMPLOYMENT_RULES)
_ROLE_FUNCTION = _compile_rules(taxonomy.ROLE_FUNCTION_RULES)

_INTERNSHIP_CONFLICT = compile_terms(taxonomy.INTERNSHIP_CONFLICT_TERMS)
_SENIOR_OR_LEAD = compile_terms(("senior", "lead"))

_REMOTE = compile_terms(taxonomy.REMOTE_TERMS)
_HYBRID = compile_terms(taxonomy.HYBRID_TERMS)
_OFFICE = compile_terms(taxonomy.OFFICE_TERMS)
_ONSITE = compile_terms(taxonomy.ONSITE_TERMS)

_LEAD = compile_terms(taxonomy.LEAD_TERMS)
_SENIOR = compile_terms(taxonomy.SENIOR_TERMS)
_MID = compile_terms(taxonomy.MID_TERMS)
_ENTRY = compile_terms(taxonomy.ENTRY_TERMS)
_INTERN_TITLE = compile_terms(taxonomy.INTERN_TITLE_TERMS, taxonomy.INTERN_EXCLUSIONS)
_INTERN_BODY = compile_terms(taxonomy.INTERN_BODY_TERMS, taxonomy.INTERN_EXCLUSIONS)
_STUDENT = compile_terms(taxonomy.STUDENT_TERMS)

_ENGINEERING_BODY = compile_terms(taxonomy.ENGINEERING_BODY_TERMS)
_SALES_TITLE = compile_terms(taxonomy.SALES_TITLE_TERMS)
_SALES_BODY = compile_terms(taxonomy.SALES_BODY_TERMS)
_LANGUAGE_TITLE = [(compile_terms(terms), langs) for terms, langs in taxonomy.LANGUAGE_TITLE_RULES]


def html_to_text(value: str) -> str:
    """Plain text from a description that may be HTML, or HTML-escaped HTML."""
    if not value:
        return ""
    text = html.unescape(value)
    if "<" in text:
        text = BeautifulSoup(text, "html.parser").get_text(separator=" ", strip=True)
    return text


@dataclass
class JobText:
    """Normalized inputs shared by every stage."""
    title: str
    body: str  # title + description + summary
    company: str
    location: str
    level_hint: str
    remote_policy: str
    raw: str  # un-folded title + description, for salary figures

    @classmethod
    def build(cls, title, description, company="", location="", hints=None) -> "JobText":
        hints = hints or {}
        plain = html_to_text(description or "")
        summary = hints.get("summary") or ""
        return cls(
            title=fold(title or ""),
            body=fold(f"{title or ''} {plain} {summary}"),
            company=fold(company or ""),
            location=fold(location or ""),
            level_hint=fold(hints.get("level") or ""),
            remote_policy=fold(hints.get("remote_policy") or ""),
            raw=f"{title or ''} {plain} {summary}",
        )


def _labels(rules, text: str) -> list[str]:
    found = []
    for label, pattern in rules:
        if label not in found and pattern.search(text):
            found.append(label)
    return found


# ---------------------------------------------------------------------------
# Stages. Each takes the JobText and the results of earlier stages.
# ---------------------------------------------------------------------------


def tag_seniority(text: JobText, results: dict) -> list[str]:
    """Strict cascade, first match wins. Always a single label."""
    full = f"{text.body} {text.level_hint}"
    if _LEAD.search(full):
        return ["lead"]
    if _SENIOR.search(text.title) or (_SENIOR.search(full) and taxonomy.SENIOR_YEARS.search(full)):
        return ["senior"]
    if _MID.search(full) or taxonomy.MID_YEARS.search(full):
        return ["mid"]
    if _ENTRY.search(full) or taxonomy.ENTRY_YEARS.search(full):
        return ["entry"]
    if _INTERN_TITLE.search(text.title) or (_INTERN_BODY.search(full) and _STUDENT.search(full)):
        return ["internship"]
    return [taxonomy.DEFAULT_SENIORITY]


def tag_employment_types(text: JobText, results: dict) -> list[str]:
    types = _labels(_EMPLOYMENT, text.body)
    if "internship" in types:
        seniority = results.get("experience_levels") or []
        if (
            _INTERNSHIP_CONFLICT.search(text.title)
            or "senior" in seniority
            or "lead" in seniority
            or _SENIOR_OR_LEAD.search(text.level_hint)
        ):
            types.remove("internship")
    return types or [taxonomy.DEFAULT_EMPLOYMENT_TYPE]


def tag_work_locations(text: JobText, results: dict) -> list[str]:
    full = f"{text.body} {text.remote_policy} {text.location}"
    locations = []
    if _REMOTE.search(full):
        locations.append("remote")
    if _HYBRID.search(full) or ("remote" in locations and _OFFICE.search(full)):
        locations.append("hybrid")
    if _ONSITE.search(full) or (not locations and text.location):
        locations.append("on-site")
    return locations or [taxonomy.DEFAULT_WORK_LOCATION]


def tag_industries(text: JobText, results: dict) -> list[str]:
    return _labels(_INDUSTRY, f"{text.body} {text.company}")


def tag_technologies(text: JobText, results: dict) -> list[str]:
    return _labels(_TECHNOLOGY, text.body)


def tag_skills(text: JobText, results: dict) -> list[str]:
    return _labels(_SKILL, text.body)


def tag_salary_range(text: JobText, results: dict) -> str | None:
    for pattern in taxonomy.SALARY_PATTERNS:
        match = pattern.search(text.raw)
        if match:
            return match.group(0)
    return None


def tag_role_function(text: JobText, results: dict) -> str:
    for label, pattern in _ROLE_FUNCTION:
        if pattern.search(text.title):
            return label
    if _ENGINEERING_BODY.search(text.body) and not _SALES_TITLE.search(text.title):
        return "engineering"
    if _SALES_BODY.search(text.body):
        return "sales"
    return taxonomy.DEFAULT_ROLE_FUNCTION


def tag_language_requirements(text: JobText, results: dict) -> list[str]:
    languages = []
    for pattern, langs in _LANGUAGE_TITLE:
        if pattern.search(text.title):
            languages.extend(lang for lang in langs if lang not in languages)
    if languages:
        return languages
    for pattern in taxonomy.LANGUAGE_REQUIREMENT_PATTERNS:
        match = pattern.search(text.body)
        if match:
            lang = taxonomy.LANGUAGE_NAMES.get(match.group(1))
            if lang and lang not in languages:
                languages.append(lang)
    return languages


def score_quality(text: JobText, results: dict) -> int:
    """0-100 completeness score over the other stages' output."""
    weights = taxonomy.QUALITY_WEIGHTS
    score = 0
    for key in ("technologies", "industries", "skills", "work_locations"):
        if results.get(key):
            score += weights[key]
    if results.get("role_function") not in (None, taxonomy.DEFAULT_ROLE_FUNCTION):
        score += weights["role_function"]
    levels = results.get("experience_levels") or []
    if levels and levels[0] != taxonomy.DEFAULT_SENIORITY:
        score += weights["experience_levels"]
    return score


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Tagger:
    name: str
    func: Callable
    requires: tuple = ()
    default: Callable = list  # factory for the fallback value


DEFAULT_STAGES = (
    Tagger("experience_levels", tag_seniority, default=lambda: [taxonomy.DEFAULT_SENIORITY]),
    Tagger("employment_types", tag_employment_types, requires=("experience_levels",),
           default=lambda: [taxonomy.DEFAULT_EMPLOYMENT_TYPE]),
    Tagger("work_locations", tag_work_locations, default=lambda: [taxonomy.DEFAULT_WORK_LOCATION]),
    Tagger("industries", tag_industries),
    Tagger("technologies", tag_technologies),
    Tagger("skills", tag_skills),
    Tagger("salary_range", tag_salary_range, default=lambda: None),
    Tagger("role_function", tag_role_function, default=lambda: taxonomy.DEFAULT_ROLE_FUNCTION),
    Tagger("language_requirements", tag_language_requirements),
    Tagger(
        "enrichment_quality",
        score_quality,
        requires=(
            "experience_levels", "employment_types", "work_locations", "industries",
            "technologies", "skills", "role_function",
        ),
        default=lambda: 0,
    ),
)


def order_stages(stages) -> list[Tagger]:
    """Topological order over `requires`, keeping declaration order among peers.

    Raises ValueError on an unknown dependency or a cycle.
    """
    by_name = {stage.name: stage for stage in stages}
    ordered: list[Tagger] = []
    state: dict[str, str] = {}

    def visit(stage: Tagger):
        mark = state.get(stage.name)
        if mark == "done":
            return
        if mark == "visiting":
            raise ValueError(f"Tagger dependency cycle at {stage.name}")
        state[stage.name] = "visiting"
        for dep in stage.requires:
            if dep not in by_name:
                raise ValueError(f"Tagger {stage.name} requires unknown stage {dep}")
            visit(by_name[dep])
        state[stage.name] = "done"
        ordered.append(stage)

    for stage in stages:
        visit(stage)
    return ordered


_DEFAULT_ORDER = order_stages(DEFAULT_STAGES)


@dataclass
class Classification:
    experience_levels: list = field(default_factory=list)
    employment_types: list = field(default_factory=list)
    work_locations: list = field(default_factory=list)
    industries: list = field(default_factory=list)
    technologies: list = field(default_factory=list)
    skills: list = field(default_factory=list)
    salary_range: str | None = None
    role_function: str = taxonomy.DEFAULT_ROLE_FUNCTION
    language_requirements: list = field(default_factory=list)
    enrichment_quality: int = 0
    failed_stages: list = field(default_factory=list)

    @property
    def type(self) -> str:
        return self.employment_types[0] if self.employment_types else taxonomy.DEFAULT_EMPLOYMENT_TYPE

    @property
    def remote(self) -> str:
        if "remote" in self.work_locations:
            return "remote"
        return self.work_locations[0] if self.work_locations else taxonomy.DEFAULT_WORK_LOCATION

    @property
    def seniority(self) -> str:
        return self.experience_levels[0] if self.experience_levels else taxonomy.DEFAULT_SENIORITY

    def to_update(self, version: str, now) -> dict:
        """Fields written onto a job document. Everything else on the record is left alone."""
        return {
            "employment_types": self.employment_types,
            "work_locations": self.work_locations,
            "experience_levels": self.experience_levels,
            "industries": self.industries,
            "technologies": self.technologies,
            "skills": self.skills,
            "salary_range": self.salary_range,
            "role_function": self.role_function,
            "language_requirements": self.language_requirements,
            "enrichment_quality": self.enrichment_quality,
            "type": self.type,
            "remote": self.remote,
            "seniority": self.seniority,
            "enriched_at": to_utc_iso(now),
            "enriched_version": version,
        }


def classify(title, description, company="", location="", hints=None, stages=None) -> Classification:
    """Classify one posting. `hints` may carry externally supplied summary, level and remote_policy."""
    text = JobText.build(title, description, company, location, hints)
    ordered = _DEFAULT_ORDER if stages is None else order_stages(stages)
    results: dict = {}
    failed = []
    for stage in ordered:
        try:
            results[stage.name] = stage.func(text, results)
        except Exception as e:
            logger.warning(f"[classify] Stage {stage.name} failed for {title!r}: {e}")
            results[stage.name] = stage.default()
            failed.append(stage.name)
    known = {k: v for k, v in results.items() if k in Classification.__dataclass_fields__}
    return Classification(**known, failed_stages=failed)
