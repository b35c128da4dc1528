"""Rule tables for job classification.

All terms are written lower-case and without diacritics, because the
classifier folds text the same way before matching. Inside a term a hyphen
matches "-", whitespace or nothing ("full-time" also matches "fulltime" and
"full time"). A space matches any run of whitespace.

A term only matches as a whole word. Exclusions are phrases that veto a
match beginning at the same position.
"""

import re
import unicodedata
from dataclasses import dataclass

TAXONOMY_VERSION = "2.2"


def fold(text: str) -> str:
    """Lower-case and strip diacritics ('Télétravail' -> 'teletravail')."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return unicodedata.normalize("NFC", stripped).lower()


@dataclass(frozen=True)
class TagRule:
    label: str
    terms: tuple
    exclusions: tuple = ()

    def compile(self) -> re.Pattern:
        return compile_terms(self.terms, self.exclusions)


def _term_pattern(term: str) -> str:
    parts = []
    for ch in term:
        if ch == "-":
            parts.append(r"[\s-]?")
        elif ch == " ":
            parts.append(r"\s+")
        else:
            parts.append(re.escape(ch))
    return "".join(parts)


def compile_terms(terms, exclusions=()) -> re.Pattern:
    """Whole-word alternation over terms, longest first, with optional veto phrases."""
    body = "|".join(_term_pattern(t) for t in sorted(terms, key=len, reverse=True))
    guard = ""
    if exclusions:
        vetoes = "|".join(_term_pattern(e) for e in sorted(exclusions, key=len, reverse=True))
        guard = rf"(?!(?:{vetoes})(?!\w))"
    return re.compile(rf"(?<!\w){guard}(?:{body})(?!\w)")


# ---------------------------------------------------------------------------
# Industry
# ---------------------------------------------------------------------------

INDUSTRY_RULES = [
    TagRule("tech", (
        "software", "tech", "saas", "startup", "digital", "platform", "app", "cloud",
        "web", "mobile", "ai", "machine learning", "developer", "engineer",
        "programmer", "coding",
    ), exclusions=("technician", "application")),
    TagRule("finance", (
        "bank", "finance", "fintech", "payment", "insurance", "trading", "crypto",
        "blockchain", "investment",
    ), exclusions=("bankrupt", "bankruptcy")),
    TagRule("ecommerce", (
        "e-commerce", "retail", "marketplace", "shop", "store",
    ), exclusions=("shopping", "shop floor")),
    TagRule("healthcare", (
        "health", "medical", "healthcare", "biotech", "pharma", "hospital", "clinic",
        "patient",
    ), exclusions=("healthy", "health and safety")),
    TagRule("education", (
        "education", "edtech", "learning", "university", "school", "training", "course",
    ), exclusions=("training data", "course of")),
    TagRule("media", (
        "media", "entertainment", "gaming", "streaming", "content", "music", "video",
        "news", "publisher",
    )),
    TagRule("marketing", (
        "marketing", "advertising", "agency", "brand", "social media", "seo", "sem",
    ), exclusions=("brand new",)),
    TagRule("consulting", (
        "consulting", "consultant", "advisory", "strategy",
    )),
]

# ---------------------------------------------------------------------------
# Technology (label is the canonical spelling, terms include synonyms)
# ---------------------------------------------------------------------------


def _techs(*names: str) -> list[TagRule]:
    return [TagRule(name, (name,)) for name in names]


TECHNOLOGY_RULES = [
    # Languages
    *_techs("python", "javascript", "typescript", "java"),
    TagRule("go", ("go", "golang")),
    *_techs("rust", "c++", "c#", "php", "ruby", "swift", "kotlin", "scala", "r", "sql"),
    # Frontend
    *_techs("react", "vue", "angular", "svelte"),
    TagRule("next.js", ("next.js", "nextjs")),
    *_techs("nuxt", "tailwind", "bootstrap", "html", "css", "sass", "webpack"),
    # Backend
    TagRule("node.js", ("node.js", "nodejs")),
    *_techs("express", "django", "flask", "fastapi", "spring", "laravel", "rails"),
    TagRule(".net", (".net", "dotnet")),
    *_techs("graphql", "rest", "api"),
    # Cloud and delivery
    *_techs("aws", "azure", "gcp", "google cloud", "docker"),
    TagRule("kubernetes", ("kubernetes", "k8s")),
    *_techs("terraform", "ansible", "jenkins", "gitlab", "github"),
    TagRule("ci/cd", ("ci/cd", "cicd")),
    # Databases
    TagRule("postgresql", ("postgresql", "postgres")),
    *_techs(
        "mysql", "mongodb", "redis", "elasticsearch", "cassandra", "dynamodb",
        "firestore", "firebase", "supabase",
    ),
    # CRM
    *_techs("salesforce", "hubspot", "crm", "zendesk", "intercom", "pipedrive"),
    # ERP
    *_techs("sap", "oracle", "erp", "workday", "servicenow"),
    # Design
    *_techs(
        "figma", "sketch", "adobe", "photoshop", "illustrator", "xd", "invision",
        "framer", "canva",
    ),
    # Data
    *_techs(
        "tableau", "powerbi", "looker", "databricks", "snowflake", "airflow", "spark",
        "hadoop", "pandas", "numpy",
    ),
    # AI
    *_techs(
        "tensorflow", "pytorch", "scikit-learn", "langchain", "openai",
        "machine learning", "deep learning", "nlp", "computer vision",
    ),
]

# ---------------------------------------------------------------------------
# Skills (label is the slug)
# ---------------------------------------------------------------------------

SKILL_RULES = [
    TagRule("seo", ("seo",)),
    TagRule("sem", ("sem", "ppc")),
    TagRule("content-marketing", ("content marketing",)),
    TagRule("email-marketing", ("email marketing",)),
    TagRule("social-media", ("social media",)),
    TagRule("analytics", ("analytics", "google analytics")),
    TagRule("product-management", ("product management", "product manager")),
    TagRule("project-management", ("project management", "pmp")),
    TagRule("agile", ("agile", "scrum")),
    TagRule("sales", ("sales",)),
    TagRule("business-development", ("business development", "bd")),
    TagRule("customer-success", ("customer success",)),
    TagRule("ux-design", ("ui/ux", "ux design")),
    TagRule("ui-design", ("ui design",)),
    TagRule("graphic-design", ("graphic design",)),
    TagRule("communication", ("communication", "communication skills")),
    TagRule("leadership", ("leadership", "team lead")),
    TagRule("teamwork", ("teamwork", "collaboration")),
    TagRule("problem-solving", ("problem solving",)),
]

# ---------------------------------------------------------------------------
# Employment type
# ---------------------------------------------------------------------------

EMPLOYMENT_RULES = [
    TagRule("full-time", ("full-time", "permanent", "cdi")),
    TagRule("part-time", ("part-time", "temps partiel")),
    TagRule("contract", (
        "contract", "contractor", "freelance", "consultant", "cdd", "fixed-term",
        "temporary",
    )),
    TagRule("internship", (
        "intern", "internship", "stage", "alternance", "apprenticeship", "apprenti",
    ), exclusions=("internal", "international")),
]

DEFAULT_EMPLOYMENT_TYPE = "full-time"

# Any of these in the title rules out an internship
INTERNSHIP_CONFLICT_TERMS = (
    "senior", "lead", "principal", "staff", "director", "manager", "head of", "vp",
    "chief",
)

# ---------------------------------------------------------------------------
# Work location
# ---------------------------------------------------------------------------

REMOTE_TERMS = ("remote", "work from home", "wfh", "distributed", "teletravail", "telecommute")
HYBRID_TERMS = ("hybrid", "flex")
OFFICE_TERMS = ("office", "on-site")
ONSITE_TERMS = ("on-site", "onsite", "in-office", "au bureau", "in-person")

DEFAULT_WORK_LOCATION = "on-site"

# ---------------------------------------------------------------------------
# Seniority cascade, evaluated top to bottom
# ---------------------------------------------------------------------------

LEAD_TERMS = (
    "lead", "principal", "staff engineer", "staff software", "staff developer",
    "architect", "director", "vp", "vice president", "head of", "chief", "cto",
    "ceo", "cfo", "coo", "c-level", "founding",
)
SENIOR_TERMS = ("senior", "sr", "experimente")
MID_TERMS = ("mid", "mid-level", "intermediate", "confirme", "medior")
ENTRY_TERMS = ("entry", "entry-level", "junior", "jr", "graduate", "debutant", "associate")
INTERN_TITLE_TERMS = ("intern", "internship", "stage", "apprenti", "alternance")
INTERN_BODY_TERMS = ("intern", "internship", "stage")
STUDENT_TERMS = ("student", "universite", "university", "ecole", "school")
INTERN_EXCLUSIONS = ("internal", "international")

# "5+ years" through "10+ years"
SENIOR_YEARS = re.compile(r"(?<![\d.])(?:[5-9]|10)\s*\+\s*(?:years?|yrs?)(?!\w)")
# "2-5", "3-5", "3-7", "4-6" years, hyphen or en dash
MID_YEARS = re.compile(r"(?<![\d.])(?:2\s*[-–]\s*5|3\s*[-–]\s*[57]|4\s*[-–]\s*6)\s*(?:years?|yrs?)(?!\w)")
# "0-1", "0-2", "1-2", "1-3" years
ENTRY_YEARS = re.compile(r"(?<![\d.])(?:0\s*[-–]\s*[12]|1\s*[-–]\s*[23])\s*(?:years?|yrs?)(?!\w)")

DEFAULT_SENIORITY = "mid"

# ---------------------------------------------------------------------------
# Role function (title families, first match wins)
# ---------------------------------------------------------------------------

ROLE_FUNCTION_RULES = [
    TagRule("sales", (
        "account executive", "ae", "sales", "bdr", "sdr",
        "business development representative", "sales representative",
        "sales manager", "revenue", "partnerships", "account manager",
        "client executive", "commercial", "quota",
    )),
    TagRule("engineering", (
        "engineer", "developer", "developpeur", "swe", "sre", "devops", "backend",
        "frontend", "full-stack", "software", "programmer", "coder", "architect",
        "platform", "infrastructure",
    )),
    TagRule("data", (
        "data scientist", "data engineer", "data analyst", "machine learning",
        "ml engineer", "ai engineer", "analytics", "bi", "business intelligence",
        "statistician", "nlp", "computer vision",
    )),
    TagRule("product", (
        "product manager", "product owner", "product lead", "pm", "chief product",
        "vp product", "head of product",
    )),
    TagRule("design", (
        "designer", "design", "ux", "ui", "creative", "graphic", "visual",
        "brand designer", "product designer",
    )),
    TagRule("marketing", (
        "marketing", "growth", "content", "seo", "sem", "brand", "communications",
        "pr", "public relations", "social media", "demand gen", "campaign",
    )),
    TagRule("consulting", (
        "consultant", "consulting", "advisory", "advisor", "solution architect",
        "implementation", "functional consultant", "technical consultant",
    )),
    TagRule("hr", (
        "hr", "human resources", "recruiter", "recruiting", "talent", "people ops",
        "people operations", "hrbp", "compensation", "benefits", "l&d",
        "learning and development",
    )),
    TagRule("finance", (
        "finance", "financial", "accountant", "accounting", "controller", "cfo",
        "treasury", "audit", "tax", "fp&a", "financial planning",
    )),
    TagRule("operations", (
        "operations", "ops", "supply chain", "logistics", "warehouse", "procurement",
        "vendor", "sourcing", "fleet", "delivery",
    )),
    TagRule("support", (
        "customer support", "customer service", "support specialist",
        "customer success", "cs", "helpdesk", "technical support", "support engineer",
    )),
    TagRule("legal", (
        "legal", "lawyer", "attorney", "counsel", "paralegal", "compliance",
        "regulatory", "contracts", "privacy", "gdpr",
    )),
]

ENGINEERING_BODY_TERMS = (
    "coding", "programming", "software development", "api", "backend", "frontend",
    "full-stack",
)
SALES_TITLE_TERMS = ("sales", "marketing", "account executive")
SALES_BODY_TERMS = (
    "close deals", "quota", "pipeline", "crm", "revenue target", "sales cycle",
    "prospecting",
)

DEFAULT_ROLE_FUNCTION = "other"

# ---------------------------------------------------------------------------
# Language requirements
# ---------------------------------------------------------------------------

# (terms, languages) matched against the title
LANGUAGE_TITLE_RULES = [
    (("scandinavian", "nordic"), ("swedish", "norwegian", "danish")),
    (("swedish", "svenska"), ("swedish",)),
    (("norwegian", "norsk"), ("norwegian",)),
    (("danish", "dansk"), ("danish",)),
    (("finnish", "suomi"), ("finnish",)),
    (("german", "deutsch", "deutschsprachig"), ("german",)),
    (("french", "francais", "francophone"), ("french",)),
    (("dutch", "nederlands", "flemish"), ("dutch",)),
    (("italian", "italiano"), ("italian",)),
    (("spanish", "espanol"), ("spanish",)),
    (("portuguese", "portugues"), ("portuguese",)),
    (("polish", "polski"), ("polish",)),
    (("japanese", "nihongo", "日本語"), ("japanese",)),
    (("korean", "hangul", "한국어"), ("korean",)),
    (("chinese", "mandarin", "cantonese", "普通话", "中文"), ("chinese",)),
    (("arabic", "العربية"), ("arabic",)),
]

# Explicit requirement phrases in the body; group 1 is the language word
LANGUAGE_REQUIREMENT_PATTERNS = [
    re.compile(r"fluency\s+in\s+(\w+)\s+(?:is\s+)?(?:required|mandatory|essential)"),
    re.compile(r"(\w+)\s+language\s+(?:is\s+)?(?:required|mandatory|essential|must)"),
    re.compile(r"must\s+speak\s+(\w+)"),
    re.compile(r"native\s+(\w+)\s+speaker"),
]

LANGUAGE_NAMES = {
    "german": "german", "deutsch": "german",
    "french": "french", "francais": "french",
    "spanish": "spanish", "espanol": "spanish",
    "italian": "italian", "italiano": "italian",
    "dutch": "dutch", "swedish": "swedish",
    "norwegian": "norwegian", "danish": "danish",
    "finnish": "finnish", "polish": "polish",
    "portuguese": "portuguese", "russian": "russian",
    "japanese": "japanese", "korean": "korean",
    "chinese": "chinese", "mandarin": "chinese",
    "arabic": "arabic",
}

# ---------------------------------------------------------------------------
# Salary ranges, first match wins; matched on the un-folded text
# ---------------------------------------------------------------------------

SALARY_PATTERNS = [
    re.compile(r"[$€£]\d{2,3}k\s?[-–]\s?[$€£]\d{2,3}k", re.IGNORECASE),
    re.compile(r"[$€£]\d{1,3}[,.]\d{3}\s?[-–]\s?[$€£]\d{1,3}[,.]\d{3}", re.IGNORECASE),
    re.compile(r"\d{2,3}k\s?[-–]\s?\d{2,3}k\s?(?:USD|EUR|GBP|euros|dollars)", re.IGNORECASE),
]

# ---------------------------------------------------------------------------
# Completeness score weights
# ---------------------------------------------------------------------------

QUALITY_WEIGHTS = {
    "technologies": 25,
    "role_function": 25,
    "industries": 15,
    "skills": 15,
    "experience_levels": 10,
    "work_locations": 10,
}
