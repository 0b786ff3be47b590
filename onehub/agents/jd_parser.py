"""
Job Description Parser.

Deterministic, format-aware extraction of requirement fields from pasted
JDs (vendor emails, ATS exports, recruiter emails). The LLM is only asked
for fields the rules could not find (job title, location), and its answer
never overrides a deterministic value.
"""

import logging
import re

from langchain_core.language_models import BaseChatModel

from onehub.errors import UpstreamError
from onehub.tools.groq_llm import complete, create_llm
from onehub.utils.parser import parse_field_response
from onehub.utils.validation import is_valid_rate

logger = logging.getLogger(__name__)

WORK_TYPES = {"onsite": "Onsite", "remote": "Remote", "hybrid": "Hybrid"}

# Closed-world dictionary: canonical name -> lowercase variants
SKILL_MAP: dict[str, list[str]] = {
    # Languages
    "JavaScript": ["javascript"],
    "TypeScript": ["typescript"],
    "Python": ["python"],
    "Java": ["java"],
    "C#": ["c#"],
    "Go": ["golang", "go language"],
    "Scala": ["scala"],
    # Backend / runtime
    "Node.js": ["node.js", "nodejs"],
    ".NET": [".net", "dotnet"],
    "Spring Boot": ["spring boot"],
    "Express.js": ["express.js", "expressjs"],
    # Frontend
    "React": ["react"],
    "Angular": ["angular"],
    "Vue.js": ["vue.js", "vuejs"],
    # Big data
    "PySpark": ["pyspark"],
    "Apache Spark": ["apache spark"],
    "Kafka": ["kafka"],
    "Hadoop": ["hadoop"],
    # Databases
    "SQL": ["sql"],
    "NoSQL": ["nosql"],
    "PostgreSQL": ["postgresql", "postgres"],
    "MySQL": ["mysql"],
    "SQL Server": ["sql server"],
    "Oracle": ["oracle"],
    "MongoDB": ["mongodb"],
    "Snowflake": ["snowflake"],
    "DB2": ["db2"],
    # Cloud
    "AWS": ["aws", "amazon web services"],
    "Azure": ["azure", "microsoft azure"],
    "GCP": ["gcp", "google cloud"],
    # DevOps / infra
    "Docker": ["docker"],
    "Kubernetes": ["kubernetes", "k8s"],
    "Terraform": ["terraform"],
    "Jenkins": ["jenkins"],
    "CI/CD": ["ci/cd", "cicd"],
    # Data / analytics
    "Airflow": ["airflow"],
    "Databricks": ["databricks"],
    "Tableau": ["tableau"],
    "Power BI": ["power bi"],
    # Testing
    "JUnit": ["junit"],
    "PyTest": ["pytest"],
    "Jest": ["jest"],
}

_SKILL_PATTERNS = {
    skill: [re.compile(rf"(?<![a-z0-9]){re.escape(v)}(?![a-z0-9])") for v in variants]
    for skill, variants in SKILL_MAP.items()
}

ROLE_RE = re.compile(r"\b(engineer|developer|architect|analyst|manager|lead|consultant)\b", re.IGNORECASE)
COMPANY_SUFFIX_RE = re.compile(r"\b(inc|llc|corp|ltd)\b\.?", re.IGNORECASE)
VENDOR_COMPANY_RE = re.compile(r"\b(inc|llc|corp|ltd|technologies|consulting)\b", re.IGNORECASE)
SKILL_HEADING_RE = re.compile(
    r"skills|experience|requirements|responsibilities|competencies|role description", re.IGNORECASE
)
SIGNATURE_RE = re.compile(r"thanks|regards|look forward", re.IGNORECASE)
DURATION_RE = re.compile(r"\b\d+\+?\s*(months?|years?|weeks?)\b", re.IGNORECASE)
EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_RE = re.compile(r"(\(\d{3}\)|\d{3})[-.\s]?\d{3}[-.\s]?\d{4}(\s*(x|\*)\s*\d+)?")
CONTACT_RE = re.compile(r"^[A-Z][a-z]+(\s+[A-Z][a-z]+)+")

LLM_PROMPT = """Extract ONLY: {fields}
Rules:
- JSON only
- Do not guess
- Use null if missing

Input:
{text}
"""


def empty_result() -> dict:
    return {
        "job_title": None,
        "hiring_company": None,
        "end_client": None,
        "key_skills": [],
        "rate": None,
        "work_location_type": None,
        "location": None,
        "duration": None,
        "vendor": None,
        "vendor_contact": None,
        "vendor_phone": None,
        "vendor_email": None,
    }


def normalize_lines(text: str) -> list[str]:
    return [line.strip() for line in text.replace("\r", "").split("\n") if line.strip()]


def detect_format(lines: list[str]) -> str:
    """vendor / ats / email / unknown."""
    if any(re.search(r"role\s*name\s*:", line, re.IGNORECASE) for line in lines):
        return "vendor"
    if any(re.search(r"job\s*title\s*:", line, re.IGNORECASE) for line in lines):
        return "ats"
    if any(line == "--" or re.search(r"thanks|regards", line, re.IGNORECASE) for line in lines):
        return "email"
    return "unknown"


def is_signature_line(line: str) -> bool:
    return line == "--" or bool(SIGNATURE_RE.search(line))


def extract_job_title(lines: list[str], fmt: str) -> str | None:
    for line in lines[:12]:
        if line.endswith(":"):
            continue

        if fmt == "vendor":
            m = re.search(r"role\s*name\s*:\s*(.+)", line, re.IGNORECASE)
            if m:
                return re.sub(r"-\s*\d+$", "", m.group(1)).strip()

        m = re.search(r"job\s*title\s*:\s*(.+)", line, re.IGNORECASE)
        if m:
            return m.group(1).strip()

    for line in lines[:6]:
        if len(line.split()) <= 8 and ROLE_RE.search(line) and not COMPANY_SUFFIX_RE.search(line):
            return line

    return None


def extract_location(lines: list[str]) -> tuple[str | None, str | None]:
    """Returns (location, work_location_type)."""
    for line in lines[:15]:
        m = re.search(r"location\s*:\s*([^()]+?)\s*\((onsite|remote|hybrid)\)", line, re.IGNORECASE)
        if m:
            return m.group(1).strip(), WORK_TYPES[m.group(2).lower()]

        m = re.search(r"location\s*:\s*([A-Za-z\s]+,\s*[A-Z]{2})\b", line, re.IGNORECASE)
        if m:
            return m.group(1).strip(), None

    for line in lines:
        m = re.search(r"(hybrid|remote|onsite)\s*\(([^)]+)\)", line, re.IGNORECASE)
        if m:
            return m.group(2).strip(), WORK_TYPES[m.group(1).lower()]

    return None, None


def extract_duration(text: str) -> str | None:
    m = DURATION_RE.search(text)
    return m.group(0) if m else None


def _labelled(lines: list[str], label: str) -> str | None:
    pattern = re.compile(rf"^{label}\s*:\s*(.+)$", re.IGNORECASE)
    for line in lines:
        m = pattern.match(line)
        if m:
            return m.group(1).strip()
    return None


def match_skills(text: str) -> list[str]:
    lower = text.lower()
    return [skill for skill, patterns in _SKILL_PATTERNS.items() if any(p.search(lower) for p in patterns)]


def extract_skills(lines: list[str]) -> list[str]:
    """Dictionary skills mentioned after a skills-like heading, up to the signature."""
    found: list[str] = []
    in_zone = False

    for line in lines:
        if is_signature_line(line):
            break

        if SKILL_HEADING_RE.search(line):
            in_zone = True
            # "Skills: Python, AWS" carries skills on the heading line itself
            _, sep, rest = line.partition(":")
            if sep:
                line = rest

        if in_zone:
            for skill in match_skills(line):
                if skill not in found:
                    found.append(skill)

    return found


def extract_vendor_info(lines: list[str]) -> dict:
    """Vendor details from the signature block."""
    idx = next((i for i, line in enumerate(lines) if is_signature_line(line)), -1)
    if idx == -1:
        return {}

    footer = lines[idx + 1 :]
    joined = " ".join(footer)

    email = EMAIL_RE.search(joined)
    phone = PHONE_RE.search(joined)
    contact = next((line for line in footer if CONTACT_RE.match(line)), None)
    vendor = next((line for line in footer if VENDOR_COMPANY_RE.search(line)), None)

    return {
        "vendor": vendor,
        "vendor_contact": contact.split("|")[0].strip() if contact else None,
        "vendor_phone": phone.group(0) if phone else None,
        "vendor_email": email.group(0) if email else None,
    }


def parse_deterministic(text: str) -> dict:
    """Rule-based extraction only."""
    lines = normalize_lines(text)
    fmt = detect_format(lines)
    location, work_type = extract_location(lines)

    result = empty_result()
    result.update(
        job_title=extract_job_title(lines, fmt),
        hiring_company=_labelled(lines, r"(?:hiring\s*)?company"),
        end_client=_labelled(lines, r"(?:end\s*)?client"),
        key_skills=extract_skills(lines),
        rate=_labelled(lines, r"(?:bill\s*|pay\s*)?rate"),
        work_location_type=work_type,
        location=location,
        duration=extract_duration(text),
    )
    result.update(extract_vendor_info(lines))
    logger.debug(f"JD format={fmt} title={result['job_title']!r} skills={len(result['key_skills'])}")
    return result


def parse_jd(text: str, llm: BaseChatModel | None = None) -> dict:
    """
    Parse a JD, asking the LLM only for missing title/location.

    The LLM is skipped when no API key is configured; LLM failures leave
    the deterministic result untouched.
    """
    result = parse_deterministic(text)

    missing = {"jobTitle": "job_title", "location": "location"}
    missing = {k: v for k, v in missing.items() if not result[v]}
    if not missing:
        return result

    if llm is None:
        try:
            llm = create_llm(temperature=0.1, max_tokens=300)
        except ValueError:
            logger.info("LLM fallback skipped: GROQ_API_KEY not set")
            return result

    prompt = LLM_PROMPT.format(fields=", ".join(missing), text=text)
    try:
        answer = parse_field_response(complete(llm, prompt), list(missing))
    except UpstreamError as e:
        logger.warning(f"LLM fallback failed, keeping rule-based result: {e}")
        return result

    for key, field in missing.items():
        result[field] = answer.get(key)
    return result


def to_requirement_fields(parsed: dict, description: str | None = None) -> dict:
    """Map a parse result onto requirement columns."""
    rate = parsed.get("rate")
    return {
        "title": parsed.get("job_title"),
        "company": parsed.get("hiring_company") or parsed.get("end_client") or parsed.get("vendor"),
        "end_client": parsed.get("end_client"),
        "location": parsed.get("location"),
        "remote": parsed.get("work_location_type"),
        "duration": parsed.get("duration"),
        "rate": rate if is_valid_rate(rate) else None,
        "primary_tech_stack": ", ".join(parsed.get("key_skills") or []) or None,
        "vendor_company": parsed.get("vendor"),
        "vendor_person_name": parsed.get("vendor_contact"),
        "vendor_phone": parsed.get("vendor_phone"),
        "vendor_email": parsed.get("vendor_email"),
        "description": description,
    }
