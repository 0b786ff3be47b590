"""
Job Extraction Agent.

Classifies inbound emails as job opportunities and turns confident hits
into NEW requirements. Prompts are kept compact to stay inside Groq's
free-tier token budget.
"""

import logging
import re

from langchain_core.language_models import BaseChatModel
from markdownify import markdownify

from onehub.config import settings
from onehub.tools.groq_llm import complete, create_llm
from onehub.utils.parser import parse_job_email_response

logger = logging.getLogger(__name__)

MAX_CONTENT_CHARS = 1000
HTML_RE = re.compile(r"<\s*(html|body|div|p|br|table|span)\b", re.IGNORECASE)

EXTRACTION_PROMPT = """Is this a job email? Extract key info. Return JSON.
{"isJobEmail":true/false,"title":"","company":"","location":"","salary":"","skills":"","jobType":"","confidence":0-100}"""


def create_extraction_llm() -> BaseChatModel:
    return create_llm(temperature=0.1, max_tokens=300)


def email_to_text(body: str) -> str:
    """HTML bodies are converted to markdown; plain text passes through."""
    if body and HTML_RE.search(body):
        body = markdownify(body)
    return re.sub(r"\n{3,}", "\n\n", body or "").strip()


def build_email_content(subject: str, sender: str, body: str) -> str:
    content = f"Subject: {subject}\nFrom: {sender}\n\n{email_to_text(body)}"
    return content[:MAX_CONTENT_CHARS]


def extract_job(subject: str, sender: str, body: str, llm: BaseChatModel) -> dict:
    """Run the classifier on one email and normalize the response."""
    prompt = f"{EXTRACTION_PROMPT}\n\n{build_email_content(subject, sender, body)}"
    return parse_job_email_response(complete(llm, prompt))


def build_description(job: dict, body: str) -> str:
    parts = []
    if job.get("description"):
        parts.append(f"**Job Details:**\n{job['description']}")
    if job.get("job_type"):
        parts.append(f"**Job Type:** {job['job_type']}")
    if job.get("skills"):
        parts.append(f"**Skills:** {job['skills']}")
    if not parts:
        return email_to_text(body) or "Auto-extracted from email"
    return "\n".join(parts)


def requirement_fields_from_job(job: dict, subject: str, sender: str, body: str) -> dict:
    """Requirement columns for an extracted job."""
    job_type = (job.get("job_type") or "").lower()
    return {
        "title": job.get("title") or "Job Opening",
        "company": job.get("company") or "Unknown Company",
        "location": job.get("location"),
        "rate": job.get("salary"),
        "primary_tech_stack": job.get("skills"),
        "remote": "Yes" if "remote" in job_type else None,
        "description": build_description(job, body),
        "next_step": f'Email: "{subject}" | From: {sender} | AI Confidence: {job.get("confidence", 0)}%',
        "status": "NEW",
    }


def classify(job: dict, threshold: int | None = None) -> str:
    """skipped (not a job) / found (below threshold) / create."""
    threshold = settings.extraction_confidence_threshold if threshold is None else threshold
    if not job.get("is_job_email"):
        return "skipped"
    if job.get("confidence", 0) < threshold:
        return "found"
    return "create"
