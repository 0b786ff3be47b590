"""Job extraction from inbound emails."""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from langchain_core.language_models import BaseChatModel
from sqlalchemy.orm import Session

from onehub.agents.job_extractor import classify, create_extraction_llm, extract_job, requirement_fields_from_job
from onehub.api.limiter import limiter
from onehub.api.routes.requirements import insert_requirement
from onehub.api.schemas import JobExtractRequest, JobExtractResult
from onehub.db import get_db
from onehub.errors import UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter()


def get_extraction_llm() -> BaseChatModel:
    try:
        return create_extraction_llm()
    except ValueError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/extract", response_model=list[JobExtractResult])
@limiter.limit("5/minute")
def extract_jobs(
    request: Request,
    data: JobExtractRequest,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
    llm: BaseChatModel = Depends(get_extraction_llm),
):
    """Classify emails and create requirements for confident job hits."""
    results: list[JobExtractResult] = []

    for email in data.emails:
        try:
            job = extract_job(email.subject, email.sender, email.body, llm)
        except UpstreamError as e:
            logger.warning(f"Extraction failed for '{email.subject}': {e}")
            results.append(JobExtractResult(subject=email.subject, outcome="error", error=e.message))
            continue

        outcome = classify(job)
        result = JobExtractResult(
            subject=email.subject,
            outcome="skipped" if outcome == "skipped" else "found",
            confidence=job.get("confidence", 0),
            title=job.get("title"),
            company=job.get("company"),
        )

        if outcome == "create" and data.auto_create:
            fields = requirement_fields_from_job(job, email.subject, email.sender, email.body)
            requirement = insert_requirement(db, x_user_id, fields)
            result.outcome = "created"
            result.requirement_id = requirement.id
            logger.info(f"Created requirement {requirement.id} from email '{email.subject}'")

        results.append(result)

    return results
