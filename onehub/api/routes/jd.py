"""Job description parsing endpoints."""

from fastapi import APIRouter, Depends, File, Header, HTTPException, Request, UploadFile
from langchain_core.language_models import BaseChatModel
from sqlalchemy.orm import Session

from onehub.agents.jd_parser import parse_deterministic, parse_jd, to_requirement_fields
from onehub.api.limiter import limiter
from onehub.api.routes.requirements import insert_requirement, validation_error
from onehub.api.schemas import (
    JDBatchRequest,
    JDCreateRequirementRequest,
    JDParseRequest,
    JDParseResponse,
    RequirementCreateResponse,
    RequirementResponse,
    RequirementSummary,
)
from onehub.db import Requirement, get_db
from onehub.tools.groq_llm import create_llm
from onehub.tools.pdf_parser import extract_document_text
from onehub.utils.requirements import find_similar
from onehub.utils.validation import validate_requirement

MAX_UPLOAD_SIZE = 5 * 1024 * 1024  # 5 MB

router = APIRouter()


def get_jd_llm() -> BaseChatModel | None:
    """Groq model for the fallback pass; None when no key is configured."""
    try:
        return create_llm(temperature=0.1, max_tokens=300)
    except ValueError:
        return None


def _parse(text: str, llm: BaseChatModel | None) -> JDParseResponse:
    if llm is None:
        return JDParseResponse(**parse_deterministic(text))
    return JDParseResponse(**parse_jd(text, llm))


@router.post("/parse", response_model=JDParseResponse)
@limiter.limit("20/minute")
def parse_text(
    request: Request,
    data: JDParseRequest,
    llm: BaseChatModel | None = Depends(get_jd_llm),
):
    """Extract requirement fields from pasted JD text."""
    return _parse(data.text, llm)


@router.post("/parse-file", response_model=JDParseResponse)
@limiter.limit("20/minute")
async def parse_file(
    request: Request,
    file: UploadFile = File(...),
    llm: BaseChatModel | None = Depends(get_jd_llm),
):
    """Extract requirement fields from an uploaded PDF or text file."""
    content = await file.read()
    if len(content) > MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=413, detail="File too large (max 5 MB)")

    try:
        text = extract_document_text(file.filename or "", content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not text.strip():
        raise HTTPException(status_code=400, detail="Document appears to be empty or unreadable")
    return _parse(text, llm)


@router.post("/parse-batch", response_model=list[JDParseResponse])
@limiter.limit("5/minute")
def parse_batch(
    request: Request,
    data: JDBatchRequest,
    llm: BaseChatModel | None = Depends(get_jd_llm),
):
    """Parse several JDs in one call, in input order."""
    return [_parse(text, llm) for text in data.texts]


@router.post("/create-requirement", response_model=RequirementCreateResponse)
@limiter.limit("20/minute")
def create_requirement_from_jd(
    request: Request,
    data: JDCreateRequirementRequest,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
    llm: BaseChatModel | None = Depends(get_jd_llm),
):
    """Parse a JD and create a NEW requirement from it."""
    parsed = _parse(data.text, llm)
    fields = to_requirement_fields(parsed.model_dump(), description=data.text)
    if data.company:
        fields["company"] = data.company

    errors = validate_requirement(fields)
    if errors:
        raise validation_error(errors)

    requirement = insert_requirement(db, x_user_id, {**fields, "status": "NEW"})
    others = db.query(Requirement).filter(Requirement.user_id == x_user_id, Requirement.id != requirement.id).all()

    return RequirementCreateResponse(
        requirement=RequirementResponse.model_validate(requirement),
        similar=[RequirementSummary.model_validate(r) for r in find_similar(requirement, others)],
    )
