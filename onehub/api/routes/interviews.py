"""Interview endpoints."""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from onehub.agents.interview_focus import create_focus_llm, generate_interview_focus
from onehub.api.limiter import limiter
from onehub.api.routes.requirements import get_owned_requirement, null_field_errors, validation_error
from onehub.api.schemas import InterviewCreate, InterviewResponse, InterviewUpdate
from onehub.db import Interview, get_db
from onehub.db.activity import log_activity
from onehub.utils.validation import (
    INTERVIEW_TRANSITIONS,
    can_transition,
    is_in_future,
    location_label,
    validate_interview,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(interview: Interview) -> InterviewResponse:
    response = InterviewResponse.model_validate(interview)
    response.location_label = location_label(interview.location)
    return response


def _get_owned(db: Session, interview_id: str, x_user_id: str) -> Interview:
    interview = db.query(Interview).filter(Interview.id == interview_id).first()
    if not interview:
        raise HTTPException(status_code=404, detail="Interview not found")
    if interview.user_id != x_user_id:
        raise HTTPException(status_code=403, detail="Access denied")
    return interview


@router.get("/statuses")
def interview_statuses():
    """Status workflow: status -> allowed next statuses."""
    return {"statuses": list(INTERVIEW_TRANSITIONS), "transitions": INTERVIEW_TRANSITIONS}


@router.post("", response_model=InterviewResponse)
def create_interview(
    data: InterviewCreate,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Schedule an interview for a requirement."""
    fields = data.model_dump()
    errors = validate_interview(fields)
    if errors:
        raise validation_error(errors)

    requirement = get_owned_requirement(db, data.requirement_id, x_user_id)

    if fields.get("duration_minutes") is None:
        fields.pop("duration_minutes")
    interview = Interview(user_id=x_user_id, created_by=x_user_id, updated_by=x_user_id, **fields)
    if not interview.vendor_company:
        interview.vendor_company = requirement.vendor_company
    db.add(interview)
    db.commit()
    db.refresh(interview)

    log_activity(
        db,
        "interview_created",
        x_user_id,
        "interview",
        interview.id,
        {"requirement_id": requirement.id, "scheduled_date": interview.scheduled_date.isoformat()},
    )
    return _to_response(interview)


@router.get("", response_model=list[InterviewResponse])
def list_interviews(
    requirement_id: str | None = None,
    status: str | None = None,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """List interviews ordered by schedule."""
    query = db.query(Interview).filter(Interview.user_id == x_user_id)
    if requirement_id:
        query = query.filter(Interview.requirement_id == requirement_id)
    if status:
        query = query.filter(Interview.status == status)

    interviews = query.order_by(Interview.scheduled_date.asc(), Interview.scheduled_time.asc()).all()
    return [_to_response(i) for i in interviews]


@router.get("/{interview_id}", response_model=InterviewResponse)
def get_interview(
    interview_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Get an interview by ID."""
    return _to_response(_get_owned(db, interview_id, x_user_id))


@router.put("/{interview_id}", response_model=InterviewResponse)
def update_interview(
    interview_id: str,
    data: InterviewUpdate,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Update an interview, enforcing the status workflow."""
    interview = _get_owned(db, interview_id, x_user_id)
    changes = data.model_dump(exclude_unset=True)
    null_errors = null_field_errors(Interview, changes)
    if null_errors:
        raise validation_error(null_errors)

    new_status = changes.get("status")
    if new_status and not can_transition(interview.status, new_status):
        allowed = ", ".join(INTERVIEW_TRANSITIONS.get(interview.status, [])) or "none"
        raise HTTPException(
            status_code=409,
            detail=f"Cannot change status from {interview.status} to {new_status} (allowed: {allowed})",
        )

    errors: dict[str, str] = {}
    if "scheduled_date" in changes or "scheduled_time" in changes:
        scheduled_date = changes.get("scheduled_date") or interview.scheduled_date
        scheduled_time = changes.get("scheduled_time", interview.scheduled_time)
        try:
            if not is_in_future(scheduled_date, scheduled_time):
                errors["scheduled_date"] = "Interview must be scheduled for a future date and time"
        except ValueError:
            errors["scheduled_time"] = "Invalid time format (HH:MM)"
    if "interview_with" in changes and not (changes["interview_with"] or "").strip():
        errors["interview_with"] = "Candidate name is required"
    if errors:
        raise validation_error(errors)

    for field, value in changes.items():
        setattr(interview, field, value)
    interview.updated_by = x_user_id
    interview.updated_at = datetime.now(UTC)
    db.commit()
    db.refresh(interview)

    if new_status:
        logger.info(f"[{interview.id}] Interview status -> {new_status}")
    return _to_response(interview)


@router.delete("/{interview_id}")
def delete_interview(
    interview_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Delete an interview."""
    interview = _get_owned(db, interview_id, x_user_id)
    requirement_id = interview.requirement_id
    db.delete(interview)
    db.commit()

    log_activity(db, "interview_deleted", x_user_id, "interview", interview_id, {"requirement_id": requirement_id})
    return {"message": "Interview deleted"}


@router.post("/{interview_id}/focus", response_model=InterviewResponse)
@limiter.limit("10/minute")
def generate_focus(
    request: Request,
    interview_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Generate interview focus points from the requirement's JD."""
    interview = _get_owned(db, interview_id, x_user_id)
    requirement = interview.requirement

    try:
        llm = create_focus_llm()
    except ValueError as e:
        raise HTTPException(status_code=503, detail=str(e))

    interview.interview_focus = generate_interview_focus(
        requirement.description or interview.job_description_excerpt,
        requirement.primary_tech_stack,
        requirement.title,
        llm,
    )
    interview.updated_by = x_user_id
    interview.updated_at = datetime.now(UTC)
    db.commit()
    db.refresh(interview)
    return _to_response(interview)
