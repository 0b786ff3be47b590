"""Requirement email history endpoints."""

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from onehub.api.routes.requirements import get_owned_requirement, validation_error
from onehub.api.schemas import (
    ConfirmMatchRequest,
    EmailStatusUpdate,
    RequirementEmailCreate,
    RequirementEmailPageResponse,
    RequirementEmailResponse,
    RequirementEmailStats,
)
from onehub.db import Requirement, RequirementEmail, get_db
from onehub.utils.validation import is_valid_email

router = APIRouter()

BODY_PREVIEW_CHARS = 500


def _get_owned(db: Session, email_id: str, x_user_id: str) -> RequirementEmail:
    record = db.query(RequirementEmail).filter(RequirementEmail.id == email_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="Email record not found")
    get_owned_requirement(db, record.requirement_id, x_user_id)
    return record


@router.get("/requirement/{requirement_id}", response_model=RequirementEmailPageResponse)
def list_emails(
    requirement_id: str,
    page: int = Query(default=0, ge=0),
    page_size: int = Query(default=50, ge=1, le=200),
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Paged email history for a requirement, newest first."""
    get_owned_requirement(db, requirement_id, x_user_id)
    query = db.query(RequirementEmail).filter(RequirementEmail.requirement_id == requirement_id)

    total = query.count()
    items = (
        query.order_by(RequirementEmail.sent_date.desc(), RequirementEmail.id)
        .offset(page * page_size)
        .limit(page_size)
        .all()
    )
    return RequirementEmailPageResponse(
        items=[RequirementEmailResponse.model_validate(e) for e in items],
        total=total,
        page=page,
        page_size=page_size,
        has_more=(page + 1) * page_size < total,
    )


@router.get("/requirement/{requirement_id}/stats", response_model=RequirementEmailStats)
def email_stats(
    requirement_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Counts by status, last send and unique recipients."""
    get_owned_requirement(db, requirement_id, x_user_id)
    base = db.query(RequirementEmail).filter(RequirementEmail.requirement_id == requirement_id)

    by_status = dict(
        base.with_entities(RequirementEmail.status, func.count(RequirementEmail.id))
        .group_by(RequirementEmail.status)
        .all()
    )
    last_sent = (
        base.filter(RequirementEmail.status == "sent")
        .with_entities(func.max(RequirementEmail.sent_date))
        .scalar()
    )
    unique_recipients = base.with_entities(
        func.count(func.distinct(func.lower(RequirementEmail.recipient_email)))
    ).scalar()

    return RequirementEmailStats(
        total=sum(by_status.values()),
        sent=by_status.get("sent", 0),
        failed=by_status.get("failed", 0),
        bounced=by_status.get("bounced", 0),
        last_sent=last_sent,
        unique_recipients=unique_recipients or 0,
    )


@router.post("/requirement/{requirement_id}", response_model=RequirementEmailResponse)
def record_email(
    requirement_id: str,
    data: RequirementEmailCreate,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Record a single email sent from the app."""
    get_owned_requirement(db, requirement_id, x_user_id)
    if not is_valid_email(data.recipient_email):
        raise validation_error({"recipient_email": "Invalid email format"})

    record = RequirementEmail(
        requirement_id=requirement_id,
        recipient_email=data.recipient_email.strip().lower(),
        recipient_name=data.recipient_name,
        sent_via="loster_app",
        subject=data.subject,
        body_preview=(data.body or "")[:BODY_PREVIEW_CHARS] or None,
        status=data.status,
        match_confidence=100,
        needs_user_confirmation=False,
        created_by=x_user_id,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return RequirementEmailResponse.model_validate(record)


@router.get("/unconfirmed", response_model=list[RequirementEmailResponse])
def unconfirmed_matches(
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Synced emails awaiting the user's confirmation of the requirement match."""
    records = (
        db.query(RequirementEmail)
        .join(Requirement, Requirement.id == RequirementEmail.requirement_id)
        .filter(Requirement.user_id == x_user_id, RequirementEmail.needs_user_confirmation.is_(True))
        .order_by(RequirementEmail.sent_date.desc())
        .all()
    )
    return [RequirementEmailResponse.model_validate(r) for r in records]


@router.get("/{email_id}", response_model=RequirementEmailResponse)
def get_email(
    email_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Get one email record."""
    return RequirementEmailResponse.model_validate(_get_owned(db, email_id, x_user_id))


@router.post("/{email_id}/confirm", response_model=RequirementEmailResponse)
def confirm_match(
    email_id: str,
    data: ConfirmMatchRequest | None = None,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Confirm an email belongs to its requirement."""
    record = _get_owned(db, email_id, x_user_id)
    record.match_confidence = (data or ConfirmMatchRequest()).confidence
    record.needs_user_confirmation = False
    db.commit()
    db.refresh(record)
    return RequirementEmailResponse.model_validate(record)


@router.put("/{email_id}/status", response_model=RequirementEmailResponse)
def update_status(
    email_id: str,
    data: EmailStatusUpdate,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Update delivery status (e.g. mark bounced)."""
    record = _get_owned(db, email_id, x_user_id)
    record.status = data.status
    record.error_message = data.error_message
    db.commit()
    db.refresh(record)
    return RequirementEmailResponse.model_validate(record)


@router.delete("/{email_id}")
def delete_email(
    email_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Delete an email record."""
    record = _get_owned(db, email_id, x_user_id)
    db.delete(record)
    db.commit()
    return {"message": "Email record deleted"}
