"""Consultant endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from onehub.api.routes.requirements import null_field_errors, validation_error
from onehub.api.schemas import (
    ConsultantCreate,
    ConsultantPageResponse,
    ConsultantResponse,
    ConsultantUpdate,
)
from onehub.db import Consultant, Interview, Requirement, get_db
from onehub.db.activity import log_activity
from onehub.utils.pagination import InvalidCursor, apply_keyset, decode_cursor, encode_cursor, fetch_page
from onehub.utils.validation import validate_consultant

router = APIRouter()


def _get_owned(db: Session, consultant_id: str, x_user_id: str) -> Consultant:
    consultant = db.query(Consultant).filter(Consultant.id == consultant_id).first()
    if not consultant:
        raise HTTPException(status_code=404, detail="Consultant not found")
    if consultant.user_id != x_user_id:
        raise HTTPException(status_code=403, detail="Access denied")
    return consultant


def _filtered_query(db: Session, x_user_id: str, status: str | None, search: str | None):
    query = db.query(Consultant).filter(Consultant.user_id == x_user_id)
    if status and status != "ALL":
        query = query.filter(Consultant.status == status)
    if search and search.strip():
        term = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Consultant.name.ilike(term),
                Consultant.email.ilike(term),
                Consultant.primary_skills.ilike(term),
            )
        )
    return query


@router.post("", response_model=ConsultantResponse)
def create_consultant(
    data: ConsultantCreate,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Create a consultant."""
    fields = data.model_dump()
    errors = validate_consultant(fields)
    if errors:
        raise validation_error(errors)

    fields["projects"] = fields.get("projects") or []
    consultant = Consultant(user_id=x_user_id, **fields)
    db.add(consultant)
    db.commit()
    db.refresh(consultant)

    log_activity(db, "consultant_created", x_user_id, "consultant", consultant.id, {"name": consultant.name})
    return ConsultantResponse.model_validate(consultant)


@router.get("", response_model=list[ConsultantResponse])
def list_consultants(
    status: str | None = None,
    search: str | None = None,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """List consultants, most recently updated first."""
    consultants = (
        _filtered_query(db, x_user_id, status, search)
        .order_by(Consultant.updated_at.desc(), Consultant.id.desc())
        .all()
    )
    return [ConsultantResponse.model_validate(c) for c in consultants]


@router.get("/page", response_model=ConsultantPageResponse)
def page_consultants(
    cursor: str | None = None,
    page_size: int = Query(default=20, ge=1, le=100),
    status: str | None = None,
    search: str | None = None,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Cursor pagination ordered by updated_at (newest first)."""
    decoded = None
    if cursor:
        try:
            decoded = decode_cursor(cursor)
            decoded["sort_value"] = datetime.fromisoformat(decoded["sort_value"])
        except (InvalidCursor, TypeError, ValueError):
            raise HTTPException(status_code=400, detail="Invalid cursor token")

    query = apply_keyset(
        _filtered_query(db, x_user_id, status, search), Consultant.updated_at, Consultant.id, decoded, True
    )
    items, has_next = fetch_page(query, page_size)

    return ConsultantPageResponse(
        items=[ConsultantResponse.model_validate(c) for c in items],
        page_size=page_size,
        next_cursor=encode_cursor(items[-1].id, items[-1].updated_at) if has_next and items else None,
        has_next_page=has_next,
    )


@router.get("/{consultant_id}", response_model=ConsultantResponse)
def get_consultant(
    consultant_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Get a consultant by ID."""
    return ConsultantResponse.model_validate(_get_owned(db, consultant_id, x_user_id))


@router.put("/{consultant_id}", response_model=ConsultantResponse)
def update_consultant(
    consultant_id: str,
    data: ConsultantUpdate,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Partially update a consultant."""
    consultant = _get_owned(db, consultant_id, x_user_id)
    changes = data.model_dump(exclude_unset=True)
    if "projects" in changes:
        changes["projects"] = changes["projects"] or []

    merged = {c: getattr(consultant, c) for c in ConsultantUpdate.model_fields}
    merged.update(changes)
    errors = validate_consultant(merged) | null_field_errors(Consultant, changes)
    if errors:
        raise validation_error(errors)

    for field, value in changes.items():
        setattr(consultant, field, value)
    consultant.updated_at = datetime.now(UTC)
    db.commit()
    db.refresh(consultant)
    return ConsultantResponse.model_validate(consultant)


@router.delete("/{consultant_id}")
def delete_consultant(
    consultant_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Delete a consultant."""
    consultant = _get_owned(db, consultant_id, x_user_id)
    name = consultant.name
    # Detach from requirements / interviews rather than deleting them
    for model in (Requirement, Interview):
        db.query(model).filter(model.consultant_id == consultant_id).update(
            {model.consultant_id: None}, synchronize_session=False
        )
    db.delete(consultant)
    db.commit()

    log_activity(db, "consultant_deleted", x_user_id, "consultant", consultant_id, {"name": name})
    return {"message": "Consultant deleted"}
