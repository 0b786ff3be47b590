"""Requirement (job order) endpoints."""

import logging
from datetime import UTC, date, datetime, time, timedelta

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from onehub.api.schemas import (
    ConsultantMatchResponse,
    RequirementAging,
    RequirementCreate,
    RequirementCreateResponse,
    RequirementPageResponse,
    RequirementReportResponse,
    RequirementResponse,
    RequirementSummary,
    RequirementUpdate,
)
from onehub.config import settings
from onehub.db import Consultant, Requirement, get_db
from onehub.db.activity import log_activity
from onehub.utils.pagination import InvalidCursor, apply_keyset, decode_cursor, encode_cursor, fetch_page
from onehub.utils.requirements import days_open, find_similar, is_stale, match_score, sla_status, to_csv
from onehub.utils.validation import validate_requirement

logger = logging.getLogger(__name__)

router = APIRouter()

SORT_COLUMNS = {
    "date": Requirement.created_at,
    "company": func.coalesce(Requirement.company, ""),
    "title": Requirement.title,
    "rate": func.coalesce(Requirement.rate, ""),
}
SORT_ATTRS = {"date": "created_at", "company": "company", "title": "title", "rate": "rate"}

EXPORT_COLUMNS = [
    "requirement_number",
    "title",
    "company",
    "end_client",
    "status",
    "location",
    "remote",
    "rate",
    "duration",
    "primary_tech_stack",
    "vendor_company",
    "vendor_person_name",
    "vendor_email",
    "vendor_phone",
    "next_step",
    "created_at",
]
EXPORTABLE = set(RequirementResponse.model_fields)


def validation_error(errors: dict[str, str]) -> HTTPException:
    return HTTPException(status_code=400, detail={"message": "Validation failed", "errors": errors})


def null_field_errors(model, changes: dict) -> dict[str, str]:
    """Fields explicitly set to null that map to NOT NULL columns."""
    columns = model.__table__.columns
    return {
        field: "Cannot be null"
        for field, value in changes.items()
        if value is None and field in columns and not columns[field].nullable
    }


def get_owned_requirement(db: Session, requirement_id: str, x_user_id: str) -> Requirement:
    """Load a requirement, enforcing that the caller owns it."""
    requirement = db.query(Requirement).filter(Requirement.id == requirement_id).first()
    if not requirement:
        raise HTTPException(status_code=404, detail="Requirement not found")
    if requirement.user_id != x_user_id:
        raise HTTPException(status_code=403, detail="Access denied")
    return requirement


def next_requirement_number(db: Session) -> int:
    return (db.query(func.max(Requirement.requirement_number)).scalar() or 0) + 1


def insert_requirement(db: Session, x_user_id: str, fields: dict) -> Requirement:
    """Insert with the next requirement number, retrying if another insert took it."""
    for attempt in range(3):
        requirement = Requirement(
            user_id=x_user_id,
            requirement_number=next_requirement_number(db),
            created_by=x_user_id,
            updated_by=x_user_id,
            **fields,
        )
        db.add(requirement)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Requirement number collision, retrying (attempt {attempt + 1})")
            continue
        db.refresh(requirement)
        log_activity(
            db,
            "requirement_created",
            x_user_id,
            "requirement",
            requirement.id,
            {"title": requirement.title, "requirement_number": requirement.requirement_number},
        )
        return requirement

    raise HTTPException(status_code=409, detail="Could not allocate a requirement number, please retry")


def _filtered_query(
    db: Session,
    x_user_id: str,
    status: str | None = None,
    search: str | None = None,
    remote: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
):
    query = db.query(Requirement).filter(Requirement.user_id == x_user_id)

    if status and status.upper() != "ALL":
        query = query.filter(Requirement.status == status.upper())

    if search and search.strip():
        term = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Requirement.title.ilike(term),
                Requirement.company.ilike(term),
                Requirement.primary_tech_stack.ilike(term),
                Requirement.vendor_company.ilike(term),
                Requirement.location.ilike(term),
                Requirement.description.ilike(term),
            )
        )

    remote = (remote or "ALL").upper()
    if remote == "REMOTE":
        query = query.filter(or_(Requirement.remote.ilike("%remote%"), Requirement.remote.ilike("yes")))
    elif remote == "HYBRID":
        query = query.filter(Requirement.remote.ilike("%hybrid%"))
    elif remote == "ONSITE":
        query = query.filter(
            or_(
                Requirement.remote.is_(None),
                Requirement.remote.ilike("%onsite%"),
                Requirement.remote.ilike("%on-site%"),
                Requirement.remote.ilike("no"),
            )
        )

    if date_from:
        query = query.filter(Requirement.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        query = query.filter(Requirement.created_at < datetime.combine(date_to + timedelta(days=1), time.min))

    return query


@router.post("", response_model=RequirementCreateResponse)
def create_requirement(
    data: RequirementCreate,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Create a requirement; returns open requirements that look like duplicates."""
    fields = data.model_dump()
    errors = validate_requirement(fields)
    if errors:
        raise validation_error(errors)

    requirement = insert_requirement(db, x_user_id, fields)

    others = db.query(Requirement).filter(Requirement.user_id == x_user_id, Requirement.id != requirement.id).all()
    similar = find_similar(requirement, others)

    return RequirementCreateResponse(
        requirement=RequirementResponse.model_validate(requirement),
        similar=[RequirementSummary.model_validate(r) for r in similar],
    )


@router.get("", response_model=list[RequirementResponse])
def list_requirements(
    status: str | None = None,
    search: str | None = None,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """List the caller's requirements, newest first."""
    requirements = (
        _filtered_query(db, x_user_id, status=status, search=search)
        .order_by(Requirement.created_at.desc())
        .all()
    )
    return [RequirementResponse.model_validate(r) for r in requirements]


@router.get("/page", response_model=RequirementPageResponse)
def page_requirements(
    cursor: str | None = None,
    page_size: int = Query(default=20, ge=1, le=100),
    sort_by: str = Query(default="date", pattern="^(date|company|title|rate)$"),
    sort_order: str = Query(default="desc", pattern="^(asc|desc)$"),
    status: str | None = None,
    search: str | None = None,
    remote: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Keyset-paginated, filtered requirement list."""
    decoded = None
    if cursor:
        try:
            decoded = decode_cursor(cursor)
            if sort_by == "date":
                decoded["sort_value"] = datetime.fromisoformat(decoded["sort_value"])
        except (InvalidCursor, TypeError, ValueError):
            raise HTTPException(status_code=400, detail="Invalid cursor token")

    query = _filtered_query(db, x_user_id, status, search, remote, date_from, date_to)
    query = apply_keyset(query, SORT_COLUMNS[sort_by], Requirement.id, decoded, sort_order == "desc")
    items, has_next = fetch_page(query, page_size)

    next_cursor = None
    if has_next and items:
        last = items[-1]
        next_cursor = encode_cursor(last.id, getattr(last, SORT_ATTRS[sort_by]) or "")

    return RequirementPageResponse(
        items=[RequirementResponse.model_validate(r) for r in items],
        page_size=page_size,
        next_cursor=next_cursor,
        has_next_page=has_next,
        has_prev_page=cursor is not None,
    )


@router.get("/export")
def export_requirements(
    columns: str | None = Query(default=None, description="Comma-separated column names"),
    status: str | None = None,
    search: str | None = None,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Export requirements as CSV."""
    selected = [c.strip() for c in columns.split(",") if c.strip()] if columns else EXPORT_COLUMNS
    unknown = [c for c in selected if c not in EXPORTABLE]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown columns: {', '.join(unknown)}")

    requirements = (
        _filtered_query(db, x_user_id, status=status, search=search)
        .order_by(Requirement.created_at.desc())
        .all()
    )
    filename = f"requirements_{datetime.now(UTC):%Y-%m-%d}.csv"
    return Response(
        content=to_csv(requirements, selected),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/report", response_model=RequirementReportResponse)
def requirement_report(
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Status counts plus aging / SLA for open requirements."""
    requirements = (
        db.query(Requirement)
        .filter(Requirement.user_id == x_user_id)
        .order_by(Requirement.created_at.asc())
        .all()
    )
    now = datetime.now(UTC)

    counts: dict[str, int] = {}
    aging: list[RequirementAging] = []
    for r in requirements:
        counts[r.status] = counts.get(r.status, 0) + 1
        if r.status == "CLOSED":
            continue
        aging.append(
            RequirementAging(
                id=r.id,
                requirement_number=r.requirement_number,
                title=r.title,
                status=r.status,
                days_open=days_open(r.created_at, now),
                sla_status=sla_status(r.status, r.created_at, now),
                is_stale=is_stale(r.created_at, settings.stale_after_days, now),
            )
        )

    return RequirementReportResponse(
        total=len(requirements),
        counts_by_status=counts,
        stale=[a for a in aging if a.is_stale],
        open_requirements=aging,
    )


@router.get("/{requirement_id}", response_model=RequirementResponse)
def get_requirement(
    requirement_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Get a requirement by ID."""
    return RequirementResponse.model_validate(get_owned_requirement(db, requirement_id, x_user_id))


@router.put("/{requirement_id}", response_model=RequirementResponse)
def update_requirement(
    requirement_id: str,
    data: RequirementUpdate,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Partially update a requirement."""
    requirement = get_owned_requirement(db, requirement_id, x_user_id)
    changes = data.model_dump(exclude_unset=True)

    merged = {c: getattr(requirement, c) for c in RequirementUpdate.model_fields}
    merged.update(changes)
    errors = validate_requirement(merged) | null_field_errors(Requirement, changes)
    if errors:
        raise validation_error(errors)

    for field, value in changes.items():
        setattr(requirement, field, value)
    requirement.updated_by = x_user_id
    requirement.updated_at = datetime.now(UTC)
    db.commit()
    db.refresh(requirement)

    if "status" in changes:
        log_activity(db, "requirement_status_changed", x_user_id, "requirement", requirement.id, {"status": requirement.status})
    return RequirementResponse.model_validate(requirement)


@router.delete("/{requirement_id}")
def delete_requirement(
    requirement_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Delete a requirement with its interviews, comments and email history."""
    requirement = get_owned_requirement(db, requirement_id, x_user_id)
    details = {"title": requirement.title, "requirement_number": requirement.requirement_number}

    db.delete(requirement)
    db.commit()
    log_activity(db, "requirement_deleted", x_user_id, "requirement", requirement_id, details)
    return {"message": "Requirement deleted"}


@router.get("/{requirement_id}/matches", response_model=list[ConsultantMatchResponse])
def match_consultants(
    requirement_id: str,
    min_score: int = Query(default=0, ge=0, le=100),
    limit: int = Query(default=10, ge=1, le=100),
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Rank the caller's consultants against a requirement."""
    requirement = get_owned_requirement(db, requirement_id, x_user_id)
    consultants = db.query(Consultant).filter(Consultant.user_id == x_user_id).all()

    scored = [
        ConsultantMatchResponse(consultant_id=c.id, name=c.name, status=c.status, score=match_score(requirement, c))
        for c in consultants
    ]
    scored = [m for m in scored if m.score >= min_score]
    scored.sort(key=lambda m: m.score, reverse=True)
    return scored[:limit]
