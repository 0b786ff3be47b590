"""Dashboard summary and activity timeline."""

from datetime import UTC, date, datetime, timedelta

from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from onehub.api.schemas import ActivityResponse, DashboardResponse, UpcomingInterview
from onehub.db import ActivityLog, BulkEmailCampaign, Consultant, Interview, Requirement, get_db

router = APIRouter()

UPCOMING_DAYS = 7
UPCOMING_LIMIT = 10


def _counts(db: Session, column, user_column, x_user_id: str) -> dict[str, int]:
    rows = db.query(column, func.count()).filter(user_column == x_user_id).group_by(column).all()
    return {status: count for status, count in rows}


@router.get("", response_model=DashboardResponse)
def get_dashboard(
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Pipeline counts, upcoming interviews and recent activity."""
    today = date.today()
    upcoming = (
        db.query(Interview)
        .filter(
            Interview.user_id == x_user_id,
            Interview.scheduled_date >= today,
            Interview.scheduled_date <= today + timedelta(days=UPCOMING_DAYS),
            Interview.status.notin_(["Cancelled", "Completed", "No Show"]),
        )
        .order_by(Interview.scheduled_date.asc(), Interview.scheduled_time.asc())
        .limit(UPCOMING_LIMIT)
        .all()
    )

    since = datetime.now(UTC) - timedelta(days=30)
    campaigns = (
        db.query(func.count(BulkEmailCampaign.id))
        .filter(BulkEmailCampaign.user_id == x_user_id, BulkEmailCampaign.created_at >= since)
        .scalar()
    )

    activity = (
        db.query(ActivityLog)
        .filter(ActivityLog.user_id == x_user_id)
        .order_by(ActivityLog.created_at.desc())
        .limit(10)
        .all()
    )

    return DashboardResponse(
        requirements_by_status=_counts(db, Requirement.status, Requirement.user_id, x_user_id),
        consultants_by_status=_counts(db, Consultant.status, Consultant.user_id, x_user_id),
        upcoming_interviews=[
            UpcomingInterview(
                id=i.id,
                requirement_id=i.requirement_id,
                scheduled_date=i.scheduled_date,
                scheduled_time=i.scheduled_time,
                interview_with=i.interview_with,
                status=i.status,
            )
            for i in upcoming
        ],
        campaigns_last_30_days=campaigns or 0,
        recent_activity=[ActivityResponse.model_validate(a) for a in activity],
    )


@router.get("/activity", response_model=list[ActivityResponse])
def activity_timeline(
    resource_type: str | None = None,
    resource_id: str | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Audit entries, newest first, optionally for a single resource."""
    query = db.query(ActivityLog).filter(ActivityLog.user_id == x_user_id)
    if resource_type:
        query = query.filter(ActivityLog.resource_type == resource_type)
    if resource_id:
        query = query.filter(ActivityLog.resource_id == resource_id)
    entries = query.order_by(ActivityLog.created_at.desc()).limit(limit).all()
    return [ActivityResponse.model_validate(a) for a in entries]
