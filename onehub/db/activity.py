"""Audit logging and user display-name lookup."""

import logging

from cachetools import TTLCache
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from onehub.db.tables import ActivityLog, User

logger = logging.getLogger(__name__)

# user_id -> display name, refreshed every 5 minutes
_user_names: TTLCache = TTLCache(maxsize=500, ttl=300)


def log_activity(
    db: Session,
    action: str,
    actor_id: str | None,
    resource_type: str | None = None,
    resource_id: str | None = None,
    details: dict | None = None,
    ip_address: str | None = None,
) -> None:
    """Record an audit entry. Never raises into the caller."""
    try:
        db.add(
            ActivityLog(
                user_id=actor_id,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                details=details or {},
                ip_address=ip_address,
            )
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Failed to log activity '{action}' for {resource_type}:{resource_id}: {e}")


def display_name(user: User | None) -> str:
    """Full name, else the email's local part, else 'Unknown'."""
    if user is None:
        return "Unknown"
    if user.full_name and user.full_name.strip():
        return user.full_name.strip()
    if user.email:
        return user.email.split("@")[0]
    return "Unknown"


def get_user_name(db: Session, user_id: str | None) -> str:
    """Resolve a user's display name (cached)."""
    if not user_id:
        return "Unknown"
    if user_id in _user_names:
        return _user_names[user_id]

    user = db.query(User).filter(User.id == user_id).first()
    name = display_name(user)
    _user_names[user_id] = name
    return name


def clear_user_name_cache() -> None:
    _user_names.clear()
