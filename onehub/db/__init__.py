"""Database package."""

from onehub.db.base import Base, get_db, init_db
from onehub.db.tables import (
    ActivityLog,
    BulkEmailCampaign,
    CampaignRecipient,
    CampaignStatus,
    Consultant,
    EmailAccount,
    Interview,
    NextStepComment,
    Requirement,
    RequirementEmail,
    User,
)

__all__ = [
    "Base",
    "get_db",
    "init_db",
    "User",
    "Requirement",
    "Consultant",
    "Interview",
    "NextStepComment",
    "EmailAccount",
    "BulkEmailCampaign",
    "CampaignRecipient",
    "CampaignStatus",
    "RequirementEmail",
    "ActivityLog",
]
