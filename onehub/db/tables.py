"""Database table models."""

import uuid
from datetime import UTC, date, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from onehub.db.base import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """CRM user (mirrors the auth user profile)."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    email: Mapped[str | None] = mapped_column(String(255), default=None)
    full_name: Mapped[str | None] = mapped_column(String(255), default=None)
    role: Mapped[str] = mapped_column(String(20), default="user")  # user/marketing/admin
    status: Mapped[str] = mapped_column(String(20), default="approved")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class Requirement(Base):
    """A job order tracked through the submission pipeline."""

    __tablename__ = "requirements"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    requirement_number: Mapped[int] = mapped_column(Integer, unique=True)
    title: Mapped[str] = mapped_column(String(255))
    company: Mapped[str | None] = mapped_column(String(255), default=None)
    end_client: Mapped[str | None] = mapped_column(String(255), default=None)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    location: Mapped[str | None] = mapped_column(String(255), default=None)
    # NEW/IN_PROGRESS/SUBMITTED/INTERVIEW/OFFER/REJECTED/CLOSED
    status: Mapped[str] = mapped_column(String(20), default="NEW")
    consultant_id: Mapped[str | None] = mapped_column(ForeignKey("consultants.id"), default=None)
    applied_for: Mapped[str | None] = mapped_column(String(255), default=None)
    rate: Mapped[str | None] = mapped_column(String(100), default=None)
    primary_tech_stack: Mapped[str | None] = mapped_column(Text, default=None)
    imp_name: Mapped[str | None] = mapped_column(String(255), default=None)
    client_website: Mapped[str | None] = mapped_column(String(500), default=None)
    imp_website: Mapped[str | None] = mapped_column(String(500), default=None)
    vendor_company: Mapped[str | None] = mapped_column(String(255), default=None)
    vendor_website: Mapped[str | None] = mapped_column(String(500), default=None)
    vendor_person_name: Mapped[str | None] = mapped_column(String(255), default=None)
    vendor_phone: Mapped[str | None] = mapped_column(String(50), default=None)
    vendor_email: Mapped[str | None] = mapped_column(String(255), default=None)
    next_step: Mapped[str | None] = mapped_column(Text, default=None)
    remote: Mapped[str | None] = mapped_column(String(50), default=None)
    duration: Mapped[str | None] = mapped_column(String(100), default=None)
    created_by: Mapped[str | None] = mapped_column(String(36), default=None)
    updated_by: Mapped[str | None] = mapped_column(String(36), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    interviews: Mapped[list["Interview"]] = relationship(
        back_populates="requirement", cascade="all, delete-orphan"
    )
    comments: Mapped[list["NextStepComment"]] = relationship(
        back_populates="requirement", cascade="all, delete-orphan"
    )
    emails: Mapped[list["RequirementEmail"]] = relationship(
        back_populates="requirement", cascade="all, delete-orphan"
    )


class Consultant(Base):
    """A consultant on the bench."""

    __tablename__ = "consultants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    status: Mapped[str] = mapped_column(String(20), default="Active")  # Active/Not Active/Recently Placed
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255), default=None)
    phone: Mapped[str | None] = mapped_column(String(50), default=None)
    location: Mapped[str | None] = mapped_column(String(255), default=None)
    primary_skills: Mapped[str | None] = mapped_column(Text, default=None)
    secondary_skills: Mapped[str | None] = mapped_column(Text, default=None)
    total_experience: Mapped[str | None] = mapped_column(String(50), default=None)
    linkedin_profile: Mapped[str | None] = mapped_column(String(500), default=None)
    portfolio_link: Mapped[str | None] = mapped_column(String(500), default=None)
    availability: Mapped[str | None] = mapped_column(String(100), default=None)
    visa_status: Mapped[str | None] = mapped_column(String(100), default=None)
    date_of_birth: Mapped[date | None] = mapped_column(Date, default=None)
    address: Mapped[str | None] = mapped_column(Text, default=None)
    timezone: Mapped[str | None] = mapped_column(String(50), default=None)
    degree_name: Mapped[str | None] = mapped_column(String(255), default=None)
    university: Mapped[str | None] = mapped_column(String(255), default=None)
    year_of_passing: Mapped[str | None] = mapped_column(String(10), default=None)
    ssn: Mapped[str | None] = mapped_column(String(20), default=None)
    how_got_visa: Mapped[str | None] = mapped_column(String(255), default=None)
    year_came_to_us: Mapped[str | None] = mapped_column(String(10), default=None)
    country_of_origin: Mapped[str | None] = mapped_column(String(100), default=None)
    why_looking_for_job: Mapped[str | None] = mapped_column(Text, default=None)
    preferred_work_location: Mapped[str | None] = mapped_column(String(255), default=None)
    preferred_work_type: Mapped[str | None] = mapped_column(String(50), default=None)
    expected_rate: Mapped[str | None] = mapped_column(String(100), default=None)
    payroll_company: Mapped[str | None] = mapped_column(String(255), default=None)
    payroll_contact_info: Mapped[str | None] = mapped_column(Text, default=None)
    projects: Mapped[list] = mapped_column(JSON, default=list)
    company: Mapped[str | None] = mapped_column(String(255), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class Interview(Base):
    """An interview scheduled against a requirement."""

    __tablename__ = "interviews"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    requirement_id: Mapped[str] = mapped_column(ForeignKey("requirements.id"), index=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    scheduled_date: Mapped[date] = mapped_column(Date)
    scheduled_time: Mapped[str | None] = mapped_column(String(5), default=None)  # HH:MM
    timezone: Mapped[str | None] = mapped_column(String(50), default=None)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=60)
    type: Mapped[str | None] = mapped_column(String(50), default=None)
    status: Mapped[str] = mapped_column(String(20), default="Scheduled")
    consultant_id: Mapped[str | None] = mapped_column(ForeignKey("consultants.id"), default=None)
    vendor_company: Mapped[str | None] = mapped_column(String(255), default=None)
    interview_with: Mapped[str | None] = mapped_column(String(255), default=None)
    result: Mapped[str | None] = mapped_column(String(50), default=None)
    round: Mapped[str | None] = mapped_column(String(50), default=None)
    mode: Mapped[str | None] = mapped_column(String(50), default=None)
    meeting_type: Mapped[str | None] = mapped_column(String(100), default=None)
    subject_line: Mapped[str | None] = mapped_column(String(500), default=None)
    interviewer: Mapped[str | None] = mapped_column(String(255), default=None)
    location: Mapped[str | None] = mapped_column(String(500), default=None)
    interview_focus: Mapped[str | None] = mapped_column(Text, default=None)
    special_note: Mapped[str | None] = mapped_column(Text, default=None)
    job_description_excerpt: Mapped[str | None] = mapped_column(Text, default=None)
    feedback_notes: Mapped[str | None] = mapped_column(Text, default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    created_by: Mapped[str | None] = mapped_column(String(36), default=None)
    updated_by: Mapped[str | None] = mapped_column(String(36), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    requirement: Mapped["Requirement"] = relationship(back_populates="interviews")


class NextStepComment(Base):
    """Free-text next-step note on a requirement."""

    __tablename__ = "next_step_comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    requirement_id: Mapped[str] = mapped_column(ForeignKey("requirements.id"), index=True)
    user_id: Mapped[str] = mapped_column(String(36))
    comment_text: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    requirement: Mapped["Requirement"] = relationship(back_populates="comments")


class EmailAccount(Base):
    """Sending mailbox used for bulk email rotation."""

    __tablename__ = "email_accounts"
    __table_args__ = (UniqueConstraint("user_id", "email_address", name="uq_email_accounts_user_address"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    email_address: Mapped[str] = mapped_column(String(255))
    app_password_encrypted: Mapped[str] = mapped_column(Text)  # iv:data:tag (hex)
    email_limit_per_rotation: Mapped[int] = mapped_column(Integer, default=5)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    order_index: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class BulkEmailCampaign(Base):
    """A bulk email send, optionally tied to a requirement."""

    __tablename__ = "bulk_email_campaigns"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    requirement_id: Mapped[str | None] = mapped_column(ForeignKey("requirements.id"), default=None)
    subject: Mapped[str] = mapped_column(String(500))
    body: Mapped[str] = mapped_column(Text)
    total_recipients: Mapped[int] = mapped_column(Integer, default=0)
    rotation_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    emails_per_account: Mapped[int] = mapped_column(Integer, default=5)
    selected_account_ids: Mapped[list] = mapped_column(JSON, default=list)
    # draft/queued/in_progress/completed/failed
    status: Mapped[str] = mapped_column(String(20), default="draft")
    email_server_campaign_id: Mapped[str | None] = mapped_column(String(64), default=None)
    started_at: Mapped[datetime | None] = mapped_column(DateTime, default=None)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, default=None)
    history_synced_at: Mapped[datetime | None] = mapped_column(DateTime, default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    recipients: Mapped[list["CampaignRecipient"]] = relationship(
        back_populates="campaign",
        cascade="all, delete-orphan",
        order_by="CampaignRecipient.position",
    )


class CampaignRecipient(Base):
    """One recipient of a bulk campaign."""

    __tablename__ = "campaign_recipients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    campaign_id: Mapped[str] = mapped_column(ForeignKey("bulk_email_campaigns.id"), index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    recipient_email: Mapped[str] = mapped_column(String(255))
    recipient_name: Mapped[str | None] = mapped_column(String(255), default=None)
    account_id: Mapped[str | None] = mapped_column(ForeignKey("email_accounts.id"), default=None)
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending/sent/failed
    message_id: Mapped[str | None] = mapped_column(String(255), default=None)
    error_message: Mapped[str | None] = mapped_column(Text, default=None)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime, default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    campaign: Mapped["BulkEmailCampaign"] = relationship(back_populates="recipients")


class CampaignStatus(Base):
    """Progress row written by the email server's worker."""

    __tablename__ = "bulk_email_campaign_status"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    status: Mapped[str] = mapped_column(String(20), default="queued")  # queued/processing/completed/failed
    total: Mapped[int] = mapped_column(Integer, default=0)
    sent: Mapped[int] = mapped_column(Integer, default=0)
    failed: Mapped[int] = mapped_column(Integer, default=0)
    processed: Mapped[int] = mapped_column(Integer, default=0)
    progress: Mapped[float] = mapped_column(Float, default=0.0)
    details: Mapped[list] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    started_at: Mapped[datetime | None] = mapped_column(DateTime, default=None)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, default=None)


class RequirementEmail(Base):
    """An email sent about a requirement."""

    __tablename__ = "requirement_emails"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    requirement_id: Mapped[str] = mapped_column(ForeignKey("requirements.id"), index=True)
    recipient_email: Mapped[str] = mapped_column(String(255))
    recipient_name: Mapped[str | None] = mapped_column(String(255), default=None)
    sent_via: Mapped[str] = mapped_column(String(20), default="loster_app")  # loster_app/gmail_synced/bulk_email
    subject: Mapped[str | None] = mapped_column(String(500), default=None)
    body_preview: Mapped[str | None] = mapped_column(Text, default=None)
    sent_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    status: Mapped[str] = mapped_column(String(20), default="sent")  # sent/failed/pending/bounced
    match_confidence: Mapped[int | None] = mapped_column(Integer, default=None)
    needs_user_confirmation: Mapped[bool] = mapped_column(Boolean, default=False)
    error_message: Mapped[str | None] = mapped_column(Text, default=None)
    created_by: Mapped[str | None] = mapped_column(String(36), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    requirement: Mapped["Requirement"] = relationship(back_populates="emails")


class ActivityLog(Base):
    """Audit trail entry."""

    __tablename__ = "activity_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str | None] = mapped_column(String(36), default=None, index=True)
    action: Mapped[str] = mapped_column(String(100))
    resource_type: Mapped[str | None] = mapped_column(String(50), default=None)
    resource_id: Mapped[str | None] = mapped_column(String(64), default=None)
    details: Mapped[dict] = mapped_column(JSON, default=dict)
    ip_address: Mapped[str | None] = mapped_column(String(64), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
