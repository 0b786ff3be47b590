"""API request/response schemas."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

RequirementStatus = Literal["NEW", "IN_PROGRESS", "SUBMITTED", "INTERVIEW", "OFFER", "REJECTED", "CLOSED"]
ConsultantStatus = Literal["Active", "Not Active", "Recently Placed"]
InterviewStatus = Literal["Scheduled", "Confirmed", "Completed", "Cancelled", "Re-Scheduled", "Pending", "No Show"]
EmailStatus = Literal["sent", "failed", "pending", "bounced"]


# Requirement schemas
class RequirementFields(BaseModel):
    title: str | None = None
    company: str | None = None
    end_client: str | None = None
    description: str | None = None
    location: str | None = None
    consultant_id: str | None = None
    applied_for: str | None = None
    rate: str | None = None
    primary_tech_stack: str | None = None
    imp_name: str | None = None
    client_website: str | None = None
    imp_website: str | None = None
    vendor_company: str | None = None
    vendor_website: str | None = None
    vendor_person_name: str | None = None
    vendor_phone: str | None = None
    vendor_email: str | None = None
    next_step: str | None = None
    remote: str | None = None
    duration: str | None = None


class RequirementCreate(RequirementFields):
    status: RequirementStatus = "NEW"


class RequirementUpdate(RequirementFields):
    status: RequirementStatus | None = None


class RequirementResponse(RequirementFields):
    id: str
    user_id: str
    requirement_number: int
    status: str
    created_by: str | None
    updated_by: str | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RequirementSummary(BaseModel):
    id: str
    requirement_number: int
    title: str
    company: str | None
    status: str

    class Config:
        from_attributes = True


class RequirementCreateResponse(BaseModel):
    requirement: RequirementResponse
    similar: list[RequirementSummary]


class RequirementPageResponse(BaseModel):
    items: list[RequirementResponse]
    page_size: int
    next_cursor: str | None
    has_next_page: bool
    has_prev_page: bool


class RequirementAging(BaseModel):
    id: str
    requirement_number: int
    title: str
    status: str
    days_open: int
    sla_status: str
    is_stale: bool


class RequirementReportResponse(BaseModel):
    total: int
    counts_by_status: dict[str, int]
    stale: list[RequirementAging]
    open_requirements: list[RequirementAging]


class ConsultantMatchResponse(BaseModel):
    consultant_id: str
    name: str
    status: str
    score: int


# Consultant schemas
class ConsultantFields(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    primary_skills: str | None = None
    secondary_skills: str | None = None
    total_experience: str | None = None
    linkedin_profile: str | None = None
    portfolio_link: str | None = None
    availability: str | None = None
    visa_status: str | None = None
    date_of_birth: date | None = None
    address: str | None = None
    timezone: str | None = None
    degree_name: str | None = None
    university: str | None = None
    year_of_passing: str | None = None
    ssn: str | None = None
    how_got_visa: str | None = None
    year_came_to_us: str | None = None
    country_of_origin: str | None = None
    why_looking_for_job: str | None = None
    preferred_work_location: str | None = None
    preferred_work_type: str | None = None
    expected_rate: str | None = None
    payroll_company: str | None = None
    payroll_contact_info: str | None = None
    projects: list[dict] | None = None
    company: str | None = None


class ConsultantCreate(ConsultantFields):
    status: ConsultantStatus = "Active"


class ConsultantUpdate(ConsultantFields):
    status: ConsultantStatus | None = None


class ConsultantResponse(ConsultantFields):
    id: str
    user_id: str
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ConsultantPageResponse(BaseModel):
    items: list[ConsultantResponse]
    page_size: int
    next_cursor: str | None
    has_next_page: bool


# Interview schemas
class InterviewFields(BaseModel):
    scheduled_time: str | None = Field(default=None, description="HH:MM, 24h")
    timezone: str | None = None
    duration_minutes: int | None = Field(default=None, ge=5, le=480)
    type: str | None = None
    consultant_id: str | None = None
    vendor_company: str | None = None
    interview_with: str | None = None
    result: str | None = None
    round: str | None = None
    mode: str | None = None
    meeting_type: str | None = None
    subject_line: str | None = None
    interviewer: str | None = None
    location: str | None = None
    interview_focus: str | None = None
    special_note: str | None = None
    job_description_excerpt: str | None = None
    feedback_notes: str | None = None
    notes: str | None = None


class InterviewCreate(InterviewFields):
    requirement_id: str | None = None
    scheduled_date: date | None = None
    status: InterviewStatus = "Scheduled"


class InterviewUpdate(InterviewFields):
    scheduled_date: date | None = None
    status: InterviewStatus | None = None


class InterviewResponse(InterviewFields):
    id: str
    requirement_id: str
    user_id: str
    scheduled_date: date
    status: str
    location_label: str = "Location"
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# Next-step comment schemas
class CommentCreate(BaseModel):
    comment_text: str = Field(..., min_length=1, max_length=5000)


class CommentResponse(BaseModel):
    id: str
    requirement_id: str
    user_id: str
    comment_text: str
    created_at: datetime
    author_name: str
    author_email: str | None


# Email account schemas
class EmailAccountCreate(BaseModel):
    email_address: str
    app_password: str
    email_limit_per_rotation: int = Field(default=5, ge=1, le=500)


class EmailAccountUpdate(BaseModel):
    email_limit_per_rotation: int | None = Field(default=None, ge=1, le=500)
    is_active: bool | None = None
    order_index: int | None = None


class EmailAccountResponse(BaseModel):
    id: str
    email_address: str
    email_limit_per_rotation: int
    is_active: bool
    order_index: int
    created_at: datetime

    class Config:
        from_attributes = True


class SendTestEmailRequest(BaseModel):
    to: str


# Campaign schemas
class RecipientInput(BaseModel):
    email: str
    name: str | None = None


class CampaignCreate(BaseModel):
    subject: str = Field(default="", max_length=500)
    body: str = Field(default="", max_length=50000)
    recipients: list[RecipientInput] = Field(default_factory=list)
    recipients_text: str | None = Field(default=None, description="Free-form list, one per line")
    requirement_id: str | None = None
    rotation_enabled: bool = True
    emails_per_account: int = Field(default=5, ge=1, le=100)
    account_ids: list[str] | None = None


class RecipientResponse(BaseModel):
    id: str
    recipient_email: str
    recipient_name: str | None
    account_id: str | None
    status: str
    message_id: str | None
    error_message: str | None
    sent_at: datetime | None

    class Config:
        from_attributes = True


class CampaignResponse(BaseModel):
    id: str
    requirement_id: str | None
    subject: str
    body: str
    total_recipients: int
    rotation_enabled: bool
    emails_per_account: int
    status: str
    email_server_campaign_id: str | None
    started_at: datetime | None
    completed_at: datetime | None
    history_synced_at: datetime | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class CampaignDetailResponse(CampaignResponse):
    recipients: list[RecipientResponse]


class CampaignSendResponse(BaseModel):
    campaign_id: str
    status: str
    queued: bool
    sent: int
    failed: int


class CampaignStatusResponse(BaseModel):
    campaign_id: str
    status: str
    total: int
    sent: int
    failed: int
    processed: int
    progress: float
    timed_out: bool = False


class CampaignPollRequest(BaseModel):
    interval: float | None = Field(default=None, ge=0, le=60)
    timeout: float | None = Field(default=None, ge=0, le=3600)
    sync_history: bool = True


class RecipientParseRequest(BaseModel):
    text: str
    account_ids: list[str] | None = None
    rotation_enabled: bool = True
    emails_per_account: int = Field(default=5, ge=1, le=100)


class ParsedRecipient(BaseModel):
    email: str
    name: str | None
    account_id: str | None = None


# Requirement email schemas
class RequirementEmailCreate(BaseModel):
    recipient_email: str
    recipient_name: str | None = None
    subject: str | None = None
    body: str | None = None
    status: EmailStatus = "sent"


class RequirementEmailResponse(BaseModel):
    id: str
    requirement_id: str
    recipient_email: str
    recipient_name: str | None
    sent_via: str
    subject: str | None
    body_preview: str | None
    sent_date: datetime
    status: str
    match_confidence: int | None
    needs_user_confirmation: bool
    error_message: str | None

    class Config:
        from_attributes = True


class RequirementEmailPageResponse(BaseModel):
    items: list[RequirementEmailResponse]
    total: int
    page: int
    page_size: int
    has_more: bool


class RequirementEmailStats(BaseModel):
    total: int
    sent: int
    failed: int
    bounced: int
    last_sent: datetime | None
    unique_recipients: int


class ConfirmMatchRequest(BaseModel):
    confidence: int = Field(default=100, ge=0, le=100)


class EmailStatusUpdate(BaseModel):
    status: EmailStatus
    error_message: str | None = None


# JD parsing schemas
class JDParseRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=50000)


class JDBatchRequest(BaseModel):
    texts: list[str] = Field(..., min_length=1, max_length=20)


class JDParseResponse(BaseModel):
    job_title: str | None
    hiring_company: str | None
    end_client: str | None
    key_skills: list[str]
    rate: str | None
    work_location_type: str | None
    location: str | None
    duration: str | None
    vendor: str | None
    vendor_contact: str | None
    vendor_phone: str | None
    vendor_email: str | None


class JDCreateRequirementRequest(JDParseRequest):
    company: str | None = Field(default=None, description="Overrides the extracted company")


# Job extraction schemas
class JobEmail(BaseModel):
    subject: str = ""
    sender: str = ""
    body: str = ""


class JobExtractRequest(BaseModel):
    emails: list[JobEmail] = Field(..., min_length=1, max_length=10)
    auto_create: bool = True


class JobExtractResult(BaseModel):
    subject: str
    outcome: Literal["skipped", "found", "created", "error"]
    confidence: int = 0
    title: str | None = None
    company: str | None = None
    requirement_id: str | None = None
    error: str | None = None


# Dashboard / activity
class ActivityResponse(BaseModel):
    id: str
    user_id: str | None
    action: str
    resource_type: str | None
    resource_id: str | None
    details: dict
    created_at: datetime

    class Config:
        from_attributes = True


class UpcomingInterview(BaseModel):
    id: str
    requirement_id: str
    scheduled_date: date
    scheduled_time: str | None
    interview_with: str | None
    status: str


class DashboardResponse(BaseModel):
    requirements_by_status: dict[str, int]
    consultants_by_status: dict[str, int]
    upcoming_interviews: list[UpcomingInterview]
    campaigns_last_30_days: int
    recent_activity: list[ActivityResponse]
