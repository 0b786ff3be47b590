"""Bulk email campaign endpoints."""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from onehub.api.limiter import limiter
from onehub.api.routes.email_accounts import get_email_client
from onehub.api.routes.requirements import get_owned_requirement
from onehub.api.schemas import (
    CampaignCreate,
    CampaignDetailResponse,
    CampaignPollRequest,
    CampaignResponse,
    CampaignSendResponse,
    CampaignStatusResponse,
    ParsedRecipient,
    RecipientParseRequest,
    RecipientResponse,
)
from onehub.db import BulkEmailCampaign, get_db
from onehub.db.activity import log_activity
from onehub.services.bulk_email import (
    TERMINAL_STATUSES,
    CampaignError,
    active_accounts,
    create_campaign,
    get_status_row,
    poll_campaign,
    send_campaign,
    status_snapshot,
    sync_campaign_to_history,
)
from onehub.tools.email_server import EmailServerClient
from onehub.utils.email_list import assign_accounts, parse_email_list

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_owned(db: Session, campaign_id: str, x_user_id: str) -> BulkEmailCampaign:
    campaign = db.query(BulkEmailCampaign).filter(BulkEmailCampaign.id == campaign_id).first()
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")
    if campaign.user_id != x_user_id:
        raise HTTPException(status_code=403, detail="Access denied")
    return campaign


def _detail(campaign: BulkEmailCampaign) -> CampaignDetailResponse:
    return CampaignDetailResponse(
        **CampaignResponse.model_validate(campaign).model_dump(),
        recipients=[RecipientResponse.model_validate(r) for r in campaign.recipients],
    )


@router.post("/parse-recipients", response_model=list[ParsedRecipient])
def parse_recipients(
    data: RecipientParseRequest,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Parse a pasted recipient list and preview which account sends each email."""
    recipients = parse_email_list(data.text)
    accounts = active_accounts(db, x_user_id, data.account_ids)
    if not accounts:
        return [ParsedRecipient(**r) for r in recipients]

    assigned = assign_accounts(recipients, [a.id for a in accounts], data.rotation_enabled, data.emails_per_account)
    return [ParsedRecipient(**r, account_id=account_id) for r, account_id in zip(recipients, assigned)]


@router.post("", response_model=CampaignDetailResponse)
def create(
    data: CampaignCreate,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Create a draft campaign."""
    if data.requirement_id:
        get_owned_requirement(db, data.requirement_id, x_user_id)

    recipients = [r.model_dump() for r in data.recipients]
    if data.recipients_text:
        recipients.extend(parse_email_list(data.recipients_text))

    try:
        campaign = create_campaign(
            db,
            x_user_id,
            data.subject,
            data.body,
            recipients,
            requirement_id=data.requirement_id,
            rotation_enabled=data.rotation_enabled,
            emails_per_account=data.emails_per_account,
            account_ids=data.account_ids,
        )
    except CampaignError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _detail(campaign)


@router.get("", response_model=list[CampaignResponse])
def list_campaigns(
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """List the caller's campaigns, newest first."""
    campaigns = (
        db.query(BulkEmailCampaign)
        .filter(BulkEmailCampaign.user_id == x_user_id)
        .order_by(BulkEmailCampaign.created_at.desc())
        .all()
    )
    return [CampaignResponse.model_validate(c) for c in campaigns]


@router.get("/{campaign_id}", response_model=CampaignDetailResponse)
def get_campaign(
    campaign_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Campaign with recipients in the order they were added."""
    return _detail(_get_owned(db, campaign_id, x_user_id))


@router.delete("/{campaign_id}")
def delete_campaign(
    campaign_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Delete a campaign and its recipients."""
    campaign = _get_owned(db, campaign_id, x_user_id)
    db.delete(campaign)
    db.commit()

    log_activity(db, "bulk_email_campaign_deleted", x_user_id, "bulk_email_campaign", campaign_id)
    return {"message": "Campaign deleted"}


@router.post("/{campaign_id}/send", response_model=CampaignSendResponse)
@limiter.limit("3/minute")
def send(
    request: Request,
    campaign_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
    client: EmailServerClient = Depends(get_email_client),
):
    """Send a draft campaign through the email server."""
    campaign = _get_owned(db, campaign_id, x_user_id)
    if campaign.status != "draft":
        raise HTTPException(status_code=409, detail=f"Campaign already {campaign.status}")

    try:
        result = send_campaign(db, campaign, client)
    except CampaignError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not result["queued"]:
        sync_campaign_to_history(db, campaign)
    return CampaignSendResponse(**result)


@router.get("/{campaign_id}/status", response_model=CampaignStatusResponse)
def campaign_status(
    campaign_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Current progress from the worker's status row (or recipient rows)."""
    campaign = _get_owned(db, campaign_id, x_user_id)
    return CampaignStatusResponse(**status_snapshot(campaign, get_status_row(db, campaign)))


@router.post("/{campaign_id}/poll", response_model=CampaignStatusResponse)
def poll(
    campaign_id: str,
    data: CampaignPollRequest | None = None,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Block until the campaign finishes (or times out), then sync history."""
    campaign = _get_owned(db, campaign_id, x_user_id)
    data = data or CampaignPollRequest()

    try:
        result = poll_campaign(db, campaign, interval=data.interval, timeout=data.timeout)
    except CampaignError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if data.sync_history and campaign.status in TERMINAL_STATUSES:
        sync_campaign_to_history(db, campaign)
    return CampaignStatusResponse(**result)


@router.post("/{campaign_id}/sync")
def sync_history(
    campaign_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Copy recipients into the linked requirement's email history."""
    campaign = _get_owned(db, campaign_id, x_user_id)
    try:
        return {"records": sync_campaign_to_history(db, campaign)}
    except CampaignError as e:
        raise HTTPException(status_code=409, detail=str(e))
