"""
Bulk email campaign pipeline.

create -> send (email server) -> apply results in fixed-size batches
       -> poll status row until terminal -> sync into requirement email history
"""

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from onehub.config import settings
from onehub.db.activity import log_activity
from onehub.db.tables import (
    BulkEmailCampaign,
    CampaignRecipient,
    CampaignStatus,
    EmailAccount,
    RequirementEmail,
)
from onehub.errors import UpstreamError
from onehub.tools.email_server import EmailServerClient
from onehub.utils.email_list import assign_accounts, dedupe_recipients

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = ("completed", "failed")
HISTORY_BATCH_SIZE = 50
BODY_PREVIEW_CHARS = 500


class CampaignError(ValueError):
    """Campaign cannot be created or sent as requested."""


def _chunks(items: list, size: int):
    for i in range(0, len(items), size):
        yield items[i : i + size]


def create_campaign(
    db: Session,
    user_id: str,
    subject: str,
    body: str,
    recipients: list[dict],
    requirement_id: str | None = None,
    rotation_enabled: bool = True,
    emails_per_account: int = 5,
    account_ids: list[str] | None = None,
) -> BulkEmailCampaign:
    """Create a draft campaign with pending recipients."""
    recipients = dedupe_recipients(recipients)
    if not subject.strip() or not body.strip() or not recipients:
        raise CampaignError("Subject, body, and recipients are required")
    if len(recipients) > settings.bulk_max_recipients:
        raise CampaignError(f"Maximum {settings.bulk_max_recipients} recipients allowed per campaign")

    campaign = BulkEmailCampaign(
        user_id=user_id,
        requirement_id=requirement_id,
        subject=subject,
        body=body,
        total_recipients=len(recipients),
        rotation_enabled=rotation_enabled,
        emails_per_account=emails_per_account,
        selected_account_ids=account_ids or [],
        status="draft",
    )
    db.add(campaign)
    db.commit()

    try:
        db.add_all(
            CampaignRecipient(
                campaign_id=campaign.id,
                position=i,
                recipient_email=r["email"],
                recipient_name=r.get("name"),
            )
            for i, r in enumerate(recipients)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[{campaign.id}] Failed to add recipients, removing campaign: {e}")
        db.delete(campaign)
        db.commit()
        raise

    db.refresh(campaign)
    logger.info(f"[{campaign.id}] Created campaign with {len(recipients)} recipients")
    log_activity(
        db,
        "bulk_email_campaign_created",
        user_id,
        "bulk_email_campaign",
        campaign.id,
        {"subject": subject, "total_recipients": len(recipients), "requirement_id": requirement_id},
    )
    return campaign


def active_accounts(db: Session, user_id: str, account_ids: list[str] | None = None) -> list[EmailAccount]:
    query = db.query(EmailAccount).filter(EmailAccount.user_id == user_id, EmailAccount.is_active.is_(True))
    if account_ids:
        query = query.filter(EmailAccount.id.in_(account_ids))
    return query.order_by(EmailAccount.order_index, EmailAccount.created_at).all()


def send_campaign(
    db: Session,
    campaign: BulkEmailCampaign,
    client: EmailServerClient | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> dict:
    """
    Hand a campaign to the email server.

    Returns:
        dict with: campaign_id, status, queued, sent, failed
    """
    recipients = list(campaign.recipients)
    if not recipients:
        raise CampaignError("Campaign has no recipients")
    if len(recipients) > settings.bulk_max_recipients:
        raise CampaignError(f"Maximum {settings.bulk_max_recipients} recipients allowed per campaign")

    accounts = active_accounts(db, campaign.user_id, campaign.selected_account_ids or None)
    if not accounts:
        raise CampaignError("No active email accounts configured")

    assigned = assign_accounts(
        [{"email": r.recipient_email} for r in recipients],
        [a.id for a in accounts],
        campaign.rotation_enabled,
        campaign.emails_per_account,
    )
    by_id = {a.id: a for a in accounts}
    for recipient, account_id in zip(recipients, assigned):
        recipient.account_id = account_id

    campaign.status = "in_progress"
    campaign.started_at = datetime.now(UTC)
    campaign.updated_at = campaign.started_at
    db.commit()

    client = client or EmailServerClient()
    try:
        response = client.send_bulk_emails(
            emails=[{"email": r.recipient_email, "name": r.recipient_name or ""} for r in recipients],
            subject=campaign.subject,
            body=campaign.body,
            emails_per_account=campaign.emails_per_account if campaign.rotation_enabled else None,
            account_emails=[a.email_address for a in accounts],
            recipient_account_map={
                r.recipient_email: by_id[r.account_id].email_address for r in recipients
            },
            campaign_id=campaign.id,
        )
    except UpstreamError:
        _finish(db, campaign, "failed")
        log_activity(db, "bulk_email_campaign_failed", campaign.user_id, "bulk_email_campaign", campaign.id)
        raise

    if isinstance(response.get("details"), list):
        sent, failed = apply_results(db, campaign, response["details"], sleep=sleep)
        _finish(db, campaign, "completed" if failed == 0 else "failed")
        queued = False
    elif response.get("campaignId") or response.get("campaign_id"):
        campaign.email_server_campaign_id = str(response.get("campaignId") or response.get("campaign_id"))
        campaign.status = "queued"
        db.commit()
        sent, failed, queued = 0, 0, True
    else:
        _finish(db, campaign, "failed")
        raise UpstreamError("Email server", response.get("error") or "Unexpected response")

    logger.info(f"[{campaign.id}] Send finished: status={campaign.status} sent={sent} failed={failed}")
    log_activity(
        db,
        "bulk_email_campaign_sent",
        campaign.user_id,
        "bulk_email_campaign",
        campaign.id,
        {"status": campaign.status, "sent": sent, "failed": failed, "accounts": len(accounts)},
    )
    return {
        "campaign_id": campaign.id,
        "status": campaign.status,
        "queued": queued,
        "sent": sent,
        "failed": failed,
    }


def apply_results(
    db: Session,
    campaign: BulkEmailCampaign,
    details: list[dict],
    batch_size: int | None = None,
    delay_ms: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> tuple[int, int]:
    """
    Write per-recipient results back in fixed-size batches.

    Each batch is committed on its own; there is a fixed delay between
    batches (not after the last). Returns (sent, failed) for the details given.
    """
    batch_size = batch_size or settings.bulk_batch_size
    delay_ms = settings.bulk_batch_delay_ms if delay_ms is None else delay_ms
    by_email = {r.recipient_email.lower(): r for r in campaign.recipients}

    sent = failed = 0
    batches = list(_chunks(details, batch_size))
    for index, batch in enumerate(batches):
        now = datetime.now(UTC)
        for detail in batch:
            recipient = by_email.get(str(detail.get("email", "")).lower())
            if recipient is None:
                continue
            if detail.get("status") == "sent":
                recipient.status = "sent"
                recipient.message_id = detail.get("messageId")
                recipient.sent_at = now
                recipient.error_message = None
                sent += 1
            else:
                recipient.status = "failed"
                recipient.error_message = detail.get("error") or "Unknown error"
                failed += 1
        db.commit()
        if index < len(batches) - 1 and delay_ms:
            sleep(delay_ms / 1000)

    return sent, failed


def _finish(db: Session, campaign: BulkEmailCampaign, status: str) -> None:
    campaign.status = status
    campaign.completed_at = datetime.now(UTC)
    campaign.updated_at = campaign.completed_at
    db.commit()


def get_status_row(db: Session, campaign: BulkEmailCampaign) -> CampaignStatus | None:
    status_id = campaign.email_server_campaign_id or campaign.id
    return db.query(CampaignStatus).filter(CampaignStatus.id == status_id).first()


def status_snapshot(campaign: BulkEmailCampaign, row: CampaignStatus | None) -> dict:
    """Progress view combining the campaign and the worker's status row."""
    if row is None:
        counts = {"sent": 0, "failed": 0}
        for r in campaign.recipients:
            if r.status in counts:
                counts[r.status] += 1
        processed = counts["sent"] + counts["failed"]
        total = campaign.total_recipients
        return {
            "campaign_id": campaign.id,
            "status": campaign.status,
            "total": total,
            "sent": counts["sent"],
            "failed": counts["failed"],
            "processed": processed,
            "progress": round(processed / total * 100, 1) if total else 0.0,
        }

    return {
        "campaign_id": campaign.id,
        "status": row.status,
        "total": row.total,
        "sent": row.sent,
        "failed": row.failed,
        "processed": row.processed,
        "progress": row.progress,
    }


def poll_campaign(
    db: Session,
    campaign: BulkEmailCampaign,
    interval: float | None = None,
    timeout: float | None = None,
    on_progress: Callable[[dict], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> dict:
    """
    Poll the status row at a fixed interval until terminal or timeout.

    On a terminal status the per-recipient details are applied and the
    campaign is finalized. A campaign that is already finalized returns its
    current snapshot without polling. Returns the last snapshot plus `timed_out`.

    Raises:
        CampaignError: The campaign has not been sent
    """
    if campaign.status == "draft":
        raise CampaignError("Campaign has not been sent")

    interval = settings.campaign_poll_interval if interval is None else interval
    timeout = settings.campaign_poll_timeout if timeout is None else timeout
    started = clock()

    while True:
        db.expire_all()
        row = get_status_row(db, campaign)
        snapshot = status_snapshot(campaign, row)
        if on_progress:
            on_progress(snapshot)

        if campaign.status in TERMINAL_STATUSES:
            return {**snapshot, "timed_out": False}

        if row is not None and row.status in TERMINAL_STATUSES:
            apply_results(db, campaign, row.details or [], sleep=sleep)
            _finish(db, campaign, "completed" if row.status == "completed" and row.failed == 0 else "failed")
            logger.info(f"[{campaign.id}] Poll finished: {campaign.status}")
            return {**snapshot, "timed_out": False}

        if clock() - started >= timeout:
            logger.warning(f"[{campaign.id}] Poll timed out after {timeout}s at {snapshot['progress']}%")
            return {**snapshot, "timed_out": True}

        sleep(interval)


def sync_campaign_to_history(db: Session, campaign: BulkEmailCampaign) -> int:
    """
    Copy campaign recipients into the requirement's email history, once.

    Status per recipient comes from the worker's details (by email,
    case-insensitive), then the recipient row, defaulting to sent.
    Returns the number of rows written: 0 when no requirement is linked or
    the campaign was already synced.

    Raises:
        CampaignError: The campaign has not finished sending
    """
    if not campaign.requirement_id:
        logger.info(f"[{campaign.id}] No requirement linked, skipping history sync")
        return 0
    if campaign.history_synced_at is not None:
        logger.info(f"[{campaign.id}] Already synced at {campaign.history_synced_at}")
        return 0
    if campaign.status not in TERMINAL_STATUSES:
        raise CampaignError(f"Campaign is {campaign.status}, not finished")

    row = get_status_row(db, campaign)
    status_map: dict[str, str] = {}
    for detail in (row.details if row else None) or []:
        email = str(detail.get("email", "")).lower()
        if email:
            status_map[email] = "failed" if detail.get("status") == "failed" else "sent"

    preview = campaign.body[:BODY_PREVIEW_CHARS]
    sent_date = campaign.completed_at or datetime.now(UTC)
    records = []
    for r in campaign.recipients:
        status = status_map.get(r.recipient_email.lower())
        if status is None:
            status = "failed" if r.status == "failed" else "sent"
        records.append(
            RequirementEmail(
                requirement_id=campaign.requirement_id,
                recipient_email=r.recipient_email,
                recipient_name=r.recipient_name,
                sent_via="bulk_email",
                subject=campaign.subject,
                body_preview=preview,
                sent_date=sent_date,
                status=status,
                match_confidence=100,
                needs_user_confirmation=False,
                error_message=r.error_message if status == "failed" else None,
                created_by=campaign.user_id,
            )
        )

    for batch in _chunks(records, HISTORY_BATCH_SIZE):
        db.add_all(batch)
        db.commit()
    campaign.history_synced_at = datetime.now(UTC)
    db.commit()

    logger.info(f"[{campaign.id}] Synced {len(records)} recipients to requirement {campaign.requirement_id}")
    log_activity(
        db,
        "campaign_synced_to_requirement_emails",
        campaign.user_id,
        "bulk_email_campaign",
        campaign.id,
        {"requirement_id": campaign.requirement_id, "records": len(records)},
    )
    return len(records)
