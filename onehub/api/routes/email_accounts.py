"""Sending email account endpoints."""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from onehub.api.limiter import limiter
from onehub.api.routes.requirements import validation_error
from onehub.api.schemas import (
    EmailAccountCreate,
    EmailAccountResponse,
    EmailAccountUpdate,
    SendTestEmailRequest,
)
from onehub.db import CampaignRecipient, EmailAccount, get_db
from onehub.tools.email_server import EmailServerClient
from onehub.utils.crypto import encrypt_secret
from onehub.utils.validation import is_valid_email

logger = logging.getLogger(__name__)

router = APIRouter()

TEST_SUBJECT = "Test Email from OneHub CRM"
TEST_BODY = "This is a test email to verify your sending account is configured correctly."


def get_email_client() -> EmailServerClient:
    """FastAPI dependency for the email server client."""
    return EmailServerClient()


def _get_owned(db: Session, account_id: str, x_user_id: str) -> EmailAccount:
    account = db.query(EmailAccount).filter(EmailAccount.id == account_id).first()
    if not account:
        raise HTTPException(status_code=404, detail="Email account not found")
    if account.user_id != x_user_id:
        raise HTTPException(status_code=403, detail="Access denied")
    return account


@router.get("", response_model=list[EmailAccountResponse])
def list_accounts(
    include_inactive: bool = False,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """List sending accounts in rotation order."""
    query = db.query(EmailAccount).filter(EmailAccount.user_id == x_user_id)
    if not include_inactive:
        query = query.filter(EmailAccount.is_active.is_(True))
    accounts = query.order_by(EmailAccount.order_index, EmailAccount.created_at).all()
    return [EmailAccountResponse.model_validate(a) for a in accounts]


@router.post("", response_model=EmailAccountResponse)
def add_account(
    data: EmailAccountCreate,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Add a sending account; the app password is stored encrypted."""
    address = data.email_address.strip().lower()
    if not address or not data.app_password.strip():
        raise HTTPException(status_code=400, detail="Email address and app password are required")
    if not is_valid_email(address):
        raise validation_error({"email_address": "Invalid email format"})

    existing = (
        db.query(EmailAccount)
        .filter(EmailAccount.user_id == x_user_id, EmailAccount.email_address == address)
        .first()
    )
    if existing:
        raise HTTPException(status_code=409, detail="Email account already exists")

    last_index = (
        db.query(func.max(EmailAccount.order_index)).filter(EmailAccount.user_id == x_user_id).scalar()
    )
    account = EmailAccount(
        user_id=x_user_id,
        email_address=address,
        app_password_encrypted=encrypt_secret(data.app_password.strip()),
        email_limit_per_rotation=data.email_limit_per_rotation,
        order_index=0 if last_index is None else last_index + 1,
    )
    db.add(account)
    db.commit()
    db.refresh(account)

    logger.info(f"Added email account {account.id} for user {x_user_id}")
    return EmailAccountResponse.model_validate(account)


@router.put("/{account_id}", response_model=EmailAccountResponse)
def update_account(
    account_id: str,
    data: EmailAccountUpdate,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Update rotation limit, active flag or order."""
    account = _get_owned(db, account_id, x_user_id)
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(account, field, value)
    account.updated_at = datetime.now(UTC)
    db.commit()
    db.refresh(account)
    return EmailAccountResponse.model_validate(account)


@router.delete("/{account_id}")
def delete_account(
    account_id: str,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
):
    """Delete a sending account."""
    account = _get_owned(db, account_id, x_user_id)
    db.query(CampaignRecipient).filter(CampaignRecipient.account_id == account_id).update(
        {CampaignRecipient.account_id: None}, synchronize_session=False
    )
    db.delete(account)
    db.commit()
    return {"message": "Email account deleted"}


@router.post("/{account_id}/test")
@limiter.limit("5/minute")
def test_account(
    request: Request,
    account_id: str,
    data: SendTestEmailRequest,
    x_user_id: str = Header(..., alias="X-User-ID"),
    db: Session = Depends(get_db),
    client: EmailServerClient = Depends(get_email_client),
):
    """Send a test email through this account."""
    account = _get_owned(db, account_id, x_user_id)
    if not is_valid_email(data.to):
        raise validation_error({"to": "Invalid email format"})

    result = client.send_email(data.to.strip(), TEST_SUBJECT, TEST_BODY, from_address=account.email_address)
    return {"success": True, "message_id": result.get("messageId"), "from": account.email_address}
