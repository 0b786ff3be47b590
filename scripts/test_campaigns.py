"""Bulk email campaigns: create, send, batch results, poll, history sync."""

import itertools

import pytest

from onehub.config import settings
from onehub.db import CampaignStatus, EmailAccount, RequirementEmail
from onehub.errors import UpstreamError
from onehub.services.bulk_email import (
    CampaignError,
    apply_results,
    create_campaign,
    poll_campaign,
    send_campaign,
    sync_campaign_to_history,
)
from onehub.utils.crypto import encrypt_secret

RECIPIENTS = [{"email": f"r{i}@x.com", "name": f"R{i}"} for i in range(5)]


@pytest.fixture
def accounts(db, headers):
    rows = [
        EmailAccount(
            user_id=headers["X-User-ID"],
            email_address=address,
            app_password_encrypted=encrypt_secret("secret"),
            order_index=i,
        )
        for i, address in enumerate(["a@gmail.com", "b@gmail.com"])
    ]
    db.add_all(rows)
    db.commit()
    return rows


# API


def test_parse_recipients_preview(client, headers, accounts):
    response = client.post(
        "/campaigns/parse-recipients",
        json={"text": "Jane <jane@x.com>\nbob@x.com; carl@x.com\nJANE@x.com", "emails_per_account": 2},
        headers=headers,
    )
    parsed = response.json()
    assert [p["email"] for p in parsed] == ["jane@x.com", "bob@x.com", "carl@x.com"]
    assert [p["account_id"] for p in parsed] == [accounts[0].id, accounts[0].id, accounts[1].id]


def test_create_validation(client, headers, monkeypatch):
    response = client.post("/campaigns", json={"subject": "", "body": "Hi", "recipients": RECIPIENTS}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Subject, body, and recipients are required"

    monkeypatch.setattr(settings, "bulk_max_recipients", 3)
    response = client.post("/campaigns", json={"subject": "S", "body": "B", "recipients": RECIPIENTS}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Maximum 3 recipients allowed per campaign"


def test_create_merges_text_and_dedupes(client, headers):
    response = client.post(
        "/campaigns",
        json={
            "subject": "Java role",
            "body": "Hello",
            "recipients": [{"email": "A@x.com", "name": "A"}],
            "recipients_text": "a@x.com\nb@x.com, Bee",
        },
        headers=headers,
    )
    campaign = response.json()
    assert campaign["status"] == "draft"
    assert campaign["total_recipients"] == 2
    assert [(r["recipient_email"], r["recipient_name"]) for r in campaign["recipients"]] == [
        ("a@x.com", "A"),
        ("b@x.com", "Bee"),
    ]


def test_send_sync_completes_and_syncs_history(client, headers, accounts, email_server, make_requirement, db):
    req = make_requirement()
    campaign = client.post(
        "/campaigns",
        json={
            "subject": "Java role",
            "body": "Hello " * 200,
            "recipients": RECIPIENTS,
            "requirement_id": req["id"],
            "emails_per_account": 2,
        },
        headers=headers,
    ).json()

    response = client.post(f"/campaigns/{campaign['id']}/send", headers=headers)
    assert response.status_code == 200
    assert response.json() == {
        "campaign_id": campaign["id"],
        "status": "completed",
        "queued": False,
        "sent": 5,
        "failed": 0,
    }

    payload = email_server.requests[-1]["json"]
    assert payload["rotationConfig"] == {"emailsPerAccount": 2}
    assert payload["accountEmails"] == ["a@gmail.com", "b@gmail.com"]
    assert payload["recipientAccountMap"]["r2@x.com"] == "b@gmail.com"
    assert payload["campaignId"] == campaign["id"]

    detail = client.get(f"/campaigns/{campaign['id']}", headers=headers).json()
    assert [r["account_id"] for r in detail["recipients"]] == [
        accounts[0].id,
        accounts[0].id,
        accounts[1].id,
        accounts[1].id,
        accounts[0].id,
    ]
    assert all(r["status"] == "sent" and r["message_id"] for r in detail["recipients"])

    history = client.get(f"/requirement-emails/requirement/{req['id']}", headers=headers).json()
    assert history["total"] == 5
    assert {h["sent_via"] for h in history["items"]} == {"bulk_email"}
    assert len(history["items"][0]["body_preview"]) == 500

    assert client.post(f"/campaigns/{campaign['id']}/send", headers=headers).status_code == 409


def test_send_without_accounts(client, headers):
    campaign = client.post(
        "/campaigns", json={"subject": "S", "body": "B", "recipients": RECIPIENTS}, headers=headers
    ).json()
    response = client.post(f"/campaigns/{campaign['id']}/send", headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "No active email accounts configured"


def test_send_upstream_error_marks_failed(client, headers, accounts, email_server):
    email_server.mode = "error"
    campaign = client.post(
        "/campaigns", json={"subject": "S", "body": "B", "recipients": RECIPIENTS}, headers=headers
    ).json()

    assert client.post(f"/campaigns/{campaign['id']}/send", headers=headers).status_code == 502
    assert client.get(f"/campaigns/{campaign['id']}", headers=headers).json()["status"] == "failed"


def test_queued_send_then_poll(client, headers, accounts, email_server, make_requirement, db):
    email_server.mode = "queued"
    req = make_requirement()
    campaign = client.post(
        "/campaigns",
        json={"subject": "S", "body": "B", "recipients": RECIPIENTS[:3], "requirement_id": req["id"]},
        headers=headers,
    ).json()

    sent = client.post(f"/campaigns/{campaign['id']}/send", headers=headers).json()
    assert sent["queued"] is True
    assert sent["status"] == "queued"

    status = client.get(f"/campaigns/{campaign['id']}/status", headers=headers).json()
    assert (status["status"], status["processed"], status["progress"]) == ("queued", 0, 0.0)
    assert client.get(f"/requirement-emails/requirement/{req['id']}", headers=headers).json()["total"] == 0

    db.add(
        CampaignStatus(
            id=campaign["id"],
            status="completed",
            total=3,
            sent=2,
            failed=1,
            processed=3,
            progress=100.0,
            details=[
                {"email": "r0@x.com", "status": "sent", "messageId": "<m0>"},
                {"email": "R1@X.COM", "status": "sent", "messageId": "<m1>"},
                {"email": "r2@x.com", "status": "failed", "error": "Quota exceeded"},
            ],
        )
    )
    db.commit()

    polled = client.post(f"/campaigns/{campaign['id']}/poll", json={"interval": 0, "timeout": 5}, headers=headers)
    assert polled.json() == {
        "campaign_id": campaign["id"],
        "status": "completed",
        "total": 3,
        "sent": 2,
        "failed": 1,
        "processed": 3,
        "progress": 100.0,
        "timed_out": False,
    }

    detail = client.get(f"/campaigns/{campaign['id']}", headers=headers).json()
    assert detail["status"] == "failed"
    assert [r["status"] for r in detail["recipients"]] == ["sent", "sent", "failed"]
    assert detail["recipients"][2]["error_message"] == "Quota exceeded"

    history = client.get(f"/requirement-emails/requirement/{req['id']}/stats", headers=headers).json()
    assert (history["total"], history["sent"], history["failed"]) == (3, 2, 1)

    # a finished campaign returns at once and is synced only once
    again = client.post(f"/campaigns/{campaign['id']}/poll", json={"interval": 0, "timeout": 5}, headers=headers)
    assert again.json() == polled.json()
    assert client.post(f"/campaigns/{campaign['id']}/sync", headers=headers).json() == {"records": 0}
    stats = client.get(f"/requirement-emails/requirement/{req['id']}/stats", headers=headers).json()
    assert stats["total"] == 3
    assert client.get(f"/campaigns/{campaign['id']}", headers=headers).json()["history_synced_at"] is not None


def test_poll_after_sync_send_returns_at_once(client, headers, accounts, make_requirement):
    req = make_requirement()
    campaign = client.post(
        "/campaigns",
        json={"subject": "S", "body": "B", "recipients": RECIPIENTS[:2], "requirement_id": req["id"]},
        headers=headers,
    ).json()
    client.post(f"/campaigns/{campaign['id']}/send", headers=headers)

    for _ in range(2):
        polled = client.post(
            f"/campaigns/{campaign['id']}/poll", json={"interval": 0, "timeout": 5}, headers=headers
        ).json()
        assert (polled["status"], polled["sent"], polled["timed_out"]) == ("completed", 2, False)

    assert client.get(f"/requirement-emails/requirement/{req['id']}", headers=headers).json()["total"] == 2


def test_draft_cannot_be_polled_or_synced(client, headers, make_requirement):
    req = make_requirement()
    campaign = client.post(
        "/campaigns",
        json={"subject": "S", "body": "B", "recipients": RECIPIENTS[:1], "requirement_id": req["id"]},
        headers=headers,
    ).json()

    response = client.post(f"/campaigns/{campaign['id']}/poll", json={"timeout": 0}, headers=headers)
    assert response.status_code == 409
    assert response.json()["detail"] == "Campaign has not been sent"
    assert client.post(f"/campaigns/{campaign['id']}/sync", headers=headers).status_code == 409
    assert client.get(f"/requirement-emails/requirement/{req['id']}", headers=headers).json()["total"] == 0


def test_delete_campaign(client, headers, other_headers):
    campaign = client.post(
        "/campaigns", json={"subject": "S", "body": "B", "recipients": RECIPIENTS}, headers=headers
    ).json()
    assert client.delete(f"/campaigns/{campaign['id']}", headers=other_headers).status_code == 403
    assert client.delete(f"/campaigns/{campaign['id']}", headers=headers).status_code == 200
    assert client.get("/campaigns", headers=headers).json() == []


# Service


def test_rotation_disabled_alternates(db, headers, accounts, email_server):
    campaign = create_campaign(db, headers["X-User-ID"], "S", "B", RECIPIENTS, rotation_enabled=False)
    send_campaign(db, campaign, email_server.client(), sleep=lambda s: None)

    assert [r.account_id for r in campaign.recipients] == [
        accounts[0].id,
        accounts[1].id,
        accounts[0].id,
        accounts[1].id,
        accounts[0].id,
    ]
    assert email_server.requests[-1]["json"]["rotationConfig"] is None


def test_partial_failure(db, headers, accounts, email_server):
    email_server.failing = {"r3@x.com"}
    campaign = create_campaign(db, headers["X-User-ID"], "S", "B", RECIPIENTS)

    result = send_campaign(db, campaign, email_server.client(), sleep=lambda s: None)
    assert (result["status"], result["sent"], result["failed"]) == ("failed", 4, 1)
    failed = [r for r in campaign.recipients if r.status == "failed"]
    assert [(r.recipient_email, r.error_message) for r in failed] == [("r3@x.com", "Mailbox unavailable")]


def test_selected_accounts_only(db, headers, accounts, email_server):
    campaign = create_campaign(
        db, headers["X-User-ID"], "S", "B", RECIPIENTS, account_ids=[accounts[1].id]
    )
    send_campaign(db, campaign, email_server.client(), sleep=lambda s: None)
    assert {r.account_id for r in campaign.recipients} == {accounts[1].id}


def test_upstream_error_propagates(db, headers, accounts, email_server):
    email_server.mode = "error"
    campaign = create_campaign(db, headers["X-User-ID"], "S", "B", RECIPIENTS)
    with pytest.raises(UpstreamError):
        send_campaign(db, campaign, email_server.client())
    assert campaign.status == "failed"
    assert campaign.completed_at is not None


def test_send_requires_recipients(db, headers, accounts):
    campaign = create_campaign(db, headers["X-User-ID"], "S", "B", RECIPIENTS)
    campaign.recipients.clear()
    db.commit()
    with pytest.raises(CampaignError, match="no recipients"):
        send_campaign(db, campaign)


def test_results_applied_in_batches(db, headers):
    recipients = [{"email": f"r{i}@x.com"} for i in range(12)]
    campaign = create_campaign(db, headers["X-User-ID"], "S", "B", recipients)
    details = [{"email": r["email"], "status": "sent", "messageId": f"<{i}>"} for i, r in enumerate(recipients)]
    details.append({"email": "stranger@x.com", "status": "sent"})

    sleeps = []
    sent, failed = apply_results(db, campaign, details, batch_size=5, delay_ms=100, sleep=sleeps.append)

    assert (sent, failed) == (12, 0)
    assert sleeps == [0.1, 0.1]
    assert all(r.sent_at is not None for r in campaign.recipients)


def test_poll_times_out(db, headers):
    campaign = create_campaign(db, headers["X-User-ID"], "S", "B", RECIPIENTS)
    campaign.status = "queued"
    db.commit()

    ticks = itertools.count()
    progress, sleeps = [], []
    result = poll_campaign(
        db,
        campaign,
        interval=1,
        timeout=2,
        on_progress=progress.append,
        sleep=sleeps.append,
        clock=lambda: next(ticks),
    )

    assert result["timed_out"] is True
    assert result["status"] == "queued"
    assert sleeps == [1]
    assert len(progress) == 2
    assert campaign.status == "queued"


def test_poll_reports_progress_until_done(db, headers):
    campaign = create_campaign(db, headers["X-User-ID"], "S", "B", RECIPIENTS[:2])
    campaign.status = "queued"
    db.add(CampaignStatus(id=campaign.id, status="processing", total=2, processed=1, sent=1, progress=50.0))
    db.commit()

    def worker_finishes(_):
        row = db.get(CampaignStatus, campaign.id)
        row.status = "completed"
        row.processed, row.sent, row.progress = 2, 2, 100.0
        row.details = [{"email": r["email"], "status": "sent"} for r in RECIPIENTS[:2]]
        db.commit()

    progress = []
    result = poll_campaign(db, campaign, interval=0, timeout=10, on_progress=progress.append, sleep=worker_finishes)

    assert [p["progress"] for p in progress] == [50.0, 100.0]
    assert result["timed_out"] is False
    assert campaign.status == "completed"


def test_history_sync_without_requirement(db, headers):
    campaign = create_campaign(db, headers["X-User-ID"], "S", "B", RECIPIENTS)
    assert sync_campaign_to_history(db, campaign) == 0
    assert db.query(RequirementEmail).count() == 0
