"""Requirement email history endpoints."""

from datetime import UTC, datetime, timedelta

from onehub.db import RequirementEmail


def test_record_and_list(client, headers, make_requirement):
    req = make_requirement()
    url = f"/requirement-emails/requirement/{req['id']}"

    response = client.post(
        url,
        json={"recipient_email": "Vendor@Acme.com", "subject": "Profile", "body": "x" * 800},
        headers=headers,
    )
    assert response.status_code == 200
    record = response.json()
    assert record["recipient_email"] == "vendor@acme.com"
    assert record["sent_via"] == "loster_app"
    assert len(record["body_preview"]) == 500
    assert record["needs_user_confirmation"] is False

    assert client.post(url, json={"recipient_email": "bad"}, headers=headers).status_code == 400
    assert client.get(url, headers=headers).json()["total"] == 1


def test_paging(client, headers, make_requirement):
    req = make_requirement()
    url = f"/requirement-emails/requirement/{req['id']}"
    for i in range(3):
        client.post(url, json={"recipient_email": f"v{i}@acme.com"}, headers=headers)

    first = client.get(url, params={"page": 0, "page_size": 2}, headers=headers).json()
    second = client.get(url, params={"page": 1, "page_size": 2}, headers=headers).json()
    assert (len(first["items"]), first["has_more"]) == (2, True)
    assert (len(second["items"]), second["has_more"]) == (1, False)
    assert first["total"] == second["total"] == 3


def test_stats(client, headers, make_requirement):
    req = make_requirement()
    url = f"/requirement-emails/requirement/{req['id']}"
    client.post(url, json={"recipient_email": "a@acme.com"}, headers=headers)
    client.post(url, json={"recipient_email": "A@acme.com"}, headers=headers)
    client.post(url, json={"recipient_email": "b@acme.com", "status": "failed"}, headers=headers)
    bounced = client.post(url, json={"recipient_email": "c@acme.com"}, headers=headers).json()
    client.put(f"/requirement-emails/{bounced['id']}/status", json={"status": "bounced"}, headers=headers)

    stats = client.get(f"{url}/stats", headers=headers).json()
    assert (stats["total"], stats["sent"], stats["failed"], stats["bounced"]) == (4, 2, 1, 1)
    assert stats["unique_recipients"] == 3
    assert stats["last_sent"] is not None


def test_unconfirmed_matches(client, headers, other_headers, make_requirement, db):
    req = make_requirement()
    db.add(
        RequirementEmail(
            requirement_id=req["id"],
            recipient_email="vendor@acme.com",
            sent_via="gmail_synced",
            sent_date=datetime.now(UTC) - timedelta(days=1),
            match_confidence=60,
            needs_user_confirmation=True,
        )
    )
    db.commit()

    pending = client.get("/requirement-emails/unconfirmed", headers=headers).json()
    assert len(pending) == 1
    assert client.get("/requirement-emails/unconfirmed", headers=other_headers).json() == []

    confirmed = client.post(f"/requirement-emails/{pending[0]['id']}/confirm", headers=headers).json()
    assert confirmed["needs_user_confirmation"] is False
    assert confirmed["match_confidence"] == 100
    assert client.get("/requirement-emails/unconfirmed", headers=headers).json() == []


def test_owner_checks_and_delete(client, headers, other_headers, make_requirement):
    req = make_requirement()
    record = client.post(
        f"/requirement-emails/requirement/{req['id']}", json={"recipient_email": "v@acme.com"}, headers=headers
    ).json()

    assert client.get(f"/requirement-emails/{record['id']}", headers=other_headers).status_code == 403
    assert client.delete(f"/requirement-emails/{record['id']}", headers=headers).status_code == 200
    assert client.get(f"/requirement-emails/{record['id']}", headers=headers).status_code == 404
