"""Dashboard summary and activity timeline."""

from datetime import date, timedelta


def test_dashboard_summary(client, headers, make_requirement):
    req = make_requirement()
    make_requirement(title="Other")
    client.put(f"/requirements/{req['id']}", json={"status": "INTERVIEW"}, headers=headers)
    client.post("/consultants", json={"name": "Ann"}, headers=headers)

    soon = client.post(
        "/interviews",
        json={
            "requirement_id": req["id"],
            "scheduled_date": (date.today() + timedelta(days=2)).isoformat(),
            "interview_with": "Ann",
        },
        headers=headers,
    ).json()
    client.post(
        "/interviews",
        json={
            "requirement_id": req["id"],
            "scheduled_date": (date.today() + timedelta(days=20)).isoformat(),
            "interview_with": "Ann",
        },
        headers=headers,
    )
    client.post(
        "/campaigns",
        json={"subject": "S", "body": "B", "recipients": [{"email": "a@x.com"}]},
        headers=headers,
    )

    dashboard = client.get("/dashboard", headers=headers).json()
    assert dashboard["requirements_by_status"] == {"NEW": 1, "INTERVIEW": 1}
    assert dashboard["consultants_by_status"] == {"Active": 1}
    assert [i["id"] for i in dashboard["upcoming_interviews"]] == [soon["id"]]
    assert dashboard["campaigns_last_30_days"] == 1
    assert dashboard["recent_activity"][0]["action"] == "bulk_email_campaign_created"


def test_dashboard_is_per_user(client, headers, other_headers, make_requirement):
    make_requirement()
    dashboard = client.get("/dashboard", headers=other_headers).json()
    assert dashboard["requirements_by_status"] == {}
    assert dashboard["recent_activity"] == []


def test_activity_timeline_for_resource(client, headers, make_requirement):
    req = make_requirement()
    client.put(f"/requirements/{req['id']}", json={"status": "SUBMITTED"}, headers=headers)
    make_requirement(title="Unrelated")

    entries = client.get(
        "/dashboard/activity",
        params={"resource_type": "requirement", "resource_id": req["id"]},
        headers=headers,
    ).json()
    assert [e["action"] for e in entries] == ["requirement_status_changed", "requirement_created"]
    assert entries[0]["details"] == {"status": "SUBMITTED"}


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
