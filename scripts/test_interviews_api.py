"""Interview endpoints and the status workflow."""

from datetime import date, timedelta

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from onehub.api.routes import interviews as interview_routes


@pytest.fixture
def requirement(make_requirement):
    return make_requirement(
        vendor_company="Acme Staffing",
        primary_tech_stack="Java, Kafka",
        description="Build payment services on Kafka.",
    )


@pytest.fixture
def make_interview(client, headers, requirement):
    def _make(**overrides):
        payload = {
            "requirement_id": requirement["id"],
            "scheduled_date": (date.today() + timedelta(days=3)).isoformat(),
            "scheduled_time": "10:30",
            "interview_with": "Priya Raman",
            **overrides,
        }
        response = client.post("/interviews", json=payload, headers=headers)
        assert response.status_code == 200, response.text
        return response.json()

    return _make


def test_create_defaults(make_interview):
    interview = make_interview(location="https://teams.microsoft.com/l/meetup-join/1")
    assert interview["status"] == "Scheduled"
    assert interview["duration_minutes"] == 60
    assert interview["vendor_company"] == "Acme Staffing"
    assert interview["location_label"] == "Teams.microsoft.com"


def test_create_rejects_past_and_missing(client, headers, requirement):
    response = client.post(
        "/interviews",
        json={
            "requirement_id": requirement["id"],
            "scheduled_date": (date.today() - timedelta(days=1)).isoformat(),
            "interview_with": "",
        },
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"]["errors"] == {
        "scheduled_date": "Interview must be scheduled for a future date and time",
        "interview_with": "Candidate name is required",
    }


def test_create_needs_owned_requirement(client, other_headers, requirement):
    response = client.post(
        "/interviews",
        json={
            "requirement_id": requirement["id"],
            "scheduled_date": (date.today() + timedelta(days=1)).isoformat(),
            "interview_with": "Ann",
        },
        headers=other_headers,
    )
    assert response.status_code == 403


def test_status_workflow(client, headers, make_interview):
    interview = make_interview()
    url = f"/interviews/{interview['id']}"

    response = client.put(url, json={"status": "Completed"}, headers=headers)
    assert response.status_code == 409
    assert "Confirmed" in response.json()["detail"]

    assert client.put(url, json={"status": "Confirmed"}, headers=headers).json()["status"] == "Confirmed"
    assert client.put(url, json={"status": "Completed"}, headers=headers).json()["status"] == "Completed"
    assert client.put(url, json={"status": "Cancelled"}, headers=headers).status_code == 409


def test_reschedule_validates_date(client, headers, make_interview):
    interview = make_interview()
    url = f"/interviews/{interview['id']}"

    past = (date.today() - timedelta(days=2)).isoformat()
    assert client.put(url, json={"scheduled_date": past}, headers=headers).status_code == 400
    assert client.put(url, json={"scheduled_time": "7pm"}, headers=headers).status_code == 400

    later = (date.today() + timedelta(days=10)).isoformat()
    response = client.put(url, json={"scheduled_date": later, "notes": "moved"}, headers=headers)
    assert response.json()["scheduled_date"] == later
    assert response.json()["notes"] == "moved"


def test_update_rejects_null_on_required_columns(client, headers, make_interview):
    interview = make_interview()
    url = f"/interviews/{interview['id']}"

    for field in ("scheduled_date", "status", "duration_minutes"):
        response = client.put(url, json={field: None}, headers=headers)
        assert response.status_code == 400, field
        assert response.json()["detail"]["errors"] == {field: "Cannot be null"}

    unchanged = client.get(url, headers=headers).json()
    assert unchanged["scheduled_date"] == interview["scheduled_date"]
    assert unchanged["status"] == "Scheduled"


def test_list_and_delete(client, headers, make_interview, requirement):
    later = make_interview(scheduled_date=(date.today() + timedelta(days=5)).isoformat())
    sooner = make_interview()

    listed = client.get("/interviews", params={"requirement_id": requirement["id"]}, headers=headers).json()
    assert [i["id"] for i in listed] == [sooner["id"], later["id"]]

    assert client.delete(f"/interviews/{sooner['id']}", headers=headers).status_code == 200
    assert client.get(f"/interviews/{sooner['id']}", headers=headers).status_code == 404


def test_statuses(client):
    body = client.get("/interviews/statuses").json()
    assert "No Show" in body["statuses"]
    assert body["transitions"]["Cancelled"] == ["Scheduled"]


def test_focus_needs_api_key(client, headers, make_interview):
    interview = make_interview()
    assert client.post(f"/interviews/{interview['id']}/focus", headers=headers).status_code == 503


def test_focus_bullets(client, headers, make_interview, monkeypatch):
    llm = FakeListChatModel(responses=["Focus areas:\n- Kafka consumer groups\n* Idempotent payments\nGood luck"])
    monkeypatch.setattr(interview_routes, "create_focus_llm", lambda: llm)

    interview = make_interview()
    response = client.post(f"/interviews/{interview['id']}/focus", headers=headers)
    assert response.status_code == 200
    assert response.json()["interview_focus"] == "- Kafka consumer groups\n- Idempotent payments"
