"""Requirement endpoints: CRUD, numbering, pagination, export, report, matching."""

import csv
import io
from datetime import UTC, datetime, timedelta

from onehub.db import ActivityLog, Requirement
from onehub.utils.pagination import encode_cursor


def test_create_assigns_sequential_numbers(make_requirement, headers):
    first = make_requirement()
    second = make_requirement(title="QA Analyst", company="Globex")

    assert first["requirement_number"] == 1
    assert second["requirement_number"] == 2
    assert first["status"] == "NEW"
    assert first["created_by"] == headers["X-User-ID"]


def test_create_validation_errors(client, headers):
    response = client.post(
        "/requirements",
        json={"title": "", "company": "Acme", "vendor_email": "nope", "rate": "lots"},
        headers=headers,
    )
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "Validation failed"
    assert detail["errors"] == {
        "title": "Job title is required",
        "vendor_email": "Invalid email format",
        "rate": "Invalid rate format (e.g., 80k or $80k-120k)",
    }


def test_missing_user_header_rejected(client):
    assert client.get("/requirements").status_code == 422


def test_create_reports_similar_open_requirements(client, headers, make_requirement):
    make_requirement(title="Python Developer", company="ACME CORP")
    make_requirement(title="Java Developer", company="Other Inc")
    closed = make_requirement(title="Python Engineer", company="Acme Corp")
    client.put(f"/requirements/{closed['id']}", json={"status": "CLOSED"}, headers=headers)

    response = client.post(
        "/requirements", json={"title": "Senior Python Engineer", "company": "acme corp"}, headers=headers
    )
    similar = response.json()["similar"]
    assert [s["title"] for s in similar] == ["Python Developer"]


def test_get_update_delete(client, headers, other_headers, make_requirement, db):
    req = make_requirement()

    assert client.get(f"/requirements/{req['id']}", headers=headers).json()["title"] == req["title"]
    assert client.get(f"/requirements/{req['id']}", headers=other_headers).status_code == 403
    assert client.get("/requirements/missing", headers=headers).status_code == 404

    response = client.put(
        f"/requirements/{req['id']}", json={"status": "SUBMITTED", "rate": "$80k"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "SUBMITTED"
    assert response.json()["rate"] == "$80k"
    assert response.json()["company"] == "Acme Corp"

    # merged result must stay valid
    assert client.put(f"/requirements/{req['id']}", json={"company": ""}, headers=headers).status_code == 400

    assert client.delete(f"/requirements/{req['id']}", headers=headers).status_code == 200
    assert client.get(f"/requirements/{req['id']}", headers=headers).status_code == 404

    actions = [a.action for a in db.query(ActivityLog).order_by(ActivityLog.created_at).all()]
    assert actions == ["requirement_created", "requirement_status_changed", "requirement_deleted"]


def test_update_rejects_null_on_required_columns(client, headers, make_requirement):
    req = make_requirement(location="Austin, TX")
    url = f"/requirements/{req['id']}"

    response = client.put(url, json={"status": None}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"]["errors"] == {"status": "Cannot be null"}
    assert "title" in client.put(url, json={"title": None}, headers=headers).json()["detail"]["errors"]

    # nullable columns can still be cleared
    cleared = client.put(url, json={"location": None}, headers=headers).json()
    assert cleared["location"] is None
    assert cleared["status"] == "NEW"


def test_list_filters(client, headers, other_headers, make_requirement):
    make_requirement(title="Python Developer", primary_tech_stack="Python, AWS")
    make_requirement(title="Java Developer", company="Globex")
    client.post("/requirements", json={"title": "Other", "company": "X"}, headers=other_headers)

    assert len(client.get("/requirements", headers=headers).json()) == 2
    found = client.get("/requirements", params={"search": "aws"}, headers=headers).json()
    assert [r["title"] for r in found] == ["Python Developer"]
    assert client.get("/requirements", params={"status": "CLOSED"}, headers=headers).json() == []


def test_keyset_pages_cover_everything_once(client, headers, make_requirement):
    titles = [f"Role {c}" for c in "ABCDE"]
    for title in titles:
        make_requirement(title=title)

    seen, cursor = [], None
    while True:
        params = {"page_size": 2, "sort_by": "title", "sort_order": "asc"}
        if cursor:
            params["cursor"] = cursor
        page = client.get("/requirements/page", params=params, headers=headers).json()
        seen.extend(item["title"] for item in page["items"])
        assert page["has_prev_page"] == (cursor is not None)
        if not page["has_next_page"]:
            assert page["next_cursor"] is None
            break
        cursor = page["next_cursor"]

    assert seen == titles


def test_page_remote_filter(client, headers, make_requirement):
    make_requirement(title="A", remote="Remote")
    make_requirement(title="B", remote="Hybrid")
    make_requirement(title="C")

    def titles(remote):
        page = client.get("/requirements/page", params={"remote": remote, "sort_by": "title"}, headers=headers)
        return sorted(r["title"] for r in page.json()["items"])

    assert titles("REMOTE") == ["A"]
    assert titles("HYBRID") == ["B"]
    assert titles("ONSITE") == ["C"]
    assert titles("ALL") == ["A", "B", "C"]


def test_page_rejects_bad_cursor(client, headers):
    response = client.get("/requirements/page", params={"cursor": "not-a-cursor!"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid cursor token"

    bad_date = encode_cursor("x", "yesterday")
    assert client.get("/requirements/page", params={"cursor": bad_date}, headers=headers).status_code == 400


def test_export_csv(client, headers, make_requirement):
    make_requirement(title="Dev, Backend", rate="90k")

    response = client.get("/requirements/export", params={"columns": "title,company,rate"}, headers=headers)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows == [["title", "company", "rate"], ["Dev, Backend", "Acme Corp", "90k"]]

    assert client.get("/requirements/export", params={"columns": "title,ssn"}, headers=headers).status_code == 400


def test_report_aging_and_sla(client, headers, make_requirement, db):
    fresh = make_requirement(title="Fresh")
    old = make_requirement(title="Old")
    closed = make_requirement(title="Closed")
    client.put(f"/requirements/{closed['id']}", json={"status": "CLOSED"}, headers=headers)

    row = db.get(Requirement, old["id"])
    row.created_at = datetime.now(UTC) - timedelta(days=40)
    db.commit()

    report = client.get("/requirements/report", headers=headers).json()
    assert report["total"] == 3
    assert report["counts_by_status"] == {"NEW": 2, "CLOSED": 1}

    by_title = {r["title"]: r for r in report["open_requirements"]}
    assert set(by_title) == {"Fresh", "Old"}
    assert by_title["Old"]["sla_status"] == "Delayed"
    assert by_title["Old"]["is_stale"] is True
    assert by_title["Fresh"]["sla_status"] == "On Track"
    assert [r["id"] for r in report["stale"]] == [old["id"]]
    assert by_title["Fresh"]["id"] == fresh["id"]


def test_consultant_matches(client, headers, make_requirement):
    req = make_requirement(primary_tech_stack="Python, AWS", location="Austin", remote="Remote")
    client.post(
        "/consultants",
        json={
            "name": "Full Match",
            "primary_skills": "Python, AWS",
            "preferred_work_location": "austin",
            "preferred_work_type": "Remote",
        },
        headers=headers,
    )
    client.post("/consultants", json={"name": "Half Skills", "primary_skills": "Python"}, headers=headers)
    client.post("/consultants", json={"name": "No Match", "primary_skills": "Cobol"}, headers=headers)

    matches = client.get(f"/requirements/{req['id']}/matches", headers=headers).json()
    assert [(m["name"], m["score"]) for m in matches] == [("Full Match", 100), ("Half Skills", 25), ("No Match", 0)]

    filtered = client.get(f"/requirements/{req['id']}/matches", params={"min_score": 50}, headers=headers).json()
    assert [m["name"] for m in filtered] == ["Full Match"]
