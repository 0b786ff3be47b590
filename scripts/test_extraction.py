"""JD parsing endpoints and job extraction from inbound emails."""

import json

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from onehub.agents.job_extractor import build_email_content, classify, email_to_text, requirement_fields_from_job
from onehub.api.app import app
from onehub.api.routes import extraction as extraction_routes
from onehub.api.routes.extraction import get_extraction_llm
from onehub.api.routes.jd import get_jd_llm
from onehub.errors import UpstreamError

VENDOR_JD = """Role Name: Data Engineer - 1
Location: Austin, TX (Remote)
Duration: 6 months
Client: Initech
Rate: $65-70
Skills:
Python, Airflow, Snowflake
Regards,
Dana White
Globex Consulting
dana@globex.io
"""


@pytest.fixture
def use_llm():
    def _use(dependency, *responses):
        llm = FakeListChatModel(responses=list(responses))
        app.dependency_overrides[dependency] = lambda: llm
        return llm

    return _use


# JD parsing


def test_parse_text_without_llm(client):
    response = client.post("/jd/parse", json={"text": VENDOR_JD})
    assert response.status_code == 200
    parsed = response.json()
    assert parsed["job_title"] == "Data Engineer"
    assert parsed["location"] == "Austin, TX"
    assert parsed["work_location_type"] == "Remote"
    assert parsed["key_skills"] == ["Python", "Snowflake", "Airflow"]
    assert parsed["vendor"] == "Globex Consulting"
    assert parsed["vendor_email"] == "dana@globex.io"


def test_parse_text_llm_fallback(client, use_llm):
    use_llm(get_jd_llm, '{"jobTitle": "ML Engineer", "location": null}')
    parsed = client.post("/jd/parse", json={"text": "Great opportunity\nSkills: PyTorch and Python"}).json()
    assert parsed["job_title"] == "ML Engineer"
    assert parsed["location"] is None
    assert parsed["key_skills"] == ["Python"]


def test_parse_file(client):
    files = {"file": ("jd.txt", VENDOR_JD.encode(), "text/plain")}
    assert client.post("/jd/parse-file", files=files).json()["job_title"] == "Data Engineer"

    files = {"file": ("jd.docx", b"PK\x03\x04", "application/octet-stream")}
    response = client.post("/jd/parse-file", files=files)
    assert response.status_code == 400
    assert response.json()["detail"] == "Only PDF and text files are supported"

    files = {"file": ("empty.txt", b"   ", "text/plain")}
    assert client.post("/jd/parse-file", files=files).status_code == 400


def test_parse_batch_keeps_order(client):
    parsed = client.post("/jd/parse-batch", json={"texts": [VENDOR_JD, "Job Title: QA Lead"]}).json()
    assert [p["job_title"] for p in parsed] == ["Data Engineer", "QA Lead"]


def test_create_requirement_from_jd(client, headers):
    response = client.post("/jd/create-requirement", json={"text": VENDOR_JD}, headers=headers)
    assert response.status_code == 200
    requirement = response.json()["requirement"]
    assert requirement["title"] == "Data Engineer"
    assert requirement["company"] == "Initech"
    assert requirement["rate"] == "$65-70"
    assert requirement["remote"] == "Remote"
    assert requirement["primary_tech_stack"] == "Python, Snowflake, Airflow"
    assert requirement["vendor_company"] == "Globex Consulting"
    assert requirement["description"] == VENDOR_JD
    assert requirement["status"] == "NEW"

    override = client.post(
        "/jd/create-requirement", json={"text": VENDOR_JD, "company": "Hooli"}, headers=headers
    ).json()
    assert override["requirement"]["company"] == "Hooli"


def test_create_requirement_needs_title(client, headers):
    response = client.post("/jd/create-requirement", json={"text": "Hello there"}, headers=headers)
    assert response.status_code == 400
    assert "title" in response.json()["detail"]["errors"]


# Job extraction


def job(is_job: bool, confidence: int, **fields) -> str:
    return json.dumps({"isJobEmail": is_job, "confidence": confidence, **fields})


def test_extract_requires_llm(client, headers):
    response = client.post("/jobs/extract", json={"emails": [{"subject": "Hi"}]}, headers=headers)
    assert response.status_code == 503


def test_extract_classifies_and_creates(client, headers, use_llm):
    use_llm(
        get_extraction_llm,
        job(True, 90, title="Java Developer", company="Initech", skills="Java, Kafka", jobType="Remote"),
        job(False, 95),
        job(True, 50, title="Maybe a job"),
    )
    emails = [
        {"subject": "Java Dev - Remote", "sender": "recruiter@vendor.com", "body": "Java role"},
        {"subject": "Lunch?", "sender": "friend@x.com", "body": "Tacos"},
        {"subject": "Opportunity", "sender": "someone@x.com", "body": "..."},
    ]
    results = client.post("/jobs/extract", json={"emails": emails}, headers=headers).json()

    assert [r["outcome"] for r in results] == ["created", "skipped", "found"]
    assert results[2]["confidence"] == 50

    requirement = client.get(f"/requirements/{results[0]['requirement_id']}", headers=headers).json()
    assert requirement["title"] == "Java Developer"
    assert requirement["company"] == "Initech"
    assert requirement["remote"] == "Yes"
    assert requirement["next_step"] == 'Email: "Java Dev - Remote" | From: recruiter@vendor.com | AI Confidence: 90%'


def test_extract_without_auto_create(client, headers, use_llm):
    use_llm(get_extraction_llm, job(True, 99, title="SRE"))
    results = client.post(
        "/jobs/extract", json={"emails": [{"subject": "SRE"}], "auto_create": False}, headers=headers
    ).json()
    assert results[0]["outcome"] == "found"
    assert client.get("/requirements", headers=headers).json() == []


def test_extract_error_per_email(client, headers, use_llm, monkeypatch):
    use_llm(get_extraction_llm, "{}")

    def boom(*args):
        raise UpstreamError("Groq", "Rate limit retries exhausted", 429)

    monkeypatch.setattr(extraction_routes, "extract_job", boom)
    results = client.post("/jobs/extract", json={"emails": [{"subject": "A"}]}, headers=headers).json()
    assert results == [
        {
            "subject": "A",
            "outcome": "error",
            "confidence": 0,
            "title": None,
            "company": None,
            "requirement_id": None,
            "error": "Rate limit retries exhausted",
        }
    ]


def test_email_helpers():
    assert email_to_text("<p>Hello <b>there</b></p>") == "Hello **there**"
    assert len(build_email_content("S", "f@x.com", "a" * 5000)) == 1000

    assert classify({"is_job_email": False, "confidence": 99}) == "skipped"
    assert classify({"is_job_email": True, "confidence": 74}) == "found"
    assert classify({"is_job_email": True, "confidence": 75}) == "create"

    fields = requirement_fields_from_job({"confidence": 80}, "Subj", "a@b.c", "Plain body")
    assert (fields["title"], fields["company"]) == ("Job Opening", "Unknown Company")
    assert fields["description"] == "Plain body"
