"""
Shared fixtures: in-memory SQLite, a TestClient with the caller header,
and a fake email server behind httpx.MockTransport.
"""

import json
import sys
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from onehub.api.app import app
from onehub.api.limiter import limiter
from onehub.api.routes.email_accounts import get_email_client
from onehub.config import settings
from onehub.db.activity import clear_user_name_cache
from onehub.db.base import dispose_engine, get_session_factory, init_db
from onehub.tools.email_server import EmailServerClient

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


class FakeEmailServer:
    """Records requests; answers bulk sends synchronously or as queued."""

    def __init__(self):
        self.requests: list[dict] = []
        self.mode = "sync"  # sync / queued / error
        self.failing: set[str] = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content or b"{}")
        self.requests.append({"path": request.url.path, "json": payload})

        if self.mode == "error":
            return httpx.Response(500, json={"error": "SMTP connection refused"})

        if request.url.path == "/api/send-email":
            return httpx.Response(200, json={"success": True, "messageId": "<test@mail>"})

        if self.mode == "queued":
            return httpx.Response(202, json={"success": True, "campaignId": payload.get("campaignId")})

        details = []
        for i, r in enumerate(payload["emails"]):
            if r["email"] in self.failing:
                details.append({"email": r["email"], "status": "failed", "error": "Mailbox unavailable"})
            else:
                details.append({"email": r["email"], "status": "sent", "messageId": f"<msg-{i}@mail>"})
        sent = sum(1 for d in details if d["status"] == "sent")
        return httpx.Response(
            200,
            json={
                "success": True,
                "total": len(details),
                "sent": sent,
                "failed": len(details) - sent,
                "details": details,
            },
        )

    def client(self) -> EmailServerClient:
        return EmailServerClient(
            base_url="http://email.test",
            api_key="",
            client=httpx.Client(transport=httpx.MockTransport(self.handler)),
        )


@pytest.fixture
def database(monkeypatch):
    """Fresh in-memory database per test."""
    monkeypatch.setattr(settings, "database_url", "sqlite://")
    monkeypatch.setattr(settings, "groq_api_key", "")
    dispose_engine()
    init_db()
    clear_user_name_cache()
    yield
    dispose_engine()


@pytest.fixture
def db(database):
    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def email_server():
    return FakeEmailServer()


@pytest.fixture
def client(database, email_server, monkeypatch):
    monkeypatch.setattr(limiter, "enabled", False)
    app.dependency_overrides[get_email_client] = email_server.client
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def headers():
    return {"X-User-ID": USER_ID}


@pytest.fixture
def other_headers():
    return {"X-User-ID": OTHER_USER_ID}


@pytest.fixture
def make_requirement(client, headers):
    """POST a valid requirement, returning the response JSON's requirement."""

    def _make(**overrides):
        payload = {"title": "Senior Python Developer", "company": "Acme Corp", **overrides}
        response = client.post("/requirements", json=payload, headers=headers)
        assert response.status_code == 200, response.text
        return response.json()["requirement"]

    return _make
