"""End-to-end tests for the browser pages and dashboard JSON endpoints."""

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from babytracker.main import app
from babytracker.db.session import Base, get_db
from babytracker.services.api_client import get_api_client
from babytracker.services.dashboard import DashboardController, get_dashboard

from tracker_fakes import FakeTrackerClient, feed_log, sleep_log

HTML = {"Accept": "text/html"}


@pytest.fixture()
def fake():
    return FakeTrackerClient(
        timeline={
            "baby-1": [
                sleep_log("s1", "2024-05-01T09:00:00Z"),
                feed_log("f1", "2024-05-01T08:00:00Z"),
            ]
        }
    )


@pytest.fixture()
def client(fake):
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)

    def _get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    dashboard = DashboardController(fake, tz="UTC")
    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_api_client] = lambda: fake
    app.dependency_overrides[get_dashboard] = lambda: dashboard
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _login(client, pin="123456"):
    return client.post("/login", data={"pin": pin, "next": "/log-entry"}, follow_redirects=False)


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_dashboard_redirects_to_login_when_locked(client):
    response = client.get("/log-entry", headers=HTML, follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"].startswith("/login")


def test_api_requires_session_or_key(client):
    response = client.get("/api/ui/status", params={"babyId": "baby-1"})

    assert response.status_code == 401
    assert response.json()["code"] == "http_error"


def test_wrong_pin_is_rejected(client):
    response = _login(client, pin="000000")

    assert response.status_code == 401
    assert "Invalid PIN" in response.text


def test_login_then_dashboard_shows_status(client):
    assert _login(client).status_code == 302

    page = client.get("/log-entry", headers=HTML)

    assert page.status_code == 200
    assert "Ada Lovelace" in page.text
    assert "End" in page.text
    assert "bubble-sleeping" in page.text
    assert "Feed" in page.text


def test_status_endpoint_reports_buttons(client):
    _login(client)

    payload = client.get("/api/ui/status", params={"babyId": "baby-1", "refresh": "true"}).json()

    assert payload["babyId"] == "baby-1"
    assert payload["sleeping"] is True
    assert payload["activityCount"] == 2
    kinds = [button["kind"] for button in payload["buttons"]]
    assert kinds == ["sleep", "feed", "diaper", "note"]
    assert payload["buttons"][0]["bubble"]["status"] == "sleeping"
    assert payload["buttons"][2]["bubble"] is None


def test_status_for_unknown_baby_is_404(client):
    _login(client)

    response = client.get("/api/ui/status", params={"babyId": "nobody"})

    assert response.status_code == 404


def test_modal_open_and_close_refetches(client, fake):
    _login(client)

    opened = client.post("/api/ui/modals/feed/open", params={"babyId": "baby-1"}).json()
    assert opened["open"] is True
    assert opened["babyId"] == "baby-1"
    assert "initialTime" in opened

    calls_before = len(fake.timeline_calls)
    fake.timeline["baby-1"].append(feed_log("f2", "2024-05-01T11:00:00Z"))
    closed = client.post("/api/ui/modals/feed/close", params={"babyId": "baby-1"}).json()

    assert len(fake.timeline_calls) == calls_before + 1
    assert closed["activityCount"] == 3


def test_unknown_modal_is_404(client):
    _login(client)

    assert client.post("/api/ui/modals/mood/open", params={"babyId": "baby-1"}).status_code == 404


def test_activity_touch_refreshes_unlock_time(client):
    _login(client)

    payload = client.post("/api/ui/activity").json()

    assert payload["refreshed"] is True
    assert payload["unlockTime"].isdigit()


def test_pin_change_flow(client, fake):
    _login(client)

    page = client.get("/settings/pin", headers=HTML)
    assert "Verify Current PIN" in page.text

    page = client.post("/settings/pin/submit", data={"pin": "123456"})
    assert "Enter New PIN" in page.text

    page = client.post("/settings/pin/submit", data={"pin": "12345"})
    assert "PIN must be at least 6 digits" in page.text

    page = client.post("/settings/pin/submit", data={"pin": "87654321"})
    assert "Confirm New PIN" in page.text

    page = client.post("/settings/pin/submit", data={"pin": "87654321"})
    assert "PIN changed" in page.text
    assert fake.updated_pins == ["87654321"]


def test_pin_change_blocked_when_caretakers_exist(client, fake):
    fake.caretakers = [{"id": "c1", "loginId": "01", "name": "Nan"}]
    _login(client)

    page = client.get("/settings/pin", headers=HTML)
    assert "System PIN changes are disabled when caretakers exist" in page.text

    page = client.post("/settings/pin/submit", data={"pin": "123456"})
    assert "Verify Current PIN" in page.text
    assert fake.updated_pins == []


def test_pin_page_rechecks_caretakers_on_every_open(client, fake):
    _login(client)
    page = client.get("/settings/pin", headers=HTML)
    assert "System PIN changes are disabled" not in page.text

    fake.caretakers = [{"id": "c1", "loginId": "01", "name": "Nan"}]
    page = client.get("/settings/pin", headers=HTML)
    assert "System PIN changes are disabled when caretakers exist" in page.text

    page = client.post("/settings/pin/submit", data={"pin": "123456"})
    assert "Verify Current PIN" in page.text
    assert "Enter New PIN" not in page.text
    assert fake.updated_pins == []


def test_pin_page_reopens_at_verify_after_leaving_mid_flow(client, fake):
    _login(client)
    client.get("/settings/pin", headers=HTML)
    page = client.post("/settings/pin/submit", data={"pin": "123456"})
    assert "Enter New PIN" in page.text

    client.get("/log-entry", headers=HTML)
    page = client.get("/settings/pin", headers=HTML)
    assert "Verify Current PIN" in page.text

    page = client.post("/settings/pin/submit", data={"pin": "87654321"})
    assert "Enter New PIN" not in page.text
    assert fake.updated_pins == []


def test_pin_cancel_returns_to_dashboard(client):
    _login(client)
    client.get("/settings/pin", headers=HTML)
    client.post("/settings/pin/submit", data={"pin": "123456"})

    response = client.post("/settings/pin/cancel", follow_redirects=False)
    assert response.status_code == 303

    page = client.get("/settings/pin", headers=HTML)
    assert "Verify Current PIN" in page.text
