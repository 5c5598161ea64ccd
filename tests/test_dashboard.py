"""
tests/test_dashboard.py - Tests for the Streamlit dashboard's action notices.
"""

from pathlib import Path

import pytest
import requests
from streamlit.testing.v1 import AppTest

APP_PATH = Path(__file__).resolve().parents[1] / "aso_dashboard" / "app.py"

STATE = {
    "ts": "2023-11-14T22:13:20+00:00",
    "uncertainty": 0.2,
    "throughput": 95.0,
    "alignment_score": 0.998,
    "last_heartbeat": 1_700_000_000_000,
    "risk_level": "LOW",
    "responsibility_mode": "AUTO",
    "heartbeat_active": True,
}

READS = {
    "/state": STATE,
    "/history": [],
    "/alerts": [],
    "/logs": [],
    "/report": {"busy": False, "report": None},
}


class FakeResponse:
    def __init__(self, payload=None, status=200):
        self.payload = payload
        self.status_code = status

    @property
    def ok(self):
        return self.status_code < 400

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        return self.payload


@pytest.fixture
def api(monkeypatch):
    """Serves the read endpoints and records report POSTs."""
    posts = []
    outcome = {"response": FakeResponse({"report": None, "busy": False})}

    def fake_get(url, params=None, timeout=None):
        for path, payload in READS.items():
            if url.endswith(path):
                return FakeResponse(payload)
        return FakeResponse(status=404)

    def fake_post(url, json=None, timeout=None):
        posts.append((url, json))
        return outcome["response"]

    monkeypatch.setattr(requests, "get", fake_get)
    monkeypatch.setattr(requests, "post", fake_post)
    return posts, outcome


def _app():
    at = AppTest.from_file(str(APP_PATH), default_timeout=30)
    at.run()
    assert not at.exception
    return at


class TestReportNotices:
    def test_missing_key_notice_survives_rerun(self, api):
        posts, outcome = api
        outcome["response"] = FakeResponse(
            {"detail": "API key is missing in environment (API_KEY)"}, status=503
        )
        at = _app()
        assert list(at.error) == []

        at.button(key="range-1 MINUTE").click().run()

        assert posts and posts[-1][1] == {"range_label": "1 MINUTE"}
        messages = [e.value for e in at.error]
        assert any("API key is missing" in m for m in messages)

    def test_service_failure_notice(self, api):
        posts, outcome = api
        outcome["response"] = FakeResponse({"detail": "upstream down"}, status=502)
        at = _app()
        at.button(key="range-1 HOUR").click().run()
        assert any("upstream down" in e.value for e in at.error)

    def test_success_notice_then_cleared(self, api):
        at = _app()
        at.button(key="range-5 MINUTES").click().run()
        assert any("5 minutes" in s.value for s in at.success)

        at.run()
        assert list(at.success) == []
        assert list(at.error) == []
