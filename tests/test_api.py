"""
tests/test_api.py - Tests for the FastAPI rendering boundary.
"""

import pytest
from fastapi.testclient import TestClient

from aso_api import api
from aso_emulator.errors import ConfigurationError, NarrativeServiceError
from aso_emulator.observatory import Observatory
from conftest import FakeRandom, StubNarrativeClient, make_state


@pytest.fixture
def stub_client():
    return StubNarrativeClient(text="[EXECUTIVE SUMMARY] nominal")


@pytest.fixture
def client(monkeypatch, clock, stub_client):
    def build():
        # periods long enough that nothing ticks during a test
        return Observatory(
            initial=make_state(0.8, heartbeat=clock.now),
            client=stub_client,
            rng=FakeRandom([0.5]),
            log_rng=FakeRandom([0.0, 0.0, 0.0]),
            clock=clock,
            state_period=3600,
            log_period=3600,
        )

    monkeypatch.setattr(api, "_build_observatory", build)
    with TestClient(api.app) as test_client:
        yield test_client


def _obs() -> Observatory:
    return api.OBSERVATORY


class TestTelemetry:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["tasks"] == ["state", "logs"]

    def test_state(self, client):
        body = client.get("/state").json()
        assert body["uncertainty"] == pytest.approx(0.8)
        assert body["risk_level"] == "CRITICAL"
        assert body["responsibility_mode"] == "MANUAL"
        assert body["heartbeat_active"] is True

    def test_history(self, client):
        for _ in range(5):
            _obs().tick_state()
        body = client.get("/history").json()
        assert len(body) == 5
        assert client.get("/history", params={"limit": 2}).json() == body[-2:]

    def test_history_rejects_bad_limit(self, client):
        assert client.get("/history", params={"limit": 0}).status_code == 400

    def test_logs(self, client):
        _obs().tick_logs()
        body = client.get("/logs").json()
        assert [e["severity"] for e in body] == ["SUCCESS", "INFO", "INFO"]
        assert body[-1]["type"] == "SYNC"


class TestAlerts:
    def test_list_and_acknowledge(self, client):
        _obs().tick_state()
        alerts = client.get("/alerts").json()
        assert [a["severity"] for a in alerts] == ["CRITICAL", "INFO"]

        target = alerts[1]["id"]
        resp = client.post(f"/alerts/{target}/ack")
        assert resp.status_code == 200
        assert resp.json()["acknowledged"] is True

        # idempotent
        assert client.post(f"/alerts/{target}/ack").status_code == 200
        after = client.get("/alerts").json()
        assert [a["id"] for a in after] == [a["id"] for a in alerts]
        assert [a["acknowledged"] for a in after] == [False, True]

    def test_unknown_alert(self, client):
        assert client.post("/alerts/nope/ack").status_code == 404


class TestReports:
    def test_no_report_initially(self, client):
        assert client.get("/report").json() == {"busy": False, "report": None}

    def test_generate_and_dismiss(self, client, stub_client):
        for _ in range(3):
            _obs().tick_state()
        resp = client.post("/report", json={"range_label": "5 MINUTES"})
        assert resp.status_code == 200
        report = resp.json()["report"]
        assert report["range_label"] == "5 MINUTES"
        assert report["narrative_text"] == stub_client.text
        assert len(report["sample_window"]) == 3
        assert report["stats"]["avg_uncertainty"] == pytest.approx(0.8)

        assert client.get("/report").json()["report"]["reference"] == report["reference"]

        assert client.delete("/report").status_code == 200
        assert client.get("/report").json()["report"] is None

    def test_unknown_range_rejected(self, client):
        assert client.post("/report", json={"range_label": "1 DAY"}).status_code == 422

    def test_missing_key_is_503(self, client, stub_client):
        stub_client.error = ConfigurationError("API key is missing in environment (API_KEY)")
        resp = client.post("/report", json={"range_label": "1 MINUTE"})
        assert resp.status_code == 503
        assert "API key" in resp.json()["detail"]
        assert client.get("/report").json()["report"] is None

    def test_service_failure_keeps_previous(self, client, stub_client):
        first = client.post("/report", json={"range_label": "1 MINUTE"}).json()["report"]
        stub_client.error = NarrativeServiceError("upstream down")
        resp = client.post("/report", json={"range_label": "1 HOUR"})
        assert resp.status_code == 502
        current = client.get("/report").json()["report"]
        assert current["reference"] == first["reference"]
