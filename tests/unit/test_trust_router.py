"""HTTP-level tests for the trust router, with the request clock pinned."""

import json
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from trustscore.dependencies import get_now
from trustscore.main import app

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

CLEAN_USER = {
    "successfulTransactions": 10,
    "feedbackQuality": 80,
    "reportHistory": 0,
    "timeInCommunity": 60,
    "verificationLevel": "basic",
    "vouchCount": 3,
    "devouchCount": 0,
}


@pytest.fixture
def client():
    app.dependency_overrides[get_now] = lambda: NOW
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class TestComputeScore:
    def test_clean_user(self, client):
        resp = client.post("/api/trust/score", json=CLEAN_USER)
        assert resp.status_code == 200
        body = resp.json()
        assert body["score"] == 66
        assert body["level"] == "platinum"
        assert body["trend"] == "increasing"
        assert body["factors"]["verificationLevel"] == "basic"
        assert body["factors"]["aiRiskScore"] is None
        assert body["riskAssessment"] == {"level": "low", "reasons": []}
        assert datetime.fromisoformat(body["lastUpdated"].replace("Z", "+00:00")) == NOW
        assert body["nextUpdate"].startswith("2026-03-02T12:00:00")

    def test_previous_score_query(self, client):
        resp = client.post("/api/trust/score?previousScore=90", json=CLEAN_USER)
        assert resp.status_code == 200
        assert resp.json()["trend"] == "decreasing"

    def test_unknown_verification_level_rejected(self, client):
        resp = client.post("/api/trust/score", json={**CLEAN_USER, "verificationLevel": "gold"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_FIELD"

    def test_missing_field_rejected(self, client):
        body = dict(CLEAN_USER)
        del body["vouchCount"]
        resp = client.post("/api/trust/score", json=body)
        assert resp.status_code == 400

    def test_out_of_range_previous_score(self, client):
        resp = client.post("/api/trust/score?previousScore=101", json=CLEAN_USER)
        assert resp.status_code == 400

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_factor_rejected(self, client, value):
        # json.dumps writes the bare NaN / Infinity literals
        resp = client.post(
            "/api/trust/score",
            content=json.dumps({**CLEAN_USER, "feedbackQuality": value}),
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_FIELD"


class TestUpdateScore:
    def test_update_existing(self, client):
        resp = client.post(
            "/api/trust/score/update",
            json={"factors": CLEAN_USER, "updates": {"reportHistory": 5}},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["score"] == 56
        assert body["level"] == "gold"

    def test_update_from_defaults(self, client):
        resp = client.post("/api/trust/score/update", json={"updates": {"successfulTransactions": 10}})
        assert resp.status_code == 200
        assert resp.json()["score"] == 56

    def test_unknown_factor(self, client):
        resp = client.post("/api/trust/score/update", json={"updates": {"karma": 1}})
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Unknown trust factor: karma"

    def test_invalid_update_value(self, client):
        resp = client.post(
            "/api/trust/score/update",
            json={"updates": {"verificationLevel": "ultra"}},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_FIELD"

    def test_non_finite_update_rejected(self, client):
        resp = client.post(
            "/api/trust/score/update",
            content=json.dumps({"factors": CLEAN_USER, "updates": {"aiRiskScore": float("nan")}}),
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_FIELD"


class TestDueCheck:
    def test_due(self, client):
        resp = client.post("/api/trust/due", json={"lastUpdate": "2026-02-28T12:00:00Z"})
        assert resp.status_code == 200
        assert resp.json()["due"] is True

    def test_not_due(self, client):
        resp = client.post("/api/trust/due", json={"lastUpdate": "2026-03-01T00:00:00Z"})
        body = resp.json()
        assert body["due"] is False
        assert body["nextUpdate"].startswith("2026-03-02T00:00:00")

    def test_bad_timestamp(self, client):
        resp = client.post("/api/trust/due", json={"lastUpdate": "yesterday-ish"})
        assert resp.status_code == 400


class TestInsurability:
    def test_insurable_levels(self, client):
        resp = client.get("/api/trust/insurable-levels")
        assert resp.json() == {"levels": ["silver", "gold", "platinum", "diamond"]}

    @pytest.mark.parametrize(
        "level,expected",
        [("bronze", False), ("silver", True), ("Diamond", True)],
    )
    def test_level_insurable(self, client, level, expected):
        resp = client.get(f"/api/trust/levels/{level}/insurable")
        assert resp.status_code == 200
        assert resp.json()["insurable"] is expected

    def test_unknown_level(self, client):
        resp = client.get("/api/trust/levels/mythril/insurable")
        assert resp.status_code == 400


class TestHealthAndMetrics:
    def test_live(self, client):
        assert client.get("/health/live").json() == {"status": "ok"}

    def test_ready(self, client):
        resp = client.get("/health/ready")
        assert resp.status_code == 200
        assert resp.json()["checks"]["engine"]["status"] == "up"

    def test_metrics_counts_computations(self, client):
        client.post("/api/trust/score", json=CLEAN_USER)
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert 'trustscore_computations_total{level="platinum"}' in resp.text
