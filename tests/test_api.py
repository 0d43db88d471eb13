"""
tests/test_api.py
REST endpoints via FastAPI's TestClient. The extraction model is mocked.
"""
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).parent.parent))

import api.routes as routes
from api.app import create_app
from extraction.extractor import SofExtractor
from extraction.pipeline import SofPipeline
from laytime.calculator import LaytimeCalculator

EVENTS = [
    {"event": "A", "category": "Cargo Operations", "startTime": "2024-05-01 10:00", "endTime": "2024-05-01 11:00"},
    {"event": "B", "category": "Delays",           "startTime": "2024-05-01 10:30", "endTime": "2024-05-01 12:00"},
    {"event": "C", "category": "Departure",        "startTime": "2024-05-01 13:00", "endTime": "2024-05-01 13:00"},
]


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


@pytest.fixture
def chain(monkeypatch):
    chain = MagicMock()
    pipeline = SofPipeline(
        extractor=SofExtractor(chain=chain),
        laytime=LaytimeCalculator(allowed_hours=72, demurrage_rate_per_day=20_000),
    )
    monkeypatch.setattr(routes, "_pipeline", pipeline)
    return chain


class TestTimelineEndpoint:

    def test_merges_events(self, client):
        resp = client.post("/api/v1/timeline", json={"events": EVENTS})
        assert resp.status_code == 200
        body = resp.json()
        assert body["eventCount"] == 3
        assert body["blockCount"] == 2
        first = body["blocks"][0]
        assert first["startTime"] == "2024-05-01 10:00"
        assert first["endTime"] == "2024-05-01 12:00"
        assert first["category"] == "CargoOperations"
        assert [e["event"] for e in first["subEvents"]] == ["A", "B"]
        assert len(first["time"]) == 2

    def test_empty_events(self, client):
        resp = client.post("/api/v1/timeline", json={"events": []})
        assert resp.status_code == 200
        assert resp.json()["blocks"] == []

    def test_inverted_interval_is_422(self, client):
        bad = [{"event": "Bad", "category": "Other", "startTime": "2024-05-01 12:00", "endTime": "2024-05-01 11:00"}]
        resp = client.post("/api/v1/timeline", json={"events": bad})
        assert resp.status_code == 422
        assert "ends before it starts" in resp.json()["detail"]

    def test_unsorted_is_422(self, client):
        resp = client.post("/api/v1/timeline", json={"events": list(reversed(EVENTS))})
        assert resp.status_code == 422

    def test_bad_timestamp_is_422(self, client):
        bad = [{"event": "x", "startTime": "tomorrow"}]
        resp = client.post("/api/v1/timeline", json={"events": bad})
        assert resp.status_code == 422

    def test_missing_start_time_is_422(self, client):
        undated = [{"event": "x", "category": "Other", "startTime": "Not Mentioned"}]
        resp = client.post("/api/v1/timeline", json={"events": undated})
        assert resp.status_code == 422
        assert "no start time" in resp.json()["detail"]


class TestLaytimeEndpoint:

    def test_rules_laytime(self, client):
        events = [{"event": "Loading", "category": "Cargo Operations",
                   "startTime": "2024-05-01 00:00", "endTime": "2024-05-02 00:00"}]
        resp = client.post(
            "/api/v1/laytime",
            json={"events": events, "allowedLaytimeHours": 12, "demurrageRatePerDay": 24_000},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["onDemurrage"] is True
        assert body["laytime"]["demurrage"] == "12h"
        assert body["laytime"]["demurrageCost"].endswith("12,000.00")
        assert body["laytime"]["laytimeEvents"][0]["isCounted"] is True

    def test_negative_allowed_rejected(self, client):
        resp = client.post("/api/v1/laytime", json={"events": [], "allowedLaytimeHours": -1})
        assert resp.status_code == 422


class TestExtractEndpoint:

    def test_success(self, client, chain):
        chain.invoke.return_value = {"vesselName": "MV OCEAN STAR", "portOfCall": "Santos", "events": EVENTS}
        resp = client.post("/api/v1/extract", json={"sofContent": "SoF text"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["result"]["vesselName"] == "MV OCEAN STAR"
        assert len(body["result"]["timelineBlocks"]) == 2
        assert body["result"]["laytimeCalculation"]["source"] == "rules"
        assert body["guardrailReport"]["passed"] is True

    def test_model_error_is_502(self, client, chain):
        chain.invoke.return_value = {"error": "Unable to extract vessel name and events"}
        resp = client.post("/api/v1/extract", json={"sofContent": "SoF text"})
        assert resp.status_code == 502

    def test_blank_content_is_422(self, client, chain):
        resp = client.post("/api/v1/extract", json={"sofContent": "   "})
        assert resp.status_code == 422
        chain.invoke.assert_not_called()

    def test_missing_content_is_422(self, client, chain):
        resp = client.post("/api/v1/extract", json={})
        assert resp.status_code == 422

    def test_guardrail_failure_is_422(self, client, chain):
        bad = [{"event": "Bad", "category": "Other", "startTime": "2024-05-01 12:00", "endTime": "2024-05-01 11:00"}]
        chain.invoke.return_value = {"vesselName": "MV OCEAN STAR", "events": bad}
        resp = client.post("/api/v1/extract", json={"sofContent": "SoF text"})
        assert resp.status_code == 422
        assert resp.json()["detail"]["errors"]

    def test_undated_event_dropped_not_fatal(self, client, chain):
        undated = {"event": "Awaiting berth", "category": "Delays", "startTime": "Not Mentioned"}
        chain.invoke.return_value = {"vesselName": "MV OCEAN STAR", "events": EVENTS + [undated]}
        resp = client.post("/api/v1/extract", json={"sofContent": "SoF text"})
        assert resp.status_code == 200
        body = resp.json()
        assert [e["event"] for e in body["result"]["events"]] == ["A", "B", "C"]
        assert any("dropped" in w for w in body["guardrailReport"]["warnings"])

    def test_no_dated_events_is_422(self, client, chain):
        undated = [{"event": "Awaiting berth", "category": "Delays", "startTime": "Not Mentioned"}]
        chain.invoke.return_value = {"vesselName": "MV OCEAN STAR", "events": undated}
        resp = client.post("/api/v1/extract", json={"sofContent": "SoF text"})
        assert resp.status_code == 422
        assert resp.json()["detail"]["errors"] == ["no event has a usable start time"]


class TestMeta:

    def test_health(self, client):
        resp = client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_categories(self, client):
        cats = client.get("/api/v1/categories").json()["categories"]
        assert {"value": "CargoOperations", "label": "Cargo Operations"} in cats
        assert len(cats) == 8
