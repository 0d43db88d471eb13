"""
tests/test_guardrails.py
Guardrail checks and the extraction pipeline that runs them.
"""
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from extraction.extractor import SofExtractor
from extraction.pipeline import SofPipeline
from extraction.schemas import SofExtraction
from guardrails.guardrail_layer import GuardrailLayer
from laytime.calculator import LaytimeCalculator


def event(name, start, end, category="Cargo Operations", duration=""):
    return {"event": name, "category": category, "startTime": start, "endTime": end, "duration": duration}


def make_extraction(*events, **extra) -> SofExtraction:
    return SofExtraction.model_validate({"vesselName": "MV OCEAN STAR", "events": list(events), **extra})


@pytest.fixture
def guardrail() -> GuardrailLayer:
    return GuardrailLayer()


class TestGuardrailLayer:

    def test_clean_extraction_passes(self, guardrail):
        ex = make_extraction(
            event("A", "2024-05-01 08:00", "2024-05-01 09:00", duration="1h"),
            event("B", "2024-05-01 10:00", "2024-05-01 10:00", duration="0m"),
        )
        events, report = guardrail.review(ex)
        assert report == {"passed": True, "issues": [], "warnings": []}
        assert [e.event for e in events] == ["A", "B"]

    def test_unsorted_events_resorted_stably(self, guardrail):
        ex = make_extraction(
            event("C", "2024-05-01 12:00", "2024-05-01 13:00"),
            event("A", "2024-05-01 08:00", "2024-05-01 09:00"),
            event("B", "2024-05-01 08:00", "2024-05-01 08:30"),
        )
        events, report = guardrail.review(ex)
        assert report["passed"]
        assert [e.event for e in events] == ["A", "B", "C"]
        assert [m.event for m in ex.events] == ["A", "B", "C"]
        assert any("re-sorted" in w for w in report["warnings"])

    def test_wrong_duration_corrected(self, guardrail):
        ex = make_extraction(event("A", "2024-05-01 08:00", "2024-05-01 10:30", duration="2 hours"))
        _, report = guardrail.review(ex)
        assert ex.events[0].duration == "2h 30m"
        assert any("corrected" in w for w in report["warnings"])

    def test_duration_whitespace_difference_ignored(self, guardrail):
        ex = make_extraction(event("A", "2024-05-01 08:00", "2024-05-01 10:30", duration="2h30m"))
        _, report = guardrail.review(ex)
        assert report["warnings"] == []

    def test_inverted_interval_fails(self, guardrail):
        ex = make_extraction(event("Bad", "2024-05-01 10:00", "2024-05-01 09:00", duration="1h"))
        _, report = guardrail.review(ex)
        assert not report["passed"]
        assert "ends before it starts" in report["issues"][0]

    def test_events_without_usable_start_time_dropped(self, guardrail):
        ex = make_extraction(
            event("Awaiting berth", "Not Mentioned", "Not Mentioned", category="Delays"),
            event("A", "2024-05-01 08:00", "2024-05-01 09:00", duration="1h"),
            event("Crane repair", "sometime", "", category="Stoppages"),
        )
        events, report = guardrail.review(ex)
        assert report["passed"]
        assert [e.event for e in events] == ["A"]
        assert [m.event for m in ex.events] == ["A"]
        dropped = [w for w in report["warnings"] if "dropped" in w]
        assert len(dropped) == 2
        assert "Event #0" in dropped[0] and "Event #2" in dropped[1]

    def test_no_usable_event_fails(self, guardrail):
        ex = make_extraction(event("Awaiting berth", "Not Mentioned", "Not Mentioned"))
        events, report = guardrail.review(ex)
        assert events == []
        assert not report["passed"]
        assert "usable start time" in report["issues"][0]


# Pipeline

def _pipeline(reply: dict) -> SofPipeline:
    chain = MagicMock()
    chain.invoke.return_value = reply
    return SofPipeline(
        extractor=SofExtractor(chain=chain),
        laytime=LaytimeCalculator(allowed_hours=72, demurrage_rate_per_day=20_000),
    )


class TestSofPipeline:

    def test_blocks_and_rules_laytime_attached(self):
        reply = {
            "vesselName": "MV OCEAN STAR",
            "events": [
                event("Loading hold 1", "2024-05-01 10:00", "2024-05-01 16:00"),
                event("Rain", "2024-05-01 12:00", "2024-05-01 13:00", category="Stoppages"),
                event("Unmoored", "2024-05-01 20:00", "2024-05-01 20:00", category="Departure"),
            ],
        }
        processed = _pipeline(reply).process("SoF text")
        ex = processed.extraction
        assert processed.passed
        assert [b.name for b in ex.timeline_blocks] == ["Cargo Operations (2 events)", "Unmoored"]
        assert ex.laytime_calculation.source == "rules"
        assert ex.laytime_calculation.total_laytime == "5h"

    def test_model_laytime_kept_when_present(self, monkeypatch):
        from config.settings import settings
        monkeypatch.setattr(settings, "laytime_source", "model")
        reply = {
            "vesselName": "MV OCEAN STAR",
            "events": [event("Loading", "2024-05-01 10:00", "2024-05-01 16:00")],
            "laytimeCalculation": {"totalLaytime": "6h", "allowedLaytime": "72h"},
        }
        ex = _pipeline(reply).process("SoF text").extraction
        assert ex.laytime_calculation.source == "model"
        assert ex.laytime_calculation.total_laytime == "6h"

    def test_rules_source_overrides_model(self, monkeypatch):
        from config.settings import settings
        monkeypatch.setattr(settings, "laytime_source", "rules")
        reply = {
            "vesselName": "MV OCEAN STAR",
            "events": [event("Loading", "2024-05-01 10:00", "2024-05-01 16:00")],
            "laytimeCalculation": {"totalLaytime": "99h"},
        }
        ex = _pipeline(reply).process("SoF text").extraction
        assert ex.laytime_calculation.source == "rules"
        assert ex.laytime_calculation.total_laytime == "6h"

    def test_failed_guardrails_skip_blocks(self):
        reply = {
            "vesselName": "MV OCEAN STAR",
            "events": [event("Bad", "2024-05-01 10:00", "2024-05-01 09:00")],
        }
        processed = _pipeline(reply).process("SoF text")
        assert not processed.passed
        assert processed.extraction.timeline_blocks is None

    def test_undated_event_skipped_in_blocks_and_laytime(self):
        reply = {
            "vesselName": "MV OCEAN STAR",
            "events": [
                event("Loading", "2024-05-01 10:00", "2024-05-01 16:00"),
                event("Awaiting berth", "Not Mentioned", "Not Mentioned", category="Delays"),
            ],
        }
        processed = _pipeline(reply).process("SoF text")
        ex = processed.extraction
        assert processed.passed
        assert [b.name for b in ex.timeline_blocks] == ["Loading"]
        assert ex.laytime_calculation.total_laytime == "6h"
        assert any("dropped" in w for w in processed.guardrail_report["warnings"])
