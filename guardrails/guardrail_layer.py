"""
guardrails/guardrail_layer.py
Guardrail Layer
Quality checks on a model extraction before it is rendered:
  1. MandatoryFieldGuard — drops events without a usable start time; at least one must remain
  2. IntervalGuard       — events that end before they start
  3. EventOrderGuard     — restores chronological order (stable) if the model didn't
  4. DurationGuard       — recomputes durations from timestamps
"""
from dataclasses import dataclass, field
from typing import Any

from extraction.schemas import PortEventModel, SofExtraction
from monitoring import get_logger
from timeline.errors import InvalidTimestampError
from timeline.models import PortEvent

log = get_logger(__name__)


@dataclass
class ValidationReport:
    passed: bool
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


# ── 1. Mandatory fields ───────────────────────────────────────────────────────

class MandatoryFieldGuard:

    def apply(
        self, models: list[PortEventModel]
    ) -> tuple[list[tuple[PortEventModel, PortEvent]], ValidationReport]:
        """Pair each usable model with its PortEvent; unreadable events are dropped with a warning."""
        pairs: list[tuple[PortEventModel, PortEvent]] = []
        warnings: list[str] = []
        for i, model in enumerate(models):
            try:
                pairs.append((model, model.to_port_event()))
            except InvalidTimestampError as exc:
                warnings.append(f"Event #{i} dropped: {exc}")
        issues = [] if pairs else ["no event has a usable start time"]
        return pairs, ValidationReport(passed=not issues, issues=issues, warnings=warnings)


# ── 2. Intervals ──────────────────────────────────────────────────────────────

class IntervalGuard:

    def check(self, events: list[PortEvent]) -> ValidationReport:
        issues = [
            f"Event #{i} '{e.event}' ends before it starts "
            f"({e.start_time:%Y-%m-%d %H:%M} > {e.end_time:%Y-%m-%d %H:%M})"
            for i, e in enumerate(events)
            if e.end_time < e.start_time
        ]
        return ValidationReport(passed=not issues, issues=issues)


# ── 3. Ordering ───────────────────────────────────────────────────────────────

class EventOrderGuard:

    def apply(self, events: list[PortEvent]) -> tuple[list[PortEvent], ValidationReport]:
        ordered = sorted(events, key=lambda e: e.start_time)   # sorted() is stable
        warnings: list[str] = []
        if ordered != events:
            warnings.append("Events were not in chronological order and have been re-sorted")
        return ordered, ValidationReport(passed=True, warnings=warnings)


# ── 4. Durations ──────────────────────────────────────────────────────────────

class DurationGuard:

    @staticmethod
    def _norm(text: str) -> str:
        return "".join(text.lower().split())

    def apply(self, models: list[PortEventModel], events: list[PortEvent]) -> ValidationReport:
        """Overwrite model-supplied durations that disagree with the timestamps."""
        warnings: list[str] = []
        for model, event in zip(models, events):
            if event.end_time < event.start_time:
                continue
            computed = event.duration
            if self._norm(model.duration) != self._norm(computed):
                warnings.append(
                    f"Duration of '{event.event}' corrected from '{model.duration}' to '{computed}'"
                )
                model.duration = computed
        return ValidationReport(passed=True, warnings=warnings)


# ── Guardrail Orchestrator ────────────────────────────────────────────────────

class GuardrailLayer:
    """
    Runs all guardrail components over an extraction.

    ``review`` mutates the extraction in place (dropped, sorted and corrected
    events) and returns a serialisable report alongside the cleaned
    PortEvents ready for the timeline builder.
    """

    def __init__(self) -> None:
        self._mandatory = MandatoryFieldGuard()
        self._intervals = IntervalGuard()
        self._ordering  = EventOrderGuard()
        self._durations = DurationGuard()

    def review(self, extraction: SofExtraction) -> tuple[list[PortEvent], dict[str, Any]]:
        pairs, mandatory = self._mandatory.apply(extraction.events)
        if mandatory.warnings:
            extraction.events = [m for m, _ in pairs]

        duration_report = self._durations.apply([m for m, _ in pairs], [e for _, e in pairs])

        events = [e for _, e in pairs]
        ordered, order_report = self._ordering.apply(events)
        if order_report.warnings:
            rank = {id(e): i for i, e in enumerate(ordered)}
            pairs.sort(key=lambda p: rank[id(p[1])])
            extraction.events = [m for m, _ in pairs]

        interval_report = self._intervals.check(ordered)

        issues   = mandatory.issues + interval_report.issues
        warnings = mandatory.warnings + order_report.warnings + duration_report.warnings
        passed   = mandatory.passed and interval_report.passed

        log.info(
            "Guardrail extraction check",
            passed=passed,
            events=len(ordered),
            issues=len(issues),
            warnings=len(warnings),
        )

        if not passed:
            from monitoring import GUARDRAIL_FAILURES
            check = "intervals" if not interval_report.passed else "mandatory"
            GUARDRAIL_FAILURES.labels(check_type=check).inc()

        return ordered, {"passed": passed, "issues": issues, "warnings": warnings}
