"""
extraction/pipeline.py
Coordinates extraction, guardrails, timeline blocks and laytime for one SoF.
"""
from dataclasses import dataclass, field
from typing import Any, Optional

from config.settings import settings
from extraction.extractor import SofExtractor
from extraction.schemas import LaytimeCalculationModel, SofExtraction, TimelineBlockModel
from guardrails.guardrail_layer import GuardrailLayer
from laytime.calculator import LaytimeCalculator
from monitoring import get_logger
from timeline.builder import build_timeline_blocks
from timeline.models import PortEvent

log = get_logger(__name__)


@dataclass
class ProcessedSof:
    """An extraction with locally derived blocks and laytime attached."""
    extraction: SofExtraction
    events: list[PortEvent]
    guardrail_report: dict[str, Any] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return bool(self.guardrail_report.get("passed"))


class SofPipeline:
    """
    extract → guardrails → timeline blocks → laytime

    The model's laytime breakdown is kept when LAYTIME_SOURCE=model and the
    model supplied one; otherwise the rules engine fills it in.
    """

    def __init__(
        self,
        extractor: Optional[SofExtractor] = None,
        guardrail: Optional[GuardrailLayer] = None,
        laytime: Optional[LaytimeCalculator] = None,
    ) -> None:
        self._extractor = extractor or SofExtractor()
        self._guardrail = guardrail or GuardrailLayer()
        self._laytime   = laytime or LaytimeCalculator()

    def process(self, sof_content: str) -> ProcessedSof:
        extraction = self._extractor.extract(sof_content)
        return self.finish(extraction)

    def finish(self, extraction: SofExtraction) -> ProcessedSof:
        """Run everything after the model call. Blocks/laytime are skipped when guardrails fail."""
        events, report = self._guardrail.review(extraction)
        processed = ProcessedSof(extraction=extraction, events=events, guardrail_report=report)
        if not processed.passed:
            log.warning("Extraction failed guardrails", issues=report["issues"])
            return processed

        extraction.timeline_blocks = [
            TimelineBlockModel.from_block(b) for b in build_timeline_blocks(events)
        ]

        use_model = settings.laytime_source == "model" and extraction.laytime_calculation is not None
        if not use_model:
            extraction.laytime_calculation = LaytimeCalculationModel.from_result(
                self._laytime.calculate(events)
            )

        log.info(
            "SoF processed",
            vessel=extraction.vessel_name,
            blocks=len(extraction.timeline_blocks),
            laytime_source=extraction.laytime_calculation.source,
        )
        return processed
