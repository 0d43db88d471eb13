"""
api/models.py
Pydantic request/response models.

Two kinds of endpoint:
  1. Extraction: raw SoF text in, model extraction + derived blocks/laytime out
  2. Deterministic: already-structured events in, timeline blocks or laytime out (no LLM)
"""
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from extraction.schemas import LaytimeCalculationModel, PortEventModel, SofExtraction, TimelineBlockModel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ExtractionRequest(ApiModel):
    sof_content: str = Field(..., min_length=1, description="The text content of the Statement of Fact file.")


class TimelineRequest(ApiModel):
    events: list[PortEventModel] = Field(
        default_factory=list,
        description="Port events sorted by startTime ascending.",
    )


class LaytimeRequest(ApiModel):
    events:                 list[PortEventModel] = Field(default_factory=list)
    allowed_laytime_hours:  Optional[float] = Field(default=None, ge=0, description="Defaults to ALLOWED_LAYTIME_HOURS")
    demurrage_rate_per_day: Optional[float] = Field(default=None, ge=0, description="Defaults to DEMURRAGE_RATE_PER_DAY")


class GuardrailReport(ApiModel):
    passed:   bool
    issues:   list[str]
    warnings: list[str]


class ExtractionResponse(ApiModel):
    success:          bool
    request_id:       Optional[str] = None
    timestamp:        str = Field(default_factory=_now)
    result:           SofExtraction
    guardrail_report: GuardrailReport


class TimelineResponse(ApiModel):
    success:     bool = True
    event_count: int
    block_count: int
    blocks:      list[TimelineBlockModel]


class LaytimeResponse(ApiModel):
    success:         bool = True
    laytime:         LaytimeCalculationModel
    on_demurrage:    bool
    calculation_log: list[str] = []


class ErrorResponse(ApiModel):
    success:    bool          = False
    error:      str
    detail:     Optional[Any] = None
    request_id: Optional[str] = None
