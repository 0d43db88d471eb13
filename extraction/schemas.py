"""
extraction/schemas.py
Pydantic models for the structured data the extraction model returns.

Field names are snake_case in Python and camelCase on the wire (the model is
prompted with camelCase keys and the API responds in camelCase).
Only vesselName and a non-empty events list are mandatory.
"""
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from laytime.calculator import LaytimeResult
from timeline.errors import InvalidTimestampError
from timeline.models import EventCategory, PortEvent, TimelineBlock
from timeline.timeutils import format_duration, format_hours, format_timestamp, parse_timestamp

NOT_MENTIONED = "Not Mentioned"

# Keys the prompt's flat output format puts at the top level
_FLAT_LAYTIME_KEYS = (
    "laytimeEvents", "totalLaytime", "allowedLaytime",
    "timeSaved", "demurrage", "demurrageCost",
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PortEventModel(_CamelModel):
    event:      str = Field(..., min_length=1, description="Verbatim event text from the SoF remarks column")
    category:   EventCategory = EventCategory.OTHER
    start_time: Optional[str] = Field(default=None, description="YYYY-MM-DD HH:MM")
    end_time:   Optional[str] = Field(default=None, description="YYYY-MM-DD HH:MM; same as start for point events")
    duration:   str = ""
    status:     str = NOT_MENTIONED
    remark:     Optional[str] = None

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, v: Any) -> EventCategory:
        return EventCategory.parse(v)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _normalise_timestamp(cls, v: Any) -> Optional[str]:
        if v is None or (isinstance(v, str) and v.strip() in ("", NOT_MENTIONED)):
            return None
        try:
            return format_timestamp(parse_timestamp(v))
        except InvalidTimestampError:
            # Kept verbatim; to_port_event rejects it and the guardrails drop the event
            return str(v).strip()

    @model_validator(mode="after")
    def _fill_derived(self):
        if self.end_time is None:
            self.end_time = self.start_time
        if not self.status:
            self.status = NOT_MENTIONED
        if not self.duration and self.start_time is not None:
            try:
                start, end = parse_timestamp(self.start_time), parse_timestamp(self.end_time)
            except InvalidTimestampError:
                return self
            if end >= start:
                self.duration = format_duration(end - start)
        return self

    def to_port_event(self) -> PortEvent:
        """Raises InvalidTimestampError when the start time is missing or unreadable."""
        if self.start_time is None:
            raise InvalidTimestampError(f"Event '{self.event}' has no start time")
        return PortEvent(
            event=self.event,
            category=self.category,
            start_time=parse_timestamp(self.start_time),
            end_time=parse_timestamp(self.end_time),
            status=self.status,
            remark=self.remark,
        )

    @classmethod
    def from_port_event(cls, event: PortEvent) -> "PortEventModel":
        return cls(
            event=event.event,
            category=event.category,
            start_time=format_timestamp(event.start_time),
            end_time=format_timestamp(event.end_time),
            duration=event.duration,
            status=event.status,
            remark=event.remark,
        )


SubEventModel = PortEventModel


class TimelineBlockModel(_CamelModel):
    name:       str
    category:   EventCategory
    time:       tuple[int, int]
    duration:   str
    start_time: str
    end_time:   str
    sub_events: list[SubEventModel]

    @classmethod
    def from_block(cls, block: TimelineBlock) -> "TimelineBlockModel":
        return cls(
            name=block.name,
            category=block.category,
            time=block.time,
            duration=block.duration,
            start_time=format_timestamp(block.start_time),
            end_time=format_timestamp(block.end_time),
            sub_events=[PortEventModel.from_port_event(e) for e in block.sub_events],
        )


class LaytimeEventModel(_CamelModel):
    event:      str
    start_time: Optional[str] = None
    end_time:   Optional[str] = None
    duration:   str = ""
    is_counted: bool = Field(
        default=False,
        validation_alias=AliasChoices("isCounted", "countedTowardsLaytime", "is_counted"),
        serialization_alias="isCounted",
    )
    reason:     Optional[str] = None


class LaytimeCalculationModel(_CamelModel):
    total_laytime:   str = ""
    allowed_laytime: str = ""
    time_saved:      str = ""
    demurrage:       str = ""
    demurrage_cost:  Optional[str] = None
    laytime_events:  list[LaytimeEventModel] = Field(default_factory=list)
    source:          str = Field(default="model", description="'model' or 'rules'")

    @classmethod
    def from_result(cls, result: LaytimeResult) -> "LaytimeCalculationModel":
        return cls(
            total_laytime=format_hours(result.used_hours),
            allowed_laytime=format_hours(result.allowed_hours),
            time_saved=format_hours(result.time_saved_hours),
            demurrage=format_hours(result.demurrage_hours),
            demurrage_cost=f"{result.currency}{result.demurrage_cost:,.2f}",
            laytime_events=[
                LaytimeEventModel(
                    event=entry.event.event,
                    start_time=format_timestamp(entry.event.start_time),
                    end_time=format_timestamp(entry.event.end_time),
                    duration=entry.event.duration,
                    is_counted=entry.is_counted,
                    reason=entry.reason,
                )
                for entry in result.entries
            ],
            source="rules",
        )


class SofExtraction(_CamelModel):
    """Everything the model is asked to return for one Statement of Fact."""
    vessel_name:                   str = Field(..., min_length=1)
    port_of_call:                  Optional[str] = None
    berth:                         Optional[str] = None
    cargo_description:             Optional[str] = None
    cargo_quantity:                Optional[str] = None
    voyage_number:                 Optional[str] = None
    notice_of_readiness_tendered:  Optional[str] = None
    events:                        list[PortEventModel] = Field(..., min_length=1)
    timeline_blocks:               Optional[list[TimelineBlockModel]] = None
    laytime_calculation:           Optional[LaytimeCalculationModel] = None
    events_summary:                Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("eventsSummary", "summary", "events_summary"),
        serialization_alias="eventsSummary",
    )

    @model_validator(mode="before")
    @classmethod
    def _fold_flat_laytime(cls, data: Any) -> Any:
        """Move top-level laytime keys (the prompt's flat format) under laytimeCalculation."""
        if not isinstance(data, dict) or data.get("laytimeCalculation") or data.get("laytime_calculation"):
            return data
        flat = {k: data[k] for k in _FLAT_LAYTIME_KEYS if data.get(k) is not None}
        if not flat:
            return data
        data = {k: v for k, v in data.items() if k not in _FLAT_LAYTIME_KEYS}
        data["laytimeCalculation"] = flat
        return data

    @field_validator("vessel_name", mode="before")
    @classmethod
    def _vessel_name_present(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            if v.lower() in ("", NOT_MENTIONED.lower(), "unknown", "n/a"):
                raise ValueError("vessel name could not be determined")
        return v

    @field_validator("events_summary", mode="before")
    @classmethod
    def _join_summary(cls, v: Any) -> Any:
        if isinstance(v, list):
            return "\n".join(f"• {str(item).strip()}" for item in v if str(item).strip())
        return v

    def port_events(self) -> list[PortEvent]:
        return [e.to_port_event() for e in self.events]
