"""
timeline/models.py
PortEvent and TimelineBlock — the in-memory shapes the timeline builder,
laytime calculator and guardrails share. Kept free of pydantic so the core
stays importable without the API layer.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Union

from timeline.timeutils import format_duration, parse_timestamp, to_epoch_ms


class EventCategory(str, Enum):
    ARRIVAL          = "Arrival"
    CARGO_OPERATIONS = "CargoOperations"
    DEPARTURE        = "Departure"
    DELAYS           = "Delays"
    STOPPAGES        = "Stoppages"
    BUNKERING        = "Bunkering"
    ANCHORAGE        = "Anchorage"
    OTHER            = "Other"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def parse(cls, raw: Union[str, "EventCategory", None]) -> "EventCategory":
        """
        Map a model-supplied category onto the enumeration.
        Accepts 'Cargo Operations', 'CargoOperations', 'cargo_operations', ...
        Anything unrecognised becomes OTHER.
        """
        if isinstance(raw, cls):
            return raw
        key = _normalise(raw or "")
        return _LOOKUP.get(key, cls.OTHER)


_LABELS = {
    EventCategory.ARRIVAL:          "Arrival",
    EventCategory.CARGO_OPERATIONS: "Cargo Operations",
    EventCategory.DEPARTURE:        "Departure",
    EventCategory.DELAYS:           "Delays",
    EventCategory.STOPPAGES:        "Stoppages",
    EventCategory.BUNKERING:        "Bunkering",
    EventCategory.ANCHORAGE:        "Anchorage",
    EventCategory.OTHER:            "Other",
}


def _normalise(raw: str) -> str:
    return "".join(ch for ch in raw.lower() if ch.isalnum())


_LOOKUP: dict[str, EventCategory] = {}
for _cat in EventCategory:
    _LOOKUP[_normalise(_cat.value)] = _cat
    _LOOKUP[_normalise(_cat.name)] = _cat
    _LOOKUP[_normalise(_cat.label)] = _cat
# singular forms the model occasionally returns
_LOOKUP.update({"delay": EventCategory.DELAYS, "stoppage": EventCategory.STOPPAGES})


@dataclass(frozen=True)
class PortEvent:
    """A single timestamped line item from a Statement of Fact."""
    event: str
    category: EventCategory
    start_time: datetime
    end_time: datetime
    status: str = "Not Mentioned"
    remark: Optional[str] = None

    @classmethod
    def parse(
        cls,
        event: str,
        category: Union[str, EventCategory, None],
        start_time: Union[str, datetime],
        end_time: Union[str, datetime, None] = None,
        status: Optional[str] = None,
        remark: Optional[str] = None,
    ) -> "PortEvent":
        """Build a PortEvent from loosely typed values; a missing end time means point-in-time."""
        if not event or not event.strip():
            raise ValueError("event text must not be empty")
        start = parse_timestamp(start_time)
        end = parse_timestamp(end_time) if end_time else start
        return cls(
            event=event,
            category=EventCategory.parse(category),
            start_time=start,
            end_time=end,
            status=status or "Not Mentioned",
            remark=remark or None,
        )

    @property
    def elapsed(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def duration(self) -> str:
        return format_duration(self.elapsed)

    @property
    def is_point_in_time(self) -> bool:
        return self.start_time == self.end_time


@dataclass
class TimelineBlock:
    """A merged group of overlapping events, ready for a Gantt-style chart."""
    name: str
    category: EventCategory
    start_time: datetime
    end_time: datetime
    sub_events: list[PortEvent] = field(default_factory=list)

    @property
    def duration(self) -> str:
        return format_duration(self.end_time - self.start_time)

    @property
    def time(self) -> tuple[int, int]:
        return to_epoch_ms(self.start_time), to_epoch_ms(self.end_time)
