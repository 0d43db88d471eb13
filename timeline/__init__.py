"""timeline package"""
from .builder import build_timeline_blocks, flatten_blocks
from .errors import EventOrderError, InvalidIntervalError, InvalidTimestampError, TimelineError
from .models import EventCategory, PortEvent, TimelineBlock
from .timeutils import format_duration, format_timestamp, parse_timestamp, to_epoch_ms
__all__ = [
    "build_timeline_blocks", "flatten_blocks",
    "TimelineError", "InvalidIntervalError", "EventOrderError", "InvalidTimestampError",
    "EventCategory", "PortEvent", "TimelineBlock",
    "format_duration", "format_timestamp", "parse_timestamp", "to_epoch_ms",
]
