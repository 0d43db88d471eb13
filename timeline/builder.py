"""
timeline/builder.py
Timeline Block Builder

Merges a chronologically sorted list of PortEvents into the minimal sequence
of non-overlapping display blocks. Boundaries are inclusive: an event that
starts exactly when the current block ends joins that block, so back-to-back
operations render as one bar instead of several touching ones.

A block takes its category from its earliest member. Later members never
reclassify it (a delay inside a cargo block stays a sub-event of a
"Cargo Operations" block).
"""
from datetime import datetime
from typing import Iterable, Optional

from monitoring import TIMELINE_BLOCKS, get_logger
from timeline.errors import EventOrderError, InvalidIntervalError
from timeline.models import PortEvent, TimelineBlock

log = get_logger(__name__)


class _Accumulator:
    """The block currently being grown."""

    __slots__ = ("start", "end", "events")

    def __init__(self, first: PortEvent) -> None:
        self.start: datetime = first.start_time
        self.end: datetime = first.end_time
        self.events: list[PortEvent] = [first]

    def overlaps(self, event: PortEvent) -> bool:
        return event.start_time <= self.end

    def absorb(self, event: PortEvent) -> None:
        if event.end_time > self.end:
            self.end = event.end_time
        self.events.append(event)

    def finalise(self) -> TimelineBlock:
        first = self.events[0]
        return TimelineBlock(
            name=block_name(self.events),
            category=first.category,
            start_time=self.start,
            end_time=self.end,
            sub_events=list(self.events),
        )


def block_name(events: list[PortEvent]) -> str:
    if len(events) == 1:
        return events[0].event
    return f"{events[0].category.label} ({len(events)} events)"


def build_timeline_blocks(events: Iterable[PortEvent]) -> list[TimelineBlock]:
    """
    Merge overlapping events into timeline blocks in a single pass.

    Args:
        events: PortEvents sorted by start_time ascending (ties in input order).

    Returns:
        Blocks in ascending start order; every input event appears in exactly
        one block's sub_events.

    Raises:
        InvalidIntervalError: an event ends before it starts.
        EventOrderError: an event starts before the one preceding it.
    """
    blocks: list[TimelineBlock] = []
    current: Optional[_Accumulator] = None
    previous: Optional[PortEvent] = None

    for index, event in enumerate(events):
        if event.end_time < event.start_time:
            raise InvalidIntervalError(event, index)
        if previous is not None and event.start_time < previous.start_time:
            raise EventOrderError(event, index)
        previous = event

        if current is None:
            current = _Accumulator(event)
        elif current.overlaps(event):
            current.absorb(event)
        else:
            blocks.append(current.finalise())
            current = _Accumulator(event)

    if current is not None:
        blocks.append(current.finalise())

    if blocks:
        TIMELINE_BLOCKS.inc(len(blocks))
    log.debug("Timeline blocks built", blocks=len(blocks))
    return blocks


def flatten_blocks(blocks: Iterable[TimelineBlock]) -> list[PortEvent]:
    """Inverse view of ``build_timeline_blocks``: all sub-events in block order."""
    return [event for block in blocks for event in block.sub_events]
