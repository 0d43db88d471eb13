"""
timeline/errors.py
Exceptions raised while validating or merging SoF events.
"""


class TimelineError(ValueError):
    """Base class for timeline input problems."""


class InvalidTimestampError(TimelineError):
    pass


class InvalidIntervalError(TimelineError):
    """An event ends before it starts."""

    def __init__(self, event, index: int) -> None:
        self.event = event
        self.index = index
        super().__init__(
            f"Event #{index} '{event.event}' ends before it starts "
            f"({event.start_time:%Y-%m-%d %H:%M} > {event.end_time:%Y-%m-%d %H:%M})"
        )


class EventOrderError(TimelineError):
    """Events are not sorted by start time."""

    def __init__(self, event, index: int) -> None:
        self.event = event
        self.index = index
        super().__init__(
            f"Event #{index} '{event.event}' starts before its predecessor; "
            f"events must be sorted by start time"
        )
