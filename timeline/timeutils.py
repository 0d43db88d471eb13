"""
timeline/timeutils.py
Timestamp parsing and duration rendering for SoF events.

SoF timestamps are minute-precision and carry no timezone; everything here
works on naive datetimes and treats them as UTC when an absolute instant is
needed (epoch milliseconds for chart axes).
"""
from datetime import datetime, timedelta, timezone
from typing import Union

from timeline.errors import InvalidTimestampError

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"

_ACCEPTED_FORMATS = (
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """
    Parse an SoF timestamp and truncate it to the minute.

    Accepts ``YYYY-MM-DD HH:MM`` (the format the extraction prompt asks for),
    ISO variants with ``T`` and/or seconds, and bare dates (midnight).
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        raw = value.strip()
        dt = None
        for fmt in _ACCEPTED_FORMATS:
            try:
                dt = datetime.strptime(raw, fmt)
                break
            except ValueError:
                continue
        if dt is None:
            raise InvalidTimestampError(f"Unrecognised timestamp: {value!r}")
    else:
        raise InvalidTimestampError(f"Unsupported timestamp type: {type(value).__name__}")

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(second=0, microsecond=0)


def format_timestamp(dt: datetime) -> str:
    return dt.strftime(TIMESTAMP_FORMAT)


def format_duration(delta: timedelta) -> str:
    """
    Render a duration as ``"1d 2h 30m"``, omitting zero units.

    >>> format_duration(timedelta(hours=2, minutes=30))
    '2h 30m'
    >>> format_duration(timedelta(0))
    '0m'
    """
    total_minutes = int(delta.total_seconds() // 60)
    if total_minutes < 0:
        raise ValueError(f"Negative duration: {delta}")

    days, rem = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rem, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    return " ".join(parts) or "0m"


def format_hours(hours: float) -> str:
    """Render fractional hours with ``format_duration``, rounded to the minute."""
    return format_duration(timedelta(minutes=round(hours * 60)))


def to_epoch_ms(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)
