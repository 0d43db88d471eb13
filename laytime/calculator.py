"""
laytime/calculator.py
Rules-based laytime / demurrage calculator.

Time on laytime is the union of intervals of the counted categories (cargo
operations by default) minus any part of that union covered by excluded
categories (delays, stoppages). Overlapping counted events are therefore
never double-counted, and a rain stoppage during cargo work stops the clock.

    used      = |U(counted) - U(excluded)|
    demurrage = max(0, used - allowed)        cost = demurrage_days × rate
    time_saved = max(0, allowed - used)
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Optional

from config.settings import settings
from monitoring import get_logger
from timeline.errors import InvalidIntervalError
from timeline.models import EventCategory, PortEvent
from timeline.timeutils import format_hours

log = get_logger(__name__)

_DEFAULT_EXCLUDED = (EventCategory.DELAYS, EventCategory.STOPPAGES)


class LaytimeError(ValueError):
    pass


@dataclass
class LaytimeEntry:
    event: PortEvent
    is_counted: bool
    reason: str


@dataclass
class LaytimeResult:
    allowed_hours: float
    used_hours: float
    time_saved_hours: float
    demurrage_hours: float
    demurrage_cost: float
    currency: str = "$"
    entries: list[LaytimeEntry] = field(default_factory=list)
    calculation_log: list[str] = field(default_factory=list)

    @property
    def on_demurrage(self) -> bool:
        return self.demurrage_hours > 0


Interval = tuple[datetime, datetime]


def _merged_intervals(events: list[PortEvent]) -> list[Interval]:
    """Union of the events' intervals as sorted, disjoint (start, end) pairs."""
    merged: list[Interval] = []
    for event in sorted(events, key=lambda e: e.start_time):
        if merged and event.start_time <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], event.end_time))
        else:
            merged.append((event.start_time, event.end_time))
    return merged


def _span(intervals: list[Interval]) -> timedelta:
    return sum((end - start for start, end in intervals), timedelta(0))


def _overlap(a: list[Interval], b: list[Interval]) -> timedelta:
    """Total overlap between two sorted lists of disjoint intervals."""
    total = timedelta(0)
    i = j = 0
    while i < len(a) and j < len(b):
        start = max(a[i][0], b[j][0])
        end = min(a[i][1], b[j][1])
        if end > start:
            total += end - start
        if a[i][1] < b[j][1]:
            i += 1
        else:
            j += 1
    return total


class LaytimeCalculator:
    """
    Stateless calculator; configure once and reuse.

    Args:
        allowed_hours: laytime allowed by the charter party.
        demurrage_rate_per_day: charge per day on demurrage, prorated.
        counted_categories: categories whose time counts as laytime.
        excluded_categories: categories that stop the clock when they overlap counted time.
    """

    def __init__(
        self,
        allowed_hours: Optional[float] = None,
        demurrage_rate_per_day: Optional[float] = None,
        counted_categories: Optional[Iterable] = None,
        excluded_categories: Optional[Iterable] = None,
        currency: Optional[str] = None,
    ) -> None:
        self.allowed_hours = settings.allowed_laytime_hours if allowed_hours is None else allowed_hours
        self.rate_per_day = (
            settings.demurrage_rate_per_day if demurrage_rate_per_day is None else demurrage_rate_per_day
        )
        if self.allowed_hours < 0:
            raise LaytimeError(f"allowed laytime cannot be negative: {self.allowed_hours}")
        if self.rate_per_day < 0:
            raise LaytimeError(f"demurrage rate cannot be negative: {self.rate_per_day}")

        counted = settings.laytime_counted_categories if counted_categories is None else counted_categories
        excluded = _DEFAULT_EXCLUDED if excluded_categories is None else excluded_categories
        self.counted = frozenset(EventCategory.parse(c) for c in counted)
        self.excluded = frozenset(EventCategory.parse(c) for c in excluded) - self.counted
        self.currency = currency or settings.demurrage_currency

    def _classify(self, event: PortEvent) -> LaytimeEntry:
        label = event.category.label
        if event.category in self.counted:
            return LaytimeEntry(event, True, f"{label} counts towards laytime")
        if event.category in self.excluded:
            return LaytimeEntry(event, False, f"{label} excluded from laytime")
        return LaytimeEntry(event, False, f"{label} is not a laytime operation")

    def calculate(self, events: Iterable[PortEvent]) -> LaytimeResult:
        events = list(events)
        for index, event in enumerate(events):
            if event.end_time < event.start_time:
                raise InvalidIntervalError(event, index)
        entries = [self._classify(e) for e in events]
        calc_log: list[str] = []

        counted = _merged_intervals([e.event for e in entries if e.is_counted])
        excluded = _merged_intervals([e for e in events if e.category in self.excluded])

        gross = _span(counted)
        lost = _overlap(counted, excluded)
        used_hours = (gross - lost).total_seconds() / 3600
        calc_log.append(f"Counted time: {format_hours(gross.total_seconds() / 3600)}")
        if lost:
            calc_log.append(f"Less excluded time: {format_hours(lost.total_seconds() / 3600)}")
        calc_log.append(f"Laytime used: {format_hours(used_hours)} of {format_hours(self.allowed_hours)} allowed")

        demurrage_hours = max(0.0, used_hours - self.allowed_hours)
        time_saved_hours = max(0.0, self.allowed_hours - used_hours)
        demurrage_cost = round(demurrage_hours / 24 * self.rate_per_day, 2)

        if demurrage_hours:
            calc_log.append(
                f"On demurrage: {format_hours(demurrage_hours)} × "
                f"{self.currency}{self.rate_per_day:,.2f}/day = {self.currency}{demurrage_cost:,.2f}"
            )
        elif time_saved_hours:
            calc_log.append(f"Time saved: {format_hours(time_saved_hours)}")
        else:
            calc_log.append("Completed exactly on laytime")

        log.info(
            "Laytime calculated",
            events=len(events),
            used_hours=round(used_hours, 2),
            allowed_hours=self.allowed_hours,
            demurrage_cost=demurrage_cost,
        )
        return LaytimeResult(
            allowed_hours=self.allowed_hours,
            used_hours=round(used_hours, 4),
            time_saved_hours=round(time_saved_hours, 4),
            demurrage_hours=round(demurrage_hours, 4),
            demurrage_cost=demurrage_cost,
            currency=self.currency,
            entries=entries,
            calculation_log=calc_log,
        )
