"""
Recurrence pattern and occurrence date generation.

Frequencies supported by the booking front end:
- Daily (optionally restricted to weekdays)
- Weekly / Bi-weekly on one or more weekdays
- Monthly / Quarterly on the "Nth weekday" of the month

Uses python-dateutil's rrule for the date arithmetic. Bi-weekly cadence is
anchored at the series start, never at the query window, so the same dates
come back no matter which window is asked for.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterable, Optional

from dateutil.rrule import DAILY, MONTHLY, WEEKLY, MO, TU, WE, TH, FR, SA, SU, rrule

logger = logging.getLogger(__name__)


class Frequency(str, Enum):
    """How often a series repeats."""

    DAILY = "Daily"
    WEEKLY = "Weekly"
    BIWEEKLY = "Bi-weekly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"

    @classmethod
    def parse(cls, value: "str | Frequency") -> "Frequency":
        """
        Parse a stored frequency name.

        Accepts the spellings found in stored patterns ("Bi-weekly",
        "Bi-Weekly", "biweekly", ...).

        Raises:
            ValueError: If the name matches no frequency
        """
        if isinstance(value, Frequency):
            return value
        key = value.strip().lower().replace("-", "").replace("_", "").replace(" ", "")
        for member in cls:
            if member.value.lower().replace("-", "") == key:
                return member
        raise ValueError(f"Unknown recurrence frequency: {value!r}")

    @property
    def uses_weekdays(self) -> bool:
        """Weekly and Bi-weekly series fire on explicit weekdays."""
        return self in (Frequency.WEEKLY, Frequency.BIWEEKLY)


class Weekday(str, Enum):
    """Day of week, valued by its stored name."""

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def parse(cls, value: "str | Weekday") -> "Weekday":
        if isinstance(value, Weekday):
            return value
        key = value.strip().lower()
        for member in cls:
            if member.value.lower() == key or member.value.lower()[:3] == key:
                return member
        raise ValueError(f"Unknown weekday: {value!r}")

    @classmethod
    def of(cls, day: date) -> "Weekday":
        """Weekday of a calendar date."""
        return _WEEKDAYS[day.weekday()]

    @property
    def index(self) -> int:
        """Python weekday number (Monday == 0)."""
        return _WEEKDAYS.index(self)

    def rrule_day(self, n: Optional[int] = None):
        """dateutil weekday constant, optionally with an ordinal (e.g. MO(+2))."""
        day = _RRULE_DAYS[self.index]
        return day(n) if n is not None else day


_WEEKDAYS = list(Weekday)
_RRULE_DAYS = (MO, TU, WE, TH, FR, SA, SU)


@dataclass(frozen=True)
class RecurrencePattern:
    """
    Describes how often and on which weekdays a series repeats.

    Attributes:
        frequency: Repeat frequency
        weekdays: Weekdays the series fires on. Required for Weekly and
            Bi-weekly; optional restriction for Daily; the "Nth weekday"
            days for Monthly and Quarterly.
        ordinal: Explicit "Nth weekday" (1-5) for Monthly/Quarterly. When
            None it is derived from the series start date.
    """

    frequency: Frequency
    weekdays: tuple[Weekday, ...] = ()
    ordinal: Optional[int] = None

    @classmethod
    def build(
        cls,
        frequency: "str | Frequency",
        weekdays: Iterable["str | Weekday"] = (),
        ordinal: Optional[int] = None,
    ) -> "RecurrencePattern":
        """Build a pattern from stored names, dropping duplicate weekdays."""
        parsed: list[Weekday] = []
        for day in weekdays or ():
            weekday = Weekday.parse(day)
            if weekday not in parsed:
                parsed.append(weekday)
        return cls(Frequency.parse(frequency), tuple(parsed), ordinal)

    def validate(self) -> list[str]:
        """Return structural problems with this pattern (empty if valid)."""
        errors = []
        if self.frequency.uses_weekdays and not self.weekdays:
            errors.append(f"{self.frequency.value} pattern requires at least one weekday")
        if self.ordinal is not None and not 1 <= self.ordinal <= 5:
            errors.append("Pattern ordinal must be between 1 and 5")
        return errors

    def describe(self) -> str:
        """Human readable name, used when a pattern row must be created."""
        if not self.weekdays:
            return self.frequency.value
        return f"{self.frequency.value} on {', '.join(d.value for d in self.weekdays)}"


def weekday_ordinal(day: date) -> int:
    """Occurrence of ``day``'s weekday within its month (1st, 2nd, ... 5th)."""
    return math.ceil(day.day / 7)


def quarter_start(day: date) -> date:
    """First day of the calendar quarter containing ``day``."""
    return date(day.year, ((day.month - 1) // 3) * 3 + 1, 1)


def generate_occurrence_dates(
    pattern: RecurrencePattern,
    series_start: date,
    series_end: date,
    window_start: date,
    window_end: date,
    anchor_time: time = time.min,
) -> list[date]:
    """
    Generate the candidate dates of a series inside a window.

    Dates are restricted to ``[max(series_start, window_start),
    min(series_end, window_end)]``. Exceptions are not applied here.

    Args:
        pattern: Recurrence pattern of the series
        series_start: First day of the series
        series_end: Last day of the series (inclusive)
        window_start: First day of the query window
        window_end: Last day of the query window (inclusive)
        anchor_time: Time of day the occurrences start at

    Returns:
        Sorted list of unique dates
    """
    range_start = max(series_start, window_start)
    range_end = min(series_end, window_end)
    if range_end < range_start:
        return []

    lower = datetime.combine(range_start, anchor_time)
    upper = datetime.combine(range_end, anchor_time)

    found: set[date] = set()
    for rule in _build_rules(pattern, series_start, range_start, range_end, anchor_time):
        found.update(dt.date() for dt in rule.between(lower, upper, inc=True))

    return sorted(found)


def _build_rules(
    pattern: RecurrencePattern,
    series_start: date,
    range_start: date,
    range_end: date,
    anchor_time: time,
) -> list[rrule]:
    """Build one rrule per weekday (or a single rule for Daily)."""
    until = datetime.combine(range_end, anchor_time)
    frequency = pattern.frequency

    if frequency is Frequency.DAILY:
        byweekday = [d.rrule_day() for d in pattern.weekdays] or None
        return [
            rrule(
                DAILY,
                dtstart=datetime.combine(range_start, anchor_time),
                until=until,
                byweekday=byweekday,
            )
        ]

    weekdays = pattern.weekdays or (Weekday.of(series_start),)

    if frequency.uses_weekdays:
        interval = 2 if frequency is Frequency.BIWEEKLY else 1
        rules = []
        for weekday in weekdays:
            first = _first_on_or_after(series_start, weekday)
            if interval == 1 and first < range_start:
                # Weekly phase is the same from any start, skip ahead
                first = _first_on_or_after(range_start, weekday)
            rules.append(
                rrule(
                    WEEKLY,
                    interval=interval,
                    dtstart=datetime.combine(first, anchor_time),
                    until=until,
                )
            )
        return rules

    ordinal = pattern.ordinal or weekday_ordinal(series_start)
    if frequency is Frequency.MONTHLY:
        anchor = date(series_start.year, series_start.month, 1)
        interval = 1
    else:
        anchor = quarter_start(series_start)
        interval = 3

    return [
        rrule(
            MONTHLY,
            interval=interval,
            dtstart=datetime.combine(anchor, anchor_time),
            until=until,
            byweekday=weekday.rrule_day(+ordinal),
        )
        for weekday in weekdays
    ]


def _first_on_or_after(day: date, weekday: Weekday) -> date:
    """First date on or after ``day`` falling on ``weekday``."""
    return day + timedelta(days=(weekday.index - day.weekday()) % 7)
