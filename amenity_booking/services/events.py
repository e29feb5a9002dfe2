"""
Booking value types shared by the recurrence and conflict services.

These are plain in-memory values mapped from store rows. They carry no
database state, so expansion and conflict detection stay pure.
"""

from dataclasses import dataclass, field, replace
from datetime import date, time, timedelta
from decimal import Decimal
from typing import Iterator, Optional
from uuid import UUID

from amenity_booking.services.recurrence import RecurrencePattern


@dataclass(frozen=True, order=True)
class Resource:
    """The (building, amenity) pair a booking occupies."""

    building_id: UUID
    amenity_id: UUID


@dataclass(frozen=True)
class ContactInfo:
    """Contact details attached to a booking."""

    phone: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar dates."""

    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Date range ends ({self.end}) before it starts ({self.start})")

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    def __iter__(self) -> Iterator[date]:
        day = self.start
        while day <= self.end:
            yield day
            day += timedelta(days=1)

    @property
    def days(self) -> int:
        """Number of days covered (inclusive)."""
        return (self.end - self.start).days + 1

    def overlaps(self, other: "DateRange") -> bool:
        return self.start <= other.end and other.start <= self.end

    @classmethod
    def spanning(cls, days: list[date]) -> Optional["DateRange"]:
        """Smallest range containing every date, or None for no dates."""
        if not days:
            return None
        return cls(min(days), max(days))


@dataclass(frozen=True)
class Event:
    """
    A one-time booking or a recurring series.

    ``start_time``/``end_time`` are times of day shared by every occurrence.
    ``id`` is None for candidates that have not been stored yet.
    """

    resource: Optional[Resource]
    title: str
    start_time: time
    end_time: time
    is_recurring: bool = False
    one_time_date: Optional[date] = None
    recurring_range: Optional[DateRange] = None
    pattern: Optional[RecurrencePattern] = None
    pattern_id: Optional[UUID] = None
    notes: Optional[str] = None
    cost: Optional[Decimal] = None
    contact: ContactInfo = field(default_factory=ContactInfo)
    id: Optional[UUID] = None

    @property
    def span(self) -> Optional[DateRange]:
        """Dates the booking can occupy at most."""
        if self.is_recurring:
            return self.recurring_range
        if self.one_time_date is None:
            return None
        return DateRange(self.one_time_date, self.one_time_date)

    def with_id(self, event_id: UUID) -> "Event":
        return replace(self, id=event_id)
