"""
Booking conflict detection.

A conflict exists when a candidate booking and an existing occurrence use
the same resource (same amenity in the same building) on the same date
and their time intervals overlap.

Overlap rule (half-open): [s1, e1) and [s2, e2) overlap iff
s1 < e2 and s2 < e1. A booking ending exactly when another starts is
NOT a conflict.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, time
from typing import Iterable, Optional, Sequence
from uuid import UUID

from amenity_booking.services.events import DateRange, Event, Resource
from amenity_booking.services.expansion import Occurrence, expand_event
from amenity_booking.services.occurrence_exceptions import ExceptionStore
from amenity_booking.services.recurrence import generate_occurrence_dates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConflictCandidate:
    """
    Slot a booking wants to occupy on a list of dates.

    ``exclude_event_id`` is the id of the event being edited, so it never
    conflicts with itself.
    """

    resource: Resource
    start_time: time
    end_time: time
    dates: tuple[date, ...]
    exclude_event_id: Optional[UUID] = None

    @property
    def window(self) -> Optional[DateRange]:
        return DateRange.spanning(list(self.dates))


@dataclass(frozen=True)
class ConflictingOccurrence:
    """Existing occurrence that collides with the candidate."""

    source_event_id: Optional[UUID]
    title: str
    start_time: time
    end_time: time

    @classmethod
    def from_occurrence(cls, occurrence: Occurrence) -> "ConflictingOccurrence":
        return cls(
            source_event_id=occurrence.parent_series_id,
            title=occurrence.title,
            start_time=occurrence.start_time,
            end_time=occurrence.end_time,
        )

    def describe(self) -> str:
        return f'"{self.title}" ({self.start_time:%H:%M} - {self.end_time:%H:%M})'


@dataclass(frozen=True)
class ConflictEntry:
    """All collisions on a single date."""

    date: date
    conflicting_occurrences: tuple[ConflictingOccurrence, ...]


@dataclass(frozen=True)
class ConflictReport:
    """Dates on which a candidate overlaps existing bookings, sorted by date."""

    entries: tuple[ConflictEntry, ...] = field(default_factory=tuple)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.entries)

    @property
    def dates(self) -> list[date]:
        return [entry.date for entry in self.entries]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def messages(self) -> list[str]:
        """One actionable line per conflicting date."""
        return [
            f"{entry.date.isoformat()}: conflicts with "
            + ", ".join(c.describe() for c in entry.conflicting_occurrences)
            for entry in self.entries
        ]


def intervals_overlap(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    """Half-open interval overlap; touching endpoints do not overlap."""
    return start_a < end_b and start_b < end_a


def candidate_dates(event: Event) -> list[date]:
    """Every date a (not yet stored) booking would occupy."""
    if not event.is_recurring:
        return [event.one_time_date] if event.one_time_date is not None else []
    if event.recurring_range is None or event.pattern is None:
        return []
    return generate_occurrence_dates(
        event.pattern,
        event.recurring_range.start,
        event.recurring_range.end,
        event.recurring_range.start,
        event.recurring_range.end,
        anchor_time=event.start_time,
    )


def candidate_from_event(event: Event, dates: Optional[Sequence[date]] = None) -> ConflictCandidate:
    """
    Build the conflict candidate for a booking.

    Args:
        event: One-time booking or series (stored or not)
        dates: Dates to check; defaults to every date the booking generates

    Raises:
        ValueError: If the event has no resource
    """
    if event.resource is None:
        raise ValueError("Cannot check conflicts for a booking without a resource")
    if dates is None:
        dates = candidate_dates(event)
    return ConflictCandidate(
        resource=event.resource,
        start_time=event.start_time,
        end_time=event.end_time,
        dates=tuple(dates),
        exclude_event_id=event.id,
    )


def find_conflicts(
    candidate: ConflictCandidate,
    existing_events: Iterable[Event],
    window: Optional[DateRange] = None,
    exceptions: Optional[ExceptionStore] = None,
) -> ConflictReport:
    """
    Find every date on which the candidate overlaps an existing booking.

    Args:
        candidate: Slot and dates the new booking wants
        existing_events: Stored one-time bookings and series (unexpanded)
        window: Dates to expand existing series over; defaults to the span
            of the candidate's dates
        exceptions: Exception index for the request

    Returns:
        ConflictReport with one entry per conflicting date
    """
    if window is None:
        window = candidate.window
    if window is None or not candidate.dates:
        return ConflictReport()

    index: dict[date, list[Occurrence]] = defaultdict(list)
    for event in _relevant_events(candidate, existing_events, exceptions):
        for occurrence in expand_event(event, window, exceptions):
            if occurrence.resource == candidate.resource:
                index[occurrence.date].append(occurrence)

    entries = []
    for day in sorted(set(candidate.dates)):
        colliding = [
            ConflictingOccurrence.from_occurrence(o)
            for o in index.get(day, ())
            if intervals_overlap(candidate.start_time, candidate.end_time, o.start_time, o.end_time)
        ]
        if colliding:
            entries.append(ConflictEntry(day, tuple(colliding)))

    if entries:
        logger.info(
            f"Found {len(entries)} conflicting date(s) for {candidate.resource} "
            f"{candidate.start_time:%H:%M}-{candidate.end_time:%H:%M}"
        )
    return ConflictReport(tuple(entries))


def _relevant_events(
    candidate: ConflictCandidate,
    existing_events: Iterable[Event],
    exceptions: Optional[ExceptionStore],
) -> list[Event]:
    """
    Events that can produce an occurrence on the candidate's resource.

    The candidate's own event is excluded. A series on another resource is
    kept only when a modification moved one of its occurrences onto the
    candidate's resource.
    """
    relevant = []
    for event in existing_events:
        if candidate.exclude_event_id is not None and event.id == candidate.exclude_event_id:
            continue
        if event.resource == candidate.resource:
            relevant.append(event)
        elif (
            event.is_recurring
            and event.id is not None
            and exceptions is not None
            and candidate.resource in exceptions.relocated_resources(event.id)
        ):
            relevant.append(event)
    return relevant
