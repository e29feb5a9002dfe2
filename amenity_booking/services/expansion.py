"""
Recurrence expansion service.

Turns events into materialized occurrences for a window:
- One-time bookings yield their single date when it falls in the window
- Series are expanded with generate_occurrence_dates, then exceptions are
  overlaid (cancelled dates dropped, modified fields merged)

Occurrences are ephemeral: they are built on demand and owned by the
caller. Nothing here touches the store.
"""

import heapq
import logging
from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from amenity_booking.services.events import ContactInfo, DateRange, Event, Resource
from amenity_booking.services.occurrence_exceptions import (
    Cancelled,
    ExceptionStore,
    Modified,
)
from amenity_booking.services.recurrence import generate_occurrence_dates

logger = logging.getLogger(__name__)

_NO_EXCEPTIONS = ExceptionStore()


@dataclass(frozen=True)
class Occurrence:
    """One concrete dated instance of a booking, after exceptions."""

    parent_series_id: Optional[UUID]
    date: date
    resource: Resource
    start_time: time
    end_time: time
    title: str
    notes: Optional[str] = None
    cost: Optional[Decimal] = None
    contact: ContactInfo = field(default_factory=ContactInfo)
    is_exception: bool = False
    is_recurring: bool = False

    @property
    def sort_key(self) -> tuple:
        return (self.date, self.start_time, self.end_time, self.title)

    @property
    def occurrence_id(self) -> str:
        """Stable identifier of the occurrence ("<series id>-<YYYY-MM-DD>")."""
        return f"{self.parent_series_id}-{self.date.isoformat()}"


def expand_event(
    event: Event,
    window: DateRange,
    exceptions: Optional[ExceptionStore] = None,
) -> list[Occurrence]:
    """
    Materialize the occurrences of one event inside a window.

    Args:
        event: One-time booking or recurring series
        window: Dates to expand over (inclusive)
        exceptions: Exception index for the request (None means no exceptions)

    Returns:
        Occurrences sorted by (date, start_time)
    """
    if exceptions is None:
        exceptions = _NO_EXCEPTIONS

    if event.resource is None:
        logger.warning(f"Event {event.id} has no resource, skipping expansion")
        return []

    if not event.is_recurring:
        if event.one_time_date is None or event.one_time_date not in window:
            return []
        return [_base_occurrence(event, event.one_time_date)]

    if event.recurring_range is None or event.pattern is None:
        logger.warning(f"Recurring event {event.id} is missing its range or pattern, skipping")
        return []

    candidate_dates = generate_occurrence_dates(
        event.pattern,
        event.recurring_range.start,
        event.recurring_range.end,
        window.start,
        window.end,
        anchor_time=event.start_time,
    )

    occurrences = []
    for day in candidate_dates:
        record = exceptions.exception_for(event.id, day) if event.id is not None else None
        if isinstance(record, Cancelled):
            continue
        if isinstance(record, Modified):
            occurrences.append(_modified_occurrence(event, day, record))
        else:
            occurrences.append(_base_occurrence(event, day))

    occurrences.sort(key=lambda o: o.sort_key)
    logger.debug(
        f"Expanded event {event.id} over {window.start}..{window.end}: "
        f"{len(candidate_dates)} candidates, {len(occurrences)} occurrences"
    )
    return occurrences


def expand_for_display(
    events: Iterable[Event],
    window: DateRange,
    exceptions: Optional[ExceptionStore] = None,
    resource: Optional[Resource] = None,
) -> list[Occurrence]:
    """
    Expand many events into one sorted occurrence list (calendar view).

    Args:
        events: Events to expand
        window: Dates to expand over
        exceptions: Exception index for the request
        resource: Only keep occurrences on this resource

    Returns:
        Occurrences sorted by (date, start_time)
    """
    per_event = [expand_event(event, window, exceptions) for event in events]
    merged = heapq.merge(*per_event, key=lambda o: o.sort_key)
    if resource is None:
        return list(merged)
    return [o for o in merged if o.resource == resource]


def filter_occurrences(
    occurrences: Iterable[Occurrence],
    building_id: Optional[UUID] = None,
    amenity_id: Optional[UUID] = None,
) -> list[Occurrence]:
    """Keep occurrences in a building and/or for an amenity."""
    return [
        o
        for o in occurrences
        if (building_id is None or o.resource.building_id == building_id)
        and (amenity_id is None or o.resource.amenity_id == amenity_id)
    ]


def _base_occurrence(event: Event, day: date) -> Occurrence:
    return Occurrence(
        parent_series_id=event.id,
        date=day,
        resource=event.resource,
        start_time=event.start_time,
        end_time=event.end_time,
        title=event.title,
        notes=event.notes,
        cost=event.cost,
        contact=event.contact,
        is_exception=False,
        is_recurring=event.is_recurring,
    )


def _modified_occurrence(event: Event, day: date, modification: Modified) -> Occurrence:
    overrides = modification.overrides()
    return Occurrence(
        parent_series_id=event.id,
        date=day,
        resource=overrides.get("resource", event.resource),
        start_time=overrides.get("start_time", event.start_time),
        end_time=overrides.get("end_time", event.end_time),
        title=overrides.get("title", event.title),
        notes=overrides.get("notes", event.notes),
        cost=overrides.get("cost", event.cost),
        contact=overrides.get("contact", event.contact),
        is_exception=True,
        is_recurring=True,
    )
