"""
Bidirectional mapping between database rows and booking values.

Handles:
- Pattern rows with legacy frequency spellings and unknown names
- One-time vs recurring event columns
- Modification override columns (NULL means inherited)
- Contact and resource column pairs
"""

import logging
from typing import Optional

from amenity_booking.models.events import Event as EventRow
from amenity_booking.models.events import RecurringPattern as PatternRow
from amenity_booking.models.occurrences import CancelledOccurrence, ModifiedOccurrence
from amenity_booking.services.events import ContactInfo, DateRange, Event, Resource
from amenity_booking.services.occurrence_exceptions import Cancelled, Modified
from amenity_booking.services.recurrence import Frequency, RecurrencePattern, Weekday

logger = logging.getLogger(__name__)


class SqlRowAdapter:
    """Maps between ORM rows and the in-memory booking values."""

    @staticmethod
    def pattern_from_row(row: PatternRow) -> RecurrencePattern:
        """
        Convert a stored pattern.

        Stored data predates validation, so an unknown frequency falls back
        to Weekly and unknown weekday names are dropped, with a warning.
        """
        try:
            frequency = Frequency.parse(row.frequency)
        except ValueError:
            logger.warning(
                f"Pattern {row.id} has unknown frequency {row.frequency!r}, treating as Weekly"
            )
            frequency = Frequency.WEEKLY

        weekdays: list[Weekday] = []
        for name in row.days or []:
            try:
                weekday = Weekday.parse(name)
            except ValueError:
                logger.warning(f"Pattern {row.id} has unknown weekday {name!r}, ignoring it")
                continue
            if weekday not in weekdays:
                weekdays.append(weekday)

        return RecurrencePattern(frequency, tuple(weekdays), row.ordinal)

    @staticmethod
    def pattern_to_row(pattern: RecurrencePattern) -> PatternRow:
        return PatternRow(
            pattern_name=pattern.describe(),
            frequency=pattern.frequency.value,
            days=[d.value for d in pattern.weekdays],
            ordinal=pattern.ordinal,
        )

    @staticmethod
    def pattern_matches(row: PatternRow, pattern: RecurrencePattern) -> bool:
        return SqlRowAdapter.pattern_from_row(row) == pattern

    @classmethod
    def event_from_row(cls, row: EventRow) -> Event:
        """
        Convert a stored booking.

        Recurring rows with a missing date or pattern are returned as is;
        expansion skips them with a warning.
        """
        recurring_range: Optional[DateRange] = None
        pattern: Optional[RecurrencePattern] = None

        if row.is_recurring:
            if row.recurring_start_date is not None and row.recurring_end_date is not None:
                if row.recurring_end_date >= row.recurring_start_date:
                    recurring_range = DateRange(row.recurring_start_date, row.recurring_end_date)
                else:
                    logger.warning(f"Event {row.id} ends before it starts, ignoring its range")
            if row.pattern is not None:
                pattern = cls.pattern_from_row(row.pattern)

        return Event(
            id=row.id,
            resource=Resource(row.building_id, row.amenity_id),
            title=row.event_title,
            start_time=row.start_time,
            end_time=row.end_time,
            is_recurring=row.is_recurring,
            one_time_date=None if row.is_recurring else row.one_time_date,
            recurring_range=recurring_range,
            pattern=pattern,
            pattern_id=row.recurring_pattern_id,
            notes=row.notes,
            cost=row.cost,
            contact=ContactInfo(phone=row.contact_phone, email=row.contact_email),
        )

    @staticmethod
    def apply_event(row: EventRow, event: Event) -> EventRow:
        """Copy an event's fields onto a row (pattern handled by the caller)."""
        row.building_id = event.resource.building_id
        row.amenity_id = event.resource.amenity_id
        row.event_title = event.title
        row.start_time = event.start_time
        row.end_time = event.end_time
        row.is_recurring = event.is_recurring
        row.notes = event.notes
        row.cost = event.cost
        row.contact_phone = event.contact.phone
        row.contact_email = event.contact.email

        if event.is_recurring:
            row.one_time_date = None
            row.recurring_start_date = event.recurring_range.start
            row.recurring_end_date = event.recurring_range.end
        else:
            row.one_time_date = event.one_time_date
            row.recurring_start_date = None
            row.recurring_end_date = None
            row.pattern = None
        return row

    @staticmethod
    def cancelled_from_row(row: CancelledOccurrence) -> Cancelled:
        return Cancelled(series_id=row.event_id, date=row.excluded_date)

    @staticmethod
    def modified_from_row(row: ModifiedOccurrence) -> Modified:
        resource = None
        if row.building_id is not None and row.amenity_id is not None:
            resource = Resource(row.building_id, row.amenity_id)

        contact = None
        if row.contact_phone is not None or row.contact_email is not None:
            contact = ContactInfo(phone=row.contact_phone, email=row.contact_email)

        return Modified(
            series_id=row.event_id,
            date=row.modified_date,
            title=row.event_title,
            resource=resource,
            start_time=row.start_time,
            end_time=row.end_time,
            notes=row.notes,
            cost=row.cost,
            contact=contact,
        )

    @staticmethod
    def apply_modification(row: ModifiedOccurrence, modification: Modified) -> ModifiedOccurrence:
        row.event_id = modification.series_id
        row.modified_date = modification.date
        row.building_id = modification.resource.building_id if modification.resource else None
        row.amenity_id = modification.resource.amenity_id if modification.resource else None
        row.event_title = modification.title
        row.start_time = modification.start_time
        row.end_time = modification.end_time
        row.notes = modification.notes
        row.cost = modification.cost
        row.contact_phone = modification.contact.phone if modification.contact else None
        row.contact_email = modification.contact.email if modification.contact else None
        return row
