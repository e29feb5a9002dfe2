"""
RecurringPattern and Event models.

Entities:
- RecurringPattern: Named frequency + weekday set shared by recurring bookings
- Event: A one-time booking or a recurring series of an amenity
"""

import uuid
from datetime import date, time
from decimal import Decimal
from typing import Optional, TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from amenity_booking.models.base import BaseModel, get_json_type

# Avoid circular imports for type hints
if TYPE_CHECKING:
    from amenity_booking.models.facilities import Amenity, Building
    from amenity_booking.models.occurrences import CancelledOccurrence, ModifiedOccurrence


class RecurringPattern(BaseModel):
    """
    A recurrence rule, by frequency and weekdays.

    ``frequency`` holds the display name ("Daily", "Weekly", "Bi-weekly",
    "Monthly", "Quarterly"); ``days`` holds weekday names.
    """

    __tablename__ = "recurring_patterns"

    pattern_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Human readable name (e.g., 'Weekly on Monday')"
    )

    frequency: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="Frequency: 'Daily', 'Weekly', 'Bi-weekly', 'Monthly', 'Quarterly'"
    )

    days: Mapped[list] = mapped_column(
        get_json_type(),
        nullable=False,
        default=list,
        doc="Weekday names the pattern applies to (e.g., ['Monday', 'Wednesday'])"
    )

    ordinal: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        doc="Explicit week of month for Monthly/Quarterly (1-5); derived from the start date when NULL"
    )

    events: Mapped[list["Event"]] = relationship(
        "Event",
        back_populates="pattern",
        doc="Bookings using this pattern"
    )

    __table_args__ = (
        Index("idx_pattern_frequency", "frequency"),
    )

    def __repr__(self) -> str:
        return f"<RecurringPattern(frequency='{self.frequency}', days={self.days})>"


class Event(BaseModel):
    """
    A booking of one amenity in one building.

    One-time bookings set ``one_time_date``. Recurring bookings set
    ``recurring_start_date``/``recurring_end_date`` and a pattern; their
    individual occurrences are never stored, only their exceptions.

    Cancelling the whole booking soft deletes the row (``deleted_at``).
    """

    __tablename__ = "events"

    # Resource
    building_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("buildings.id"),
        nullable=False,
        doc="Building the amenity is in"
    )

    amenity_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("amenities.id"),
        nullable=False,
        doc="Booked amenity"
    )

    event_title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        doc="Booking title"
    )

    # Timing (time of day, shared by every occurrence)
    start_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
        doc="Start time of day (reference timezone)"
    )

    end_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
        doc="End time of day (reference timezone), exclusive"
    )

    # One-time bookings
    one_time_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        doc="Date of a one-time booking"
    )

    # Recurring bookings
    is_recurring: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        doc="Whether this booking is a recurring series"
    )

    recurring_start_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        doc="First date of the series (inclusive)"
    )

    recurring_end_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        doc="Last date of the series (inclusive)"
    )

    recurring_pattern_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("recurring_patterns.id"),
        nullable=True,
        doc="Recurrence pattern of the series"
    )

    # Details
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Free-form notes"
    )

    cost: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        doc="Booking fee"
    )

    contact_phone: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        doc="Contact phone number"
    )

    contact_email: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
        doc="Contact email address"
    )

    # Relationships
    building: Mapped["Building"] = relationship(
        "Building",
        doc="Building the amenity is in"
    )

    amenity: Mapped["Amenity"] = relationship(
        "Amenity",
        doc="Booked amenity"
    )

    pattern: Mapped[Optional["RecurringPattern"]] = relationship(
        "RecurringPattern",
        back_populates="events",
        doc="Recurrence pattern of the series"
    )

    cancelled_occurrences: Mapped[list["CancelledOccurrence"]] = relationship(
        "CancelledOccurrence",
        back_populates="event",
        cascade="all, delete-orphan",
        doc="Dates removed from the series"
    )

    modified_occurrences: Mapped[list["ModifiedOccurrence"]] = relationship(
        "ModifiedOccurrence",
        back_populates="event",
        cascade="all, delete-orphan",
        doc="Per-date overrides of the series"
    )

    # Indexes for common queries
    __table_args__ = (
        Index("idx_event_resource", "building_id", "amenity_id"),
        Index("idx_event_one_time_date", "one_time_date"),
        Index("idx_event_recurring_range", "recurring_start_date", "recurring_end_date"),
        Index("idx_event_pattern", "recurring_pattern_id"),
        Index("idx_event_deleted", "deleted_at"),
        CheckConstraint("end_time > start_time", name="ck_event_time_order"),
    )

    def __repr__(self) -> str:
        when = self.one_time_date if not self.is_recurring else f"{self.recurring_start_date}..{self.recurring_end_date}"
        return f"<Event(title='{self.event_title}', when='{when}', start='{self.start_time}')>"
