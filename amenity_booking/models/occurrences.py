"""
Per-occurrence exception models.

Entities:
- CancelledOccurrence: One date removed from a recurring series
- ModifiedOccurrence: One date of a recurring series with overridden fields

At most one record of each kind exists per (event, date). If both exist
for the same date, the cancellation wins.
"""

import uuid
from datetime import date, time
from decimal import Decimal
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, Text, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from amenity_booking.models.base import BaseModel

if TYPE_CHECKING:
    from amenity_booking.models.events import Event


class CancelledOccurrence(BaseModel):
    """A cancelled occurrence of a recurring booking."""

    __tablename__ = "cancelled_occurrences"

    event_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("events.id"),
        nullable=False,
        doc="Recurring booking"
    )

    excluded_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        doc="Date of the cancelled occurrence"
    )

    event: Mapped["Event"] = relationship(
        "Event",
        back_populates="cancelled_occurrences",
    )

    __table_args__ = (
        UniqueConstraint("event_id", "excluded_date", name="uq_cancelled_occurrence"),
        Index("idx_cancelled_date", "excluded_date"),
    )

    def __repr__(self) -> str:
        return f"<CancelledOccurrence(event_id={self.event_id}, date={self.excluded_date})>"


class ModifiedOccurrence(BaseModel):
    """
    A modified occurrence of a recurring booking.

    Override columns left NULL inherit the series value.
    """

    __tablename__ = "modified_occurrences"

    event_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("events.id"),
        nullable=False,
        doc="Recurring booking"
    )

    modified_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        doc="Date of the modified occurrence"
    )

    building_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("buildings.id"),
        nullable=True,
        doc="Overridden building (set together with amenity_id)"
    )

    amenity_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("amenities.id"),
        nullable=True,
        doc="Overridden amenity (set together with building_id)"
    )

    event_title: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    start_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    end_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    event: Mapped["Event"] = relationship(
        "Event",
        back_populates="modified_occurrences",
    )

    __table_args__ = (
        UniqueConstraint("event_id", "modified_date", name="uq_modified_occurrence"),
        Index("idx_modified_date", "modified_date"),
    )

    def __repr__(self) -> str:
        return f"<ModifiedOccurrence(event_id={self.event_id}, date={self.modified_date})>"
