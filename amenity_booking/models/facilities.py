"""
Building and Amenity models.

Entities:
- Building: A site whose amenities can be booked
- Amenity: A bookable facility type (gym, party room, guest suite...)

A booking's resource is the (building, amenity) pair. Conflicts only exist
between bookings of the same amenity in the same building.
"""

from typing import Optional

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from amenity_booking.models.base import BaseModel


class Building(BaseModel):
    """A building that hosts bookable amenities."""

    __tablename__ = "buildings"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        doc="Building name"
    )

    address: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Street address"
    )

    active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        doc="Whether new bookings can be made in this building"
    )

    __table_args__ = (
        Index("idx_building_name", "name"),
        Index("idx_building_deleted", "deleted_at"),
    )

    def __repr__(self) -> str:
        return f"<Building(name='{self.name}')>"


class Amenity(BaseModel):
    """A bookable amenity type."""

    __tablename__ = "amenities"

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Amenity name (e.g., 'Party Room', 'Gym')"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Detailed description of the amenity"
    )

    __table_args__ = (
        Index("idx_amenity_name", "name"),
        Index("idx_amenity_deleted", "deleted_at"),
    )

    def __repr__(self) -> str:
        return f"<Amenity(name='{self.name}')>"
