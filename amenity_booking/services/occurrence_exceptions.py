"""
Per-occurrence exceptions of recurring series.

An exception is either a cancellation or a modification of one dated
occurrence, keyed by (series_id, date). When both exist for the same key
the cancellation wins and the occurrence does not render.

ExceptionStore is a request-scoped index over the records fetched for one
window. Build a new one per request; exception data changes between
requests.
"""

import logging
from dataclasses import dataclass, fields
from datetime import date, time
from decimal import Decimal
from typing import Iterable, Optional, Union
from uuid import UUID

from amenity_booking.services.events import ContactInfo, Resource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cancelled:
    """The occurrence on ``date`` is removed from the series."""

    series_id: UUID
    date: date


@dataclass(frozen=True)
class Modified:
    """
    The occurrence on ``date`` keeps its slot with overridden fields.

    Fields left as None are inherited from the series.
    """

    series_id: UUID
    date: date
    title: Optional[str] = None
    resource: Optional[Resource] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    notes: Optional[str] = None
    cost: Optional[Decimal] = None
    contact: Optional[ContactInfo] = None

    def overrides(self) -> dict:
        """Overridden fields only."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in ("series_id", "date") and getattr(self, f.name) is not None
        }


ExceptionRecord = Union[Cancelled, Modified]


class ExceptionStore:
    """
    Index of exception records by (series_id, date).

    Performs no business logic beyond indexing and the cancellation
    precedence rule.
    """

    def __init__(self, records: Iterable[ExceptionRecord] = ()):
        self._cancelled: dict[UUID, set[date]] = {}
        self._modified: dict[tuple[UUID, date], Modified] = {}
        for record in records:
            self.add(record)

    def add(self, record: ExceptionRecord) -> None:
        if isinstance(record, Cancelled):
            self._cancelled.setdefault(record.series_id, set()).add(record.date)
        elif isinstance(record, Modified):
            key = (record.series_id, record.date)
            if key in self._modified:
                logger.warning(
                    f"Duplicate modification for series {record.series_id} on {record.date}, "
                    f"keeping the latest"
                )
            self._modified[key] = record
        else:
            raise TypeError(f"Not an exception record: {record!r}")

    def cancelled_dates(self, series_id: UUID) -> frozenset[date]:
        return frozenset(self._cancelled.get(series_id, ()))

    def modification(self, series_id: UUID, day: date) -> Optional[Modified]:
        return self._modified.get((series_id, day))

    def exception_for(self, series_id: UUID, day: date) -> Optional[ExceptionRecord]:
        """
        Effective exception for one occurrence.

        Returns:
            Cancelled if the date is cancelled (even if also modified),
            else the Modified record, else None
        """
        if day in self._cancelled.get(series_id, ()):
            return Cancelled(series_id, day)
        return self._modified.get((series_id, day))

    def relocated_resources(self, series_id: UUID) -> set[Resource]:
        """Resources occurrences of a series were moved to by modifications."""
        return {
            mod.resource
            for (sid, _), mod in self._modified.items()
            if sid == series_id and mod.resource is not None
        }

    def __len__(self) -> int:
        return sum(len(d) for d in self._cancelled.values()) + len(self._modified)
