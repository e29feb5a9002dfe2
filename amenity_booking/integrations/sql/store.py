"""
SQLAlchemy booking store.

Implements the BookingStore protocol over a request-scoped Session.
The store never commits; the session owner (get_db / get_db_context)
commits or rolls back the request as a whole. Individual exception writes
run in a SAVEPOINT so one failed date does not undo the booking.
"""

import logging
from datetime import date
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from amenity_booking.exceptions import BookingNotFoundError, StoreReadError, StoreWriteError
from amenity_booking.integrations.base import BookingStore
from amenity_booking.integrations.sql.adapter import SqlRowAdapter
from amenity_booking.models.events import Event as EventRow
from amenity_booking.models.events import RecurringPattern as PatternRow
from amenity_booking.models.facilities import Amenity, Building
from amenity_booking.models.occurrences import CancelledOccurrence, ModifiedOccurrence
from amenity_booking.services.events import DateRange, Event, Resource
from amenity_booking.services.occurrence_exceptions import ExceptionRecord, Modified
from amenity_booking.services.recurrence import RecurrencePattern

logger = logging.getLogger(__name__)


class DatabaseBookingStore(BookingStore):
    """BookingStore implementation over the local SQL database."""

    def __init__(self, session: Session, adapter: Optional[SqlRowAdapter] = None):
        """
        Initialize the store.

        Args:
            session: Request-scoped database session
            adapter: Row mapper (creates default if None)
        """
        self._session = session
        self._adapter = adapter or SqlRowAdapter()

    # =========================================================================
    # Reads
    # =========================================================================

    def list_events(
        self,
        resource: Optional[Resource],
        date_range: DateRange,
    ) -> Sequence[Event]:
        conditions = [
            EventRow.deleted_at.is_(None),
            or_(
                and_(
                    EventRow.is_recurring.is_(False),
                    EventRow.one_time_date >= date_range.start,
                    EventRow.one_time_date <= date_range.end,
                ),
                and_(
                    EventRow.is_recurring.is_(True),
                    # Series that overlap with the range
                    EventRow.recurring_start_date <= date_range.end,
                    EventRow.recurring_end_date >= date_range.start,
                ),
            ),
        ]
        if resource is not None:
            conditions.append(EventRow.building_id == resource.building_id)
            conditions.append(EventRow.amenity_id == resource.amenity_id)

        stmt = (
            select(EventRow)
            .where(and_(*conditions))
            .options(selectinload(EventRow.pattern))
            .order_by(EventRow.start_time, EventRow.created_at)
        )

        try:
            rows = self._session.scalars(stmt).all()
        except SQLAlchemyError as e:
            raise StoreReadError(f"Failed to list events: {e}", e) from e

        events = [self._adapter.event_from_row(row) for row in rows]
        logger.debug(f"Loaded {len(events)} events between {date_range.start} and {date_range.end}")
        return events

    def get_event(self, event_id: UUID) -> Optional[Event]:
        row = self._get_event_row(event_id)
        return self._adapter.event_from_row(row) if row is not None else None

    def list_exceptions(
        self,
        series_ids: Sequence[UUID],
        date_range: DateRange,
    ) -> Sequence[ExceptionRecord]:
        if not series_ids:
            return []

        cancelled_stmt = select(CancelledOccurrence).where(
            and_(
                CancelledOccurrence.event_id.in_(list(series_ids)),
                CancelledOccurrence.deleted_at.is_(None),
                CancelledOccurrence.excluded_date >= date_range.start,
                CancelledOccurrence.excluded_date <= date_range.end,
            )
        )
        modified_stmt = (
            select(ModifiedOccurrence)
            .where(
                and_(
                    ModifiedOccurrence.event_id.in_(list(series_ids)),
                    ModifiedOccurrence.deleted_at.is_(None),
                    ModifiedOccurrence.modified_date >= date_range.start,
                    ModifiedOccurrence.modified_date <= date_range.end,
                )
            )
            .order_by(ModifiedOccurrence.created_at)
        )

        try:
            cancelled = self._session.scalars(cancelled_stmt).all()
            modified = self._session.scalars(modified_stmt).all()
        except SQLAlchemyError as e:
            raise StoreReadError(f"Failed to list occurrence exceptions: {e}", e) from e

        records: list[ExceptionRecord] = [self._adapter.cancelled_from_row(r) for r in cancelled]
        records.extend(self._adapter.modified_from_row(r) for r in modified)
        return records

    def get_recurrence_pattern(self, pattern_id: UUID) -> RecurrencePattern:
        try:
            row = self._session.get(PatternRow, pattern_id)
        except SQLAlchemyError as e:
            raise StoreReadError(f"Failed to load pattern {pattern_id}: {e}", e) from e
        if row is None or row.deleted_at is not None:
            raise BookingNotFoundError(f"Recurrence pattern {pattern_id} not found")
        return self._adapter.pattern_from_row(row)

    def resource_exists(self, resource: Resource) -> bool:
        """Whether both the building and the amenity exist."""
        try:
            building = self._session.get(Building, resource.building_id)
            amenity = self._session.get(Amenity, resource.amenity_id)
        except SQLAlchemyError as e:
            raise StoreReadError(f"Failed to load resource: {e}", e) from e
        return (
            building is not None and building.deleted_at is None
            and amenity is not None and amenity.deleted_at is None
        )

    # =========================================================================
    # Writes
    # =========================================================================

    def insert_event(self, event: Event) -> UUID:
        if not self.resource_exists(event.resource):
            raise BookingNotFoundError(
                f"Building {event.resource.building_id} or amenity "
                f"{event.resource.amenity_id} not found"
            )

        row = self._adapter.apply_event(EventRow(), event)
        try:
            with self._session.begin_nested():
                if event.is_recurring:
                    row.pattern = self._resolve_pattern(event)
                self._session.add(row)
        except SQLAlchemyError as e:
            raise StoreWriteError(f"Failed to store booking '{event.title}': {e}", e) from e

        logger.debug(f"Inserted event {row.id}")
        return row.id

    def update_event(self, event: Event) -> None:
        row = self._get_event_row(event.id)
        if row is None:
            raise BookingNotFoundError(f"Booking {event.id} not found")

        try:
            with self._session.begin_nested():
                self._adapter.apply_event(row, event)
                if event.is_recurring:
                    row.pattern = self._resolve_pattern(event, current=row.pattern)
        except SQLAlchemyError as e:
            raise StoreWriteError(f"Failed to update booking {event.id}: {e}", e) from e

    def insert_cancellation(self, series_id: UUID, day: date) -> bool:
        existing = select(CancelledOccurrence).where(
            and_(
                CancelledOccurrence.event_id == series_id,
                CancelledOccurrence.excluded_date == day,
            )
        )
        try:
            row = self._session.scalars(existing).first()
            if row is not None:
                if row.deleted_at is None:
                    return False
                row.deleted_at = None
                self._session.flush()
                return True

            with self._session.begin_nested():
                self._session.add(CancelledOccurrence(event_id=series_id, excluded_date=day))
        except IntegrityError as e:
            # Written concurrently by another request
            logger.debug(f"Cancellation of {day} for series {series_id} already exists: {e}")
            return False
        except SQLAlchemyError as e:
            raise StoreWriteError(f"Failed to cancel {day} of series {series_id}: {e}", e) from e
        return True

    def upsert_modification(self, modification: Modified) -> None:
        existing = select(ModifiedOccurrence).where(
            and_(
                ModifiedOccurrence.event_id == modification.series_id,
                ModifiedOccurrence.modified_date == modification.date,
            )
        )
        try:
            with self._session.begin_nested():
                row = self._session.scalars(existing).first()
                if row is None:
                    row = ModifiedOccurrence()
                    self._session.add(row)
                row.deleted_at = None
                self._adapter.apply_modification(row, modification)
        except SQLAlchemyError as e:
            raise StoreWriteError(
                f"Failed to modify {modification.date} of series {modification.series_id}: {e}",
                e,
            ) from e

    def clear_modifications(self, series_id: UUID) -> int:
        stmt = delete(ModifiedOccurrence).where(ModifiedOccurrence.event_id == series_id)
        try:
            with self._session.begin_nested():
                result = self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreWriteError(f"Failed to clear modifications of series {series_id}: {e}", e) from e
        return result.rowcount or 0

    def clear_cancellations(self, series_id: UUID) -> int:
        stmt = delete(CancelledOccurrence).where(CancelledOccurrence.event_id == series_id)
        try:
            with self._session.begin_nested():
                result = self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreWriteError(f"Failed to clear cancellations of series {series_id}: {e}", e) from e
        return result.rowcount or 0

    def cancel_event(self, event_id: UUID) -> bool:
        row = self._get_event_row(event_id)
        if row is None:
            return False
        try:
            with self._session.begin_nested():
                row.soft_delete()
        except SQLAlchemyError as e:
            raise StoreWriteError(f"Failed to cancel booking {event_id}: {e}", e) from e
        return True

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get_event_row(self, event_id: UUID) -> Optional[EventRow]:
        stmt = (
            select(EventRow)
            .where(and_(EventRow.id == event_id, EventRow.deleted_at.is_(None)))
            .options(selectinload(EventRow.pattern))
        )
        try:
            return self._session.scalar(stmt)
        except SQLAlchemyError as e:
            raise StoreReadError(f"Failed to load booking {event_id}: {e}", e) from e

    def _resolve_pattern(self, event: Event, current: Optional[PatternRow] = None) -> PatternRow:
        """Reuse the referenced pattern if it still matches, else store a new one."""
        if event.pattern_id is not None:
            row = self._session.get(PatternRow, event.pattern_id)
            if row is None:
                raise BookingNotFoundError(f"Recurrence pattern {event.pattern_id} not found")
            if event.pattern is None or self._adapter.pattern_matches(row, event.pattern):
                return row

        if current is not None and self._adapter.pattern_matches(current, event.pattern):
            return current

        row = self._adapter.pattern_to_row(event.pattern)
        self._session.add(row)
        return row
