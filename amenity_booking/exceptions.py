"""
Custom exceptions for booking operations.

Provides structured error handling with retryable flags.
"""

from datetime import date
from typing import Optional
from uuid import UUID


class BookingError(Exception):
    """Base exception for booking operations."""

    retryable: bool = False

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class BookingValidationError(BookingError):
    """
    Malformed booking candidate.

    Causes:
    - Missing building or amenity
    - End time not after start time
    - Recurring fields inconsistent with is_recurring
    - Weekly/Bi-weekly pattern without weekdays

    Raised before any store access. Never retried.
    """

    retryable = False

    def __init__(self, errors: list[str]):
        super().__init__("Invalid booking: " + "; ".join(errors))
        self.errors = errors


class BookingUsageError(BookingError):
    """
    Programmer error in how the engine was called.

    Example: requesting skip-conflicts mode for a one-time booking.
    """

    retryable = False


class BookingNotFoundError(BookingError):
    """Event (series or one-time booking) does not exist or was cancelled."""

    retryable = False


class StoreReadError(BookingError):
    """
    Reading events, exceptions or patterns from the store failed.

    The engine does not retry reads; retry policy belongs to the caller.
    """

    retryable = False


class StoreWriteError(BookingError):
    """Writing to the store failed."""

    retryable = True


class CancellationWriteError(StoreWriteError):
    """
    Some cancellation records of a skip-conflicts booking were not written.

    The series itself was created. Only the dates in ``failed_dates`` need
    to be retried; re-inserting an existing cancellation is a no-op.
    """

    retryable = True

    def __init__(
        self,
        series_id: UUID,
        failed_dates: list[date],
        written_dates: list[date],
        original_error: Optional[Exception] = None,
    ):
        failed = ", ".join(d.isoformat() for d in failed_dates)
        super().__init__(
            f"Series {series_id} created but cancellations failed for: {failed}",
            original_error,
        )
        self.series_id = series_id
        self.failed_dates = failed_dates
        self.written_dates = written_dates
