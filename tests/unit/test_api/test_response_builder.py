"""
Unit tests for response builder utilities.
"""

import uuid
from datetime import date, time

from amenity_booking.api.response_builder import (
    build_booking_detail,
    build_booking_response,
    build_conflict_report,
    build_error_response,
    occurrence_to_result,
)
from amenity_booking.services.booking import BookingResult, CreatedBooking
from amenity_booking.services.conflicts import (
    ConflictEntry,
    ConflictingOccurrence,
    ConflictReport,
)
from amenity_booking.services.expansion import expand_event
from amenity_booking.services.events import DateRange
from factories import monday_series, one_time


YOGA_ID = uuid.uuid4()

REPORT = ConflictReport(
    (
        ConflictEntry(
            date(2025, 2, 10),
            (ConflictingOccurrence(YOGA_ID, "Yoga", time(14, 0), time(15, 0)),),
        ),
    )
)


class TestOccurrenceResult:
    def test_occurrence_to_result(self, room):
        series = monday_series(room, event_id=YOGA_ID)
        [occurrence] = expand_event(series, DateRange(date(2025, 2, 10), date(2025, 2, 10)))

        result = occurrence_to_result(occurrence)

        assert result.occurrence_id == f"{YOGA_ID}-2025-02-10"
        assert result.event_id == str(YOGA_ID)
        assert result.building_id == str(room.building_id)
        assert result.is_recurring is True
        assert result.is_exception is False


class TestConflictReport:
    def test_build_conflict_report(self):
        response = build_conflict_report(REPORT)

        assert response.has_conflicts
        [entry] = response.conflicts
        assert entry.conflict_date == date(2025, 2, 10)
        assert entry.conflicting_occurrences[0].event_id == str(YOGA_ID)
        assert entry.message == '2025-02-10: conflicts with "Yoga" (14:00 - 15:00)'

    def test_empty_report(self):
        response = build_conflict_report(ConflictReport())

        assert response.has_conflicts is False
        assert response.conflicts == []


class TestBuildBookingResponse:
    """Test build_booking_response for each outcome."""

    def test_rejected(self):
        response = build_booking_response(BookingResult(conflicts=REPORT))

        assert response.status == "rejected"
        assert response.event_id is None
        assert len(response.conflicts) == 1
        assert "not created" in response.explanation

    def test_created(self):
        event_id = uuid.uuid4()
        created = CreatedBooking(event_id, False, (date(2025, 2, 11),))

        response = build_booking_response(BookingResult(created=created))

        assert response.status == "created"
        assert response.event_id == str(event_id)
        assert response.created_dates == [date(2025, 2, 11)]
        assert response.explanation == "Booking created with 1 occurrence(s)"

    def test_created_with_skipped_dates(self):
        created = CreatedBooking(
            uuid.uuid4(), True, (date(2025, 2, 3), date(2025, 2, 17)), (date(2025, 2, 10),)
        )

        response = build_booking_response(BookingResult(created=created, conflicts=REPORT))

        assert response.skipped_dates == [date(2025, 2, 10)]
        assert "1 conflicting date(s) skipped" in response.explanation
        assert len(response.conflicts) == 1


class TestBuildBookingDetail:
    def test_series(self, room):
        detail = build_booking_detail(monday_series(room, event_id=YOGA_ID))

        assert detail.id == str(YOGA_ID)
        assert detail.frequency == "Weekly"
        assert detail.weekdays == ["Monday"]
        assert detail.recurring_end_date == date(2025, 3, 31)
        assert detail.one_time_date is None

    def test_one_time(self, room):
        detail = build_booking_detail(one_time(room, date(2025, 2, 11), event_id=uuid.uuid4()))

        assert detail.frequency is None
        assert detail.weekdays == []
        assert detail.one_time_date == date(2025, 2, 11)


class TestBuildErrorResponse:
    def test_defaults(self):
        assert build_error_response("not_found", "Booking missing") == {
            "error_type": "not_found",
            "message": "Booking missing",
            "details": None,
            "retryable": False,
        }

    def test_with_details(self):
        response = build_error_response(
            "partial_failure", "Some dates failed", {"failed_dates": ["2025-02-17"]}, retryable=True
        )

        assert response["details"] == {"failed_dates": ["2025-02-17"]}
        assert response["retryable"] is True
