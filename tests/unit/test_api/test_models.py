"""
Unit tests for API request models.

Tests field validation and conversion to engine values.
"""

import uuid
from datetime import date, time

import pytest
from pydantic import ValidationError

from amenity_booking.api.models import (
    BookingRequest,
    ConflictCheckRequest,
    OccurrenceModificationRequest,
    PatternModel,
    RetryCancellationsRequest,
)
from amenity_booking.services.events import DateRange, Resource
from amenity_booking.services.recurrence import Frequency, Weekday


BUILDING = uuid.uuid4()
AMENITY = uuid.uuid4()


def booking(**overrides) -> dict:
    data = {
        "building_id": str(BUILDING),
        "amenity_id": str(AMENITY),
        "title": "Yoga",
        "start_time": "14:00",
        "end_time": "15:00",
        "is_recurring": True,
        "recurring_start_date": "2025-01-06",
        "recurring_end_date": "2025-03-31",
        "pattern": {"frequency": "Bi-Weekly", "weekdays": ["mon", "Wednesday"]},
    }
    data.update(overrides)
    return data


class TestPatternModel:
    def test_normalizes_names(self):
        model = PatternModel(frequency="biweekly", weekdays=["MONDAY", "fri"])

        assert model.frequency == "Bi-weekly"
        assert model.weekdays == ["Monday", "Friday"]

    def test_unknown_frequency(self):
        with pytest.raises(ValidationError):
            PatternModel(frequency="Fortnightly")

    def test_unknown_weekday(self):
        with pytest.raises(ValidationError):
            PatternModel(frequency="Weekly", weekdays=["Funday"])

    def test_ordinal_range(self):
        with pytest.raises(ValidationError):
            PatternModel(frequency="Monthly", ordinal=6)

    def test_to_pattern(self):
        pattern = PatternModel(frequency="Monthly", weekdays=["Friday"], ordinal=1).to_pattern()

        assert pattern.frequency is Frequency.MONTHLY
        assert pattern.weekdays == (Weekday.FRIDAY,)
        assert pattern.ordinal == 1


class TestBookingRequest:
    """Test BookingRequest validation and conversion."""

    def test_to_event_series(self):
        event = BookingRequest(**booking()).to_event()

        assert event.id is None
        assert event.resource == Resource(BUILDING, AMENITY)
        assert event.is_recurring
        assert event.recurring_range == DateRange(date(2025, 1, 6), date(2025, 3, 31))
        assert event.pattern.frequency is Frequency.BIWEEKLY
        assert event.pattern.weekdays == (Weekday.MONDAY, Weekday.WEDNESDAY)
        assert (event.start_time, event.end_time) == (time(14, 0), time(15, 0))

    def test_to_event_with_id(self):
        event_id = uuid.uuid4()

        assert BookingRequest(**booking()).to_event(event_id).id == event_id

    def test_to_event_contact(self):
        request = BookingRequest(**booking(contact_phone="555-0100", contact_email="a@example.com"))

        contact = request.to_event().contact
        assert (contact.phone, contact.email) == ("555-0100", "a@example.com")

    def test_title_stripped(self):
        assert BookingRequest(**booking(title="  Yoga  ")).title == "Yoga"

    def test_blank_title(self):
        with pytest.raises(ValidationError):
            BookingRequest(**booking(title="   "))

    def test_inverted_recurring_range(self):
        with pytest.raises(ValidationError, match="recurring_end_date"):
            BookingRequest(**booking(recurring_start_date="2025-03-31", recurring_end_date="2025-01-06"))

    def test_missing_building(self):
        data = booking()
        del data["building_id"]

        with pytest.raises(ValidationError):
            BookingRequest(**data)

    def test_consistency_left_to_engine(self):
        # A one-time booking with no date converts; the engine reports it
        request = BookingRequest(**booking(is_recurring=False, recurring_start_date=None, pattern=None))

        event = request.to_event()
        assert event.one_time_date is None
        assert event.recurring_range is None


class TestConflictCheckRequest:
    def test_no_window(self):
        assert ConflictCheckRequest(**booking()).window() is None

    def test_window(self):
        request = ConflictCheckRequest(**booking(window_start="2025-02-01", window_end="2025-02-28"))

        assert request.window() == DateRange(date(2025, 2, 1), date(2025, 2, 28))

    def test_open_ended_window(self):
        window = ConflictCheckRequest(**booking(window_start="2025-02-01")).window()

        assert window.start == date(2025, 2, 1)
        assert window.end == date.max


class TestOccurrenceModificationRequest:
    def test_to_modified(self):
        series_id = uuid.uuid4()
        request = OccurrenceModificationRequest(
            building_id=str(BUILDING), amenity_id=str(AMENITY), start_time="16:00", end_time="17:00"
        )

        modified = request.to_modified(series_id, date(2025, 2, 10))

        assert modified.series_id == series_id
        assert modified.date == date(2025, 2, 10)
        assert modified.resource == Resource(BUILDING, AMENITY)
        assert modified.title is None
        assert modified.contact is None
        assert (modified.start_time, modified.end_time) == (time(16, 0), time(17, 0))

    def test_resource_pair_required(self):
        with pytest.raises(ValidationError):
            OccurrenceModificationRequest(amenity_id=str(AMENITY))

    def test_empty_modification(self):
        modified = OccurrenceModificationRequest().to_modified(uuid.uuid4(), date(2025, 2, 10))

        assert modified.overrides() == {}


class TestRetryCancellationsRequest:
    def test_requires_dates(self):
        with pytest.raises(ValidationError):
            RetryCancellationsRequest(dates=[])

    def test_parses_dates(self):
        assert RetryCancellationsRequest(dates=["2025-02-17"]).dates == [date(2025, 2, 17)]
