"""
Unit tests for conflict detection.

Tests:
- Half-open interval overlap
- One-time and recurring candidates against stored bookings
- Exception handling (cancelled dates free the slot, relocated occurrences)
- Self-exclusion when editing
"""

import uuid
from datetime import date, time

import pytest

from amenity_booking.services.conflicts import (
    ConflictCandidate,
    ConflictReport,
    candidate_dates,
    candidate_from_event,
    find_conflicts,
    intervals_overlap,
)
from amenity_booking.services.events import Resource
from amenity_booking.services.occurrence_exceptions import (
    Cancelled,
    ExceptionStore,
    Modified,
)
from factories import monday_series, one_time


class TestIntervalsOverlap:
    """Test the half-open overlap rule."""

    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ((time(14, 0), time(15, 0)), (time(14, 30), time(16, 0)), True),
            ((time(14, 0), time(15, 0)), (time(15, 0), time(16, 0)), False),
            ((time(14, 0), time(15, 0)), (time(13, 0), time(14, 0)), False),
            ((time(14, 0), time(18, 0)), (time(15, 0), time(16, 0)), True),
            ((time(9, 0), time(10, 0)), (time(11, 0), time(12, 0)), False),
        ],
    )
    def test_overlap(self, a, b, expected):
        assert intervals_overlap(*a, *b) is expected

    def test_symmetric(self):
        assert intervals_overlap(time(14, 0), time(15, 0), time(14, 59), time(16, 0))
        assert intervals_overlap(time(14, 59), time(16, 0), time(14, 0), time(15, 0))


class TestCandidateDates:
    def test_one_time(self, room):
        assert candidate_dates(one_time(room, date(2025, 2, 10))) == [date(2025, 2, 10)]

    def test_series_covers_whole_range(self, room):
        dates = candidate_dates(monday_series(room))

        assert dates[0] == date(2025, 1, 6)
        assert dates[-1] == date(2025, 3, 31)
        assert len(dates) == 13

    def test_candidate_requires_resource(self):
        with pytest.raises(ValueError):
            candidate_from_event(one_time(None, date(2025, 2, 10)))


class TestFindConflicts:
    """Test find_conflicts against stored bookings."""

    def test_one_time_overlapping_series(self, room):
        series = monday_series(room, event_id=uuid.uuid4())
        candidate = candidate_from_event(one_time(room, date(2025, 2, 10)))

        report = find_conflicts(candidate, [series])

        assert report.dates == [date(2025, 2, 10)]
        [entry] = report.entries
        [hit] = entry.conflicting_occurrences
        assert hit.source_event_id == series.id
        assert hit.title == "Yoga"
        assert (hit.start_time, hit.end_time) == (time(14, 0), time(15, 0))

    def test_touching_endpoints_do_not_conflict(self, room):
        series = monday_series(room, event_id=uuid.uuid4())
        candidate = candidate_from_event(
            one_time(room, date(2025, 2, 10), start=time(15, 0), end=time(16, 0))
        )

        assert not find_conflicts(candidate, [series]).has_conflicts

    def test_non_recurring_day_has_no_conflict(self, room):
        series = monday_series(room, event_id=uuid.uuid4())
        candidate = candidate_from_event(one_time(room, date(2025, 2, 11)))

        assert find_conflicts(candidate, [series]) == ConflictReport()

    def test_other_amenity_does_not_conflict(self, room):
        series = monday_series(room, event_id=uuid.uuid4())
        gym = Resource(room.building_id, uuid.uuid4())
        candidate = candidate_from_event(one_time(gym, date(2025, 2, 10)))

        assert not find_conflicts(candidate, [series]).has_conflicts

    def test_same_amenity_other_building_does_not_conflict(self, room):
        series = monday_series(room, event_id=uuid.uuid4())
        elsewhere = Resource(uuid.uuid4(), room.amenity_id)
        candidate = candidate_from_event(one_time(elsewhere, date(2025, 2, 10)))

        assert not find_conflicts(candidate, [series]).has_conflicts

    def test_cancelled_occurrence_frees_slot(self, room):
        series = monday_series(room, event_id=uuid.uuid4())
        candidate = candidate_from_event(one_time(room, date(2025, 2, 10)))

        before = find_conflicts(candidate, [series], exceptions=ExceptionStore())
        after = find_conflicts(
            candidate, [series], exceptions=ExceptionStore([Cancelled(series.id, date(2025, 2, 10))])
        )

        assert before.has_conflicts
        assert not after.has_conflicts

    def test_modified_time_is_used(self, room):
        series = monday_series(room, event_id=uuid.uuid4())
        exceptions = ExceptionStore(
            [Modified(series.id, date(2025, 2, 10), start_time=time(18, 0), end_time=time(19, 0))]
        )
        candidate = candidate_from_event(one_time(room, date(2025, 2, 10)))

        assert not find_conflicts(candidate, [series], exceptions=exceptions).has_conflicts

    def test_relocated_occurrence_conflicts_on_new_resource(self, room):
        gym = Resource(room.building_id, uuid.uuid4())
        series = monday_series(room, event_id=uuid.uuid4())
        exceptions = ExceptionStore([Modified(series.id, date(2025, 2, 10), resource=gym)])
        candidate = candidate_from_event(one_time(gym, date(2025, 2, 10)))

        report = find_conflicts(candidate, [series], exceptions=exceptions)

        assert report.dates == [date(2025, 2, 10)]

    def test_recurring_candidate_against_one_time(self, room):
        existing = one_time(room, date(2025, 2, 10), event_id=uuid.uuid4())
        candidate = candidate_from_event(monday_series(room))

        report = find_conflicts(candidate, [existing])

        assert report.dates == [date(2025, 2, 10)]

    def test_recurring_candidate_against_series(self, room):
        existing = monday_series(room, event_id=uuid.uuid4())
        candidate = candidate_from_event(
            monday_series(room, title="Pilates", start=time(14, 30), end=time(15, 30))
        )

        report = find_conflicts(candidate, [existing])

        assert len(report) == 13
        assert report.dates == sorted(report.dates)

    def test_symmetry(self, room):
        a = one_time(room, date(2025, 2, 10), title="A", start=time(10, 0), end=time(12, 0), event_id=uuid.uuid4())
        b = one_time(room, date(2025, 2, 10), title="B", start=time(11, 0), end=time(13, 0), event_id=uuid.uuid4())

        assert find_conflicts(candidate_from_event(a), [b]).has_conflicts
        assert find_conflicts(candidate_from_event(b), [a]).has_conflicts

    def test_editing_event_excludes_itself(self, room):
        series = monday_series(room, event_id=uuid.uuid4())
        candidate = candidate_from_event(series)

        assert candidate.exclude_event_id == series.id
        assert not find_conflicts(candidate, [series]).has_conflicts

    def test_multiple_conflicts_on_one_date(self, room):
        first = one_time(room, date(2025, 2, 10), title="First", start=time(9, 0), end=time(11, 0))
        second = one_time(room, date(2025, 2, 10), title="Second", start=time(11, 0), end=time(13, 0))
        candidate = candidate_from_event(
            one_time(room, date(2025, 2, 10), start=time(10, 0), end=time(12, 0))
        )

        [entry] = find_conflicts(candidate, [first, second]).entries

        assert [c.title for c in entry.conflicting_occurrences] == ["First", "Second"]

    def test_empty_candidate(self, room):
        candidate = ConflictCandidate(room, time(9, 0), time(10, 0), dates=())

        assert find_conflicts(candidate, [monday_series(room)]) == ConflictReport()

    def test_messages(self, room):
        series = monday_series(room, event_id=uuid.uuid4())
        candidate = candidate_from_event(one_time(room, date(2025, 2, 10)))

        messages = find_conflicts(candidate, [series]).messages()

        assert messages == ['2025-02-10: conflicts with "Yoga" (14:00 - 15:00)']
