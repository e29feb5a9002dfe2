"""
Unit tests for per-occurrence exceptions.

Tests:
- Indexing cancellations and modifications by (series, date)
- Cancellation precedence over modification
- Relocated resources lookup
"""

import uuid
from datetime import date, time

import pytest

from amenity_booking.services.events import Resource
from amenity_booking.services.occurrence_exceptions import (
    Cancelled,
    ExceptionStore,
    Modified,
)


SERIES = uuid.uuid4()
DAY = date(2025, 2, 10)


class TestModified:
    """Test Modified override helpers."""

    def test_overrides_only_set_fields(self):
        mod = Modified(SERIES, DAY, title="Moved yoga", start_time=time(16, 0))

        assert mod.overrides() == {"title": "Moved yoga", "start_time": time(16, 0)}


class TestExceptionStore:
    """Test ExceptionStore indexing."""

    def test_empty(self):
        store = ExceptionStore()

        assert len(store) == 0
        assert store.cancelled_dates(SERIES) == frozenset()
        assert store.exception_for(SERIES, DAY) is None

    def test_cancelled_dates(self):
        store = ExceptionStore([Cancelled(SERIES, DAY), Cancelled(SERIES, date(2025, 2, 17))])

        assert store.cancelled_dates(SERIES) == {DAY, date(2025, 2, 17)}
        assert store.cancelled_dates(uuid.uuid4()) == frozenset()

    def test_duplicate_cancellation_counted_once(self):
        store = ExceptionStore([Cancelled(SERIES, DAY), Cancelled(SERIES, DAY)])

        assert len(store) == 1

    def test_modification_lookup(self):
        mod = Modified(SERIES, DAY, title="Moved yoga")
        store = ExceptionStore([mod])

        assert store.modification(SERIES, DAY) == mod
        assert store.exception_for(SERIES, DAY) == mod
        assert store.modification(SERIES, date(2025, 2, 17)) is None

    def test_cancellation_wins_over_modification(self):
        store = ExceptionStore([Modified(SERIES, DAY, title="Moved yoga"), Cancelled(SERIES, DAY)])

        assert store.exception_for(SERIES, DAY) == Cancelled(SERIES, DAY)

    def test_latest_duplicate_modification_kept(self):
        store = ExceptionStore(
            [Modified(SERIES, DAY, title="First"), Modified(SERIES, DAY, title="Second")]
        )

        assert store.modification(SERIES, DAY).title == "Second"
        assert len(store) == 1

    def test_exceptions_scoped_to_series(self):
        other = uuid.uuid4()
        store = ExceptionStore([Cancelled(other, DAY)])

        assert store.exception_for(SERIES, DAY) is None
        assert store.exception_for(other, DAY) is not None

    def test_relocated_resources(self):
        gym = Resource(uuid.uuid4(), uuid.uuid4())
        store = ExceptionStore(
            [
                Modified(SERIES, DAY, resource=gym),
                Modified(SERIES, date(2025, 2, 17), title="Same room"),
            ]
        )

        assert store.relocated_resources(SERIES) == {gym}
        assert store.relocated_resources(uuid.uuid4()) == set()

    def test_rejects_unknown_record(self):
        with pytest.raises(TypeError):
            ExceptionStore().add(("not", "a record"))
