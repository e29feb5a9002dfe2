"""
Unit tests for BaseModel and GUID TypeDecorator.

Tests:
- GUID TypeDecorator with SQLite (CHAR storage)
- BaseModel field defaults (id, created_at, updated_at, deleted_at)
- Soft deletion behavior
- JSON column handling
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from amenity_booking.models import Building, RecurringPattern


class TestGUIDTypeDecorator:
    """Test the GUID TypeDecorator for UUID handling."""

    def test_guid_generation(self, db_session: Session):
        """Test that GUID fields are automatically generated."""
        building = Building(name="Harbour Tower")
        db_session.add(building)
        db_session.commit()
        db_session.refresh(building)

        assert isinstance(building.id, uuid.UUID)

    def test_guid_uniqueness(self, db_session: Session):
        """Test that generated GUIDs are unique."""
        first = Building(name="North Tower")
        second = Building(name="South Tower")
        db_session.add_all([first, second])
        db_session.commit()

        assert first.id != second.id

    def test_guid_query_by_id(self, db_session: Session):
        """Test that rows can be queried back by UUID."""
        custom_id = uuid.uuid4()
        db_session.add(Building(id=custom_id, name="Harbour Tower"))
        db_session.commit()
        db_session.expunge_all()

        queried = db_session.query(Building).filter_by(id=custom_id).first()
        assert queried is not None
        assert queried.id == custom_id

    def test_guid_accepts_string(self, db_session: Session):
        """Test that string UUIDs are converted on bind."""
        custom_id = uuid.uuid4()
        db_session.add(Building(id=custom_id, name="Harbour Tower"))
        db_session.commit()

        queried = db_session.query(Building).filter(Building.id == str(custom_id)).first()
        assert queried is not None


class TestBaseModel:
    """Test BaseModel functionality."""

    def test_id_generated_on_flush(self, db_session: Session):
        building = Building(name="Harbour Tower")
        assert building.id is None

        db_session.add(building)
        db_session.flush()

        assert isinstance(building.id, uuid.UUID)

    def test_created_at_auto_set(self, db_session: Session):
        building = Building(name="Harbour Tower")
        db_session.add(building)
        db_session.commit()
        db_session.refresh(building)

        assert isinstance(building.created_at, datetime)
        now = datetime.now(timezone.utc)
        time_diff = (now - building.created_at.replace(tzinfo=timezone.utc)).total_seconds()
        assert time_diff < 60

    def test_soft_delete(self, db_session: Session):
        building = Building(name="Harbour Tower")
        db_session.add(building)
        db_session.commit()
        assert not building.is_deleted

        building.soft_delete()
        db_session.commit()

        assert building.is_deleted
        assert db_session.query(Building).filter_by(id=building.id).first() is not None
        active = db_session.query(Building).filter(Building.deleted_at.is_(None)).all()
        assert building not in active

    def test_to_dict(self, db_session: Session):
        building = Building(name="Harbour Tower", address="1 Harbour St")
        db_session.add(building)
        db_session.commit()

        data = building.to_dict()

        assert data["name"] == "Harbour Tower"
        assert data["address"] == "1 Harbour St"
        assert data["id"] == building.id
        assert data["deleted_at"] is None

    def test_repr(self):
        assert "Harbour Tower" in repr(Building(name="Harbour Tower"))


class TestJSONColumn:
    """Test the weekday list stored with get_json_type()."""

    def test_days_round_trip(self, db_session: Session):
        pattern = RecurringPattern(
            pattern_name="Weekly on Monday, Wednesday",
            frequency="Weekly",
            days=["Monday", "Wednesday"],
        )
        db_session.add(pattern)
        db_session.commit()
        db_session.refresh(pattern)

        assert pattern.days == ["Monday", "Wednesday"]

    def test_days_default_empty(self, db_session: Session):
        pattern = RecurringPattern(pattern_name="Daily", frequency="Daily")
        db_session.add(pattern)
        db_session.commit()
        db_session.refresh(pattern)

        assert pattern.days == []

    def test_days_mutation_with_flag_modified(self, db_session: Session):
        pattern = RecurringPattern(pattern_name="Weekly", frequency="Weekly", days=["Monday"])
        db_session.add(pattern)
        db_session.commit()

        # In-place list changes need flag_modified
        pattern.days.append("Friday")
        flag_modified(pattern, "days")
        db_session.commit()
        db_session.expire(pattern)

        assert pattern.days == ["Monday", "Friday"]
