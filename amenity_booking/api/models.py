"""
Pydantic request and response models for the Amenity Booking API.
"""

from datetime import date, time
from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from amenity_booking.services.events import ContactInfo, DateRange, Event, Resource
from amenity_booking.services.occurrence_exceptions import Modified
from amenity_booking.services.recurrence import Frequency, RecurrencePattern, Weekday


# =============================================================================
# Request Models
# =============================================================================


class PatternModel(BaseModel):
    """Recurrence pattern of a series."""

    frequency: str = Field(
        ...,
        description="Daily, Weekly, Bi-weekly, Monthly or Quarterly",
        examples=["Weekly"],
    )
    weekdays: list[str] = Field(
        default_factory=list,
        description="Weekday names (e.g., ['Monday', 'Wednesday'])",
    )
    ordinal: Optional[int] = Field(
        None,
        ge=1,
        le=5,
        description="Explicit week of month for Monthly/Quarterly (derived from the start date if omitted)",
    )

    @field_validator("frequency")
    @classmethod
    def validate_frequency(cls, v: str) -> str:
        return Frequency.parse(v).value

    @field_validator("weekdays")
    @classmethod
    def validate_weekdays(cls, v: list[str]) -> list[str]:
        return [Weekday.parse(day).value for day in v]

    def to_pattern(self) -> RecurrencePattern:
        return RecurrencePattern.build(self.frequency, self.weekdays, self.ordinal)


class BookingRequest(BaseModel):
    """A one-time booking or a recurring series."""

    building_id: UUID = Field(..., description="Building the amenity is in")
    amenity_id: UUID = Field(..., description="Amenity to book")
    title: str = Field(..., min_length=1, max_length=200, description="Booking title")
    start_time: time = Field(..., description="Start time of day (HH:MM)")
    end_time: time = Field(..., description="End time of day (HH:MM), exclusive")

    is_recurring: bool = Field(default=False, description="Whether this is a recurring series")
    one_time_date: Optional[date] = Field(None, description="Date of a one-time booking")
    recurring_start_date: Optional[date] = Field(None, description="First date of the series")
    recurring_end_date: Optional[date] = Field(None, description="Last date of the series (inclusive)")
    pattern: Optional[PatternModel] = Field(None, description="Recurrence pattern of the series")
    pattern_id: Optional[UUID] = Field(None, description="Stored pattern to reuse")

    notes: Optional[str] = Field(None, max_length=2000)
    cost: Optional[Decimal] = Field(None, description="Booking fee")
    contact_phone: Optional[str] = Field(None, max_length=50)
    contact_email: Optional[str] = Field(None, max_length=200)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "building_id": "8f7d3c1e-0a5b-4c6d-9e2f-1a2b3c4d5e6f",
                "amenity_id": "2c1b0a9f-8e7d-4c6b-5a49-382716051234",
                "title": "Yoga class",
                "start_time": "14:00",
                "end_time": "15:00",
                "is_recurring": True,
                "recurring_start_date": "2025-01-06",
                "recurring_end_date": "2025-03-31",
                "pattern": {"frequency": "Weekly", "weekdays": ["Monday"]},
            }
        }
    )

    @field_validator("title")
    @classmethod
    def validate_title_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_recurring_range(self) -> "BookingRequest":
        if (
            self.recurring_start_date is not None
            and self.recurring_end_date is not None
            and self.recurring_end_date < self.recurring_start_date
        ):
            raise ValueError("recurring_end_date must not be before recurring_start_date")
        return self

    def to_event(self, event_id: Optional[UUID] = None) -> Event:
        """
        Convert to an engine value.

        Field consistency (recurring vs one-time) is checked by the engine.
        """
        recurring_range = None
        if self.recurring_start_date is not None and self.recurring_end_date is not None:
            recurring_range = DateRange(self.recurring_start_date, self.recurring_end_date)

        return Event(
            id=event_id,
            resource=Resource(self.building_id, self.amenity_id),
            title=self.title,
            start_time=self.start_time,
            end_time=self.end_time,
            is_recurring=self.is_recurring,
            one_time_date=self.one_time_date,
            recurring_range=recurring_range,
            pattern=self.pattern.to_pattern() if self.pattern is not None else None,
            pattern_id=self.pattern_id,
            notes=self.notes,
            cost=self.cost,
            contact=ContactInfo(phone=self.contact_phone, email=self.contact_email),
        )


class ConflictCheckRequest(BookingRequest):
    """Booking to check, optionally restricted to a window."""

    event_id: Optional[UUID] = Field(
        None,
        description="Stored booking being edited (excluded from its own check)",
    )
    window_start: Optional[date] = Field(None, description="Only check dates on or after")
    window_end: Optional[date] = Field(None, description="Only check dates on or before")

    def window(self) -> Optional[DateRange]:
        if self.window_start is None and self.window_end is None:
            return None
        return DateRange(self.window_start or date.min, self.window_end or date.max)


class OccurrenceModificationRequest(BaseModel):
    """Fields to override on one occurrence. Omitted fields are inherited."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    building_id: Optional[UUID] = None
    amenity_id: Optional[UUID] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    notes: Optional[str] = Field(None, max_length=2000)
    cost: Optional[Decimal] = None
    contact_phone: Optional[str] = Field(None, max_length=50)
    contact_email: Optional[str] = Field(None, max_length=200)

    @model_validator(mode="after")
    def validate_resource_pair(self) -> "OccurrenceModificationRequest":
        if (self.building_id is None) != (self.amenity_id is None):
            raise ValueError("building_id and amenity_id must be given together")
        return self

    def to_modified(self, series_id: UUID, day: date) -> Modified:
        resource = None
        if self.building_id is not None:
            resource = Resource(self.building_id, self.amenity_id)
        contact = None
        if self.contact_phone is not None or self.contact_email is not None:
            contact = ContactInfo(phone=self.contact_phone, email=self.contact_email)
        return Modified(
            series_id=series_id,
            date=day,
            title=self.title,
            resource=resource,
            start_time=self.start_time,
            end_time=self.end_time,
            notes=self.notes,
            cost=self.cost,
            contact=contact,
        )


class RetryCancellationsRequest(BaseModel):
    """Dates reported as failed by a partial skip_conflicts create."""

    dates: list[date] = Field(..., min_length=1, description="Dates to cancel")


# =============================================================================
# Response Models
# =============================================================================


class OccurrenceResult(BaseModel):
    """One dated occurrence of a booking."""

    occurrence_id: str = Field(..., description="'<event id>-<YYYY-MM-DD>'")
    event_id: Optional[str] = Field(None, description="Booking this occurrence belongs to")
    occurrence_date: date
    building_id: str
    amenity_id: str
    start_time: time
    end_time: time
    title: str
    notes: Optional[str] = None
    cost: Optional[Decimal] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    is_recurring: bool = False
    is_exception: bool = Field(default=False, description="Whether a modification applies")


class OccurrenceListResponse(BaseModel):
    """Occurrences in a window."""

    occurrences: list[OccurrenceResult]
    total: int
    start_date: date
    end_date: date


class ConflictingOccurrenceResult(BaseModel):
    """Existing occurrence that overlaps the candidate."""

    event_id: Optional[str] = Field(None, description="Booking of the overlapping occurrence")
    title: str
    start_time: time
    end_time: time


class ConflictEntryResult(BaseModel):
    """Every existing occurrence overlapping the candidate on one date."""

    conflict_date: date
    conflicting_occurrences: list[ConflictingOccurrenceResult]
    message: str = Field(..., description="Human-readable conflict description")


class ConflictReportResponse(BaseModel):
    """Result of a conflict check. Conflicts are data, not errors."""

    has_conflicts: bool
    conflicts: list[ConflictEntryResult] = Field(default_factory=list)


class BookingResponse(BaseModel):
    """Result of creating a booking."""

    status: Literal["created", "rejected"] = Field(..., description="Whether the booking was stored")
    event_id: Optional[str] = Field(None, description="Id of the stored booking")
    is_recurring: bool = False
    created_dates: list[date] = Field(default_factory=list, description="Dates the booking occupies")
    skipped_dates: list[date] = Field(
        default_factory=list, description="Conflicting dates cancelled on creation"
    )
    conflicts: list[ConflictEntryResult] = Field(default_factory=list)
    explanation: str = Field(..., description="Human-readable summary")


class BookingDetailResponse(BaseModel):
    """A stored booking's definition."""

    id: str
    building_id: str
    amenity_id: str
    title: str
    start_time: time
    end_time: time
    is_recurring: bool
    one_time_date: Optional[date] = None
    recurring_start_date: Optional[date] = None
    recurring_end_date: Optional[date] = None
    frequency: Optional[str] = None
    weekdays: list[str] = Field(default_factory=list)
    ordinal: Optional[int] = None
    notes: Optional[str] = None
    cost: Optional[Decimal] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None


class EditResponse(BaseModel):
    """Result of editing a booking or one occurrence."""

    status: Literal["updated", "rejected"] = Field(..., description="Whether the edit was stored")
    event_id: str
    occurrence_date: Optional[date] = Field(None, description="Occurrence date for single-occurrence edits")
    conflicts: list[ConflictEntryResult] = Field(default_factory=list)
    explanation: str


class CancelOccurrenceResponse(BaseModel):
    """Result of cancelling one occurrence."""

    success: bool
    event_id: str
    occurrence_date: date
    already_cancelled: bool = False
    message: str


class RetryCancellationsResponse(BaseModel):
    """Result of retrying failed cancellation writes."""

    event_id: str
    written_dates: list[date] = Field(..., description="Dates newly cancelled by this retry")
    message: str


class DeleteBookingResponse(BaseModel):
    """Response for cancelling a whole booking."""

    success: bool = Field(..., description="Whether the cancellation was successful")
    event_id: str = Field(..., description="ID of the cancelled booking")
    message: str = Field(..., description="Status message")


class ErrorResponse(BaseModel):
    """Error information for failed requests."""

    error_type: Literal[
        "validation_error",
        "usage_error",
        "not_found",
        "store_error",
        "partial_failure",
        "http_error",
        "internal_error",
    ] = Field(..., description="Type of error")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict] = Field(None, description="Additional error details")
    retryable: bool = Field(default=False, description="Whether request can be retried")


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "unhealthy"] = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    database_connected: bool = Field(..., description="Database connection status")
