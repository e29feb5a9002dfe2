"""
Response builder utilities for transforming engine results to API responses.
"""

from typing import Any, Iterable

from amenity_booking.api.models import (
    BookingDetailResponse,
    BookingResponse,
    ConflictEntryResult,
    ConflictingOccurrenceResult,
    ConflictReportResponse,
    OccurrenceResult,
)
from amenity_booking.services.booking import BookingResult
from amenity_booking.services.conflicts import ConflictReport
from amenity_booking.services.events import Event
from amenity_booking.services.expansion import Occurrence


def occurrence_to_result(occurrence: Occurrence) -> OccurrenceResult:
    return OccurrenceResult(
        occurrence_id=occurrence.occurrence_id,
        event_id=str(occurrence.parent_series_id) if occurrence.parent_series_id else None,
        occurrence_date=occurrence.date,
        building_id=str(occurrence.resource.building_id),
        amenity_id=str(occurrence.resource.amenity_id),
        start_time=occurrence.start_time,
        end_time=occurrence.end_time,
        title=occurrence.title,
        notes=occurrence.notes,
        cost=occurrence.cost,
        contact_phone=occurrence.contact.phone,
        contact_email=occurrence.contact.email,
        is_recurring=occurrence.is_recurring,
        is_exception=occurrence.is_exception,
    )


def build_occurrence_results(occurrences: Iterable[Occurrence]) -> list[OccurrenceResult]:
    return [occurrence_to_result(o) for o in occurrences]


def build_conflict_entries(report: ConflictReport) -> list[ConflictEntryResult]:
    """One entry per conflicting date, with the overlapping occurrences."""
    messages = report.messages()
    return [
        ConflictEntryResult(
            conflict_date=entry.date,
            conflicting_occurrences=[
                ConflictingOccurrenceResult(
                    event_id=str(c.source_event_id) if c.source_event_id else None,
                    title=c.title,
                    start_time=c.start_time,
                    end_time=c.end_time,
                )
                for c in entry.conflicting_occurrences
            ],
            message=message,
        )
        for entry, message in zip(report.entries, messages)
    ]


def build_conflict_report(report: ConflictReport) -> ConflictReportResponse:
    return ConflictReportResponse(
        has_conflicts=report.has_conflicts,
        conflicts=build_conflict_entries(report),
    )


def build_booking_response(result: BookingResult) -> BookingResponse:
    """
    Build BookingResponse from a create result.

    Handles:
    - Created without conflicts
    - Created with skipped (cancelled) conflicting dates
    - Rejected because of conflicts
    """
    conflicts = build_conflict_entries(result.conflicts)

    if not result.is_success:
        return BookingResponse(
            status="rejected",
            conflicts=conflicts,
            explanation=(
                f"{len(result.conflicts)} conflicting date(s) - booking was not created"
            ),
        )

    created = result.created
    if created.skipped_dates:
        explanation = (
            f"Booking created with {len(created.created_dates)} occurrence(s); "
            f"{len(created.skipped_dates)} conflicting date(s) skipped"
        )
    else:
        explanation = f"Booking created with {len(created.created_dates)} occurrence(s)"

    return BookingResponse(
        status="created",
        event_id=str(created.event_id),
        is_recurring=created.is_recurring,
        created_dates=list(created.created_dates),
        skipped_dates=list(created.skipped_dates),
        conflicts=conflicts,
        explanation=explanation,
    )


def build_booking_detail(event: Event) -> BookingDetailResponse:
    pattern = event.pattern
    return BookingDetailResponse(
        id=str(event.id),
        building_id=str(event.resource.building_id),
        amenity_id=str(event.resource.amenity_id),
        title=event.title,
        start_time=event.start_time,
        end_time=event.end_time,
        is_recurring=event.is_recurring,
        one_time_date=event.one_time_date,
        recurring_start_date=event.recurring_range.start if event.recurring_range else None,
        recurring_end_date=event.recurring_range.end if event.recurring_range else None,
        frequency=pattern.frequency.value if pattern else None,
        weekdays=[d.value for d in pattern.weekdays] if pattern else [],
        ordinal=pattern.ordinal if pattern else None,
        notes=event.notes,
        cost=event.cost,
        contact_phone=event.contact.phone,
        contact_email=event.contact.email,
    )


def build_error_response(
    error_type: str,
    message: str,
    details: dict[str, Any] | None = None,
    retryable: bool = False,
) -> dict[str, Any]:
    """Build standardized error response dictionary."""
    return {
        "error_type": error_type,
        "message": message,
        "details": details,
        "retryable": retryable,
    }
