"""
FastAPI application for Amenity Booking.

This is the main entry point for the HTTP API, providing:
- Calendar view of booking occurrences
- Conflict checks for proposed bookings
- Booking creation (strict or skipping conflicting dates)
- Single occurrence and whole series edits
- Health endpoint
"""

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta
from typing import Optional
from uuid import UUID

from dateutil import tz
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from amenity_booking.api.dependencies import get_booking_service, get_db_session
from amenity_booking.api.middleware import RequestLoggingMiddleware, get_request_id
from amenity_booking.api.models import (
    BookingDetailResponse,
    BookingRequest,
    BookingResponse,
    CancelOccurrenceResponse,
    ConflictCheckRequest,
    ConflictReportResponse,
    DeleteBookingResponse,
    EditResponse,
    HealthResponse,
    OccurrenceListResponse,
    OccurrenceModificationRequest,
    OccurrenceResult,
    RetryCancellationsRequest,
    RetryCancellationsResponse,
)
from amenity_booking.api.response_builder import (
    build_booking_detail,
    build_booking_response,
    build_conflict_entries,
    build_conflict_report,
    build_error_response,
    build_occurrence_results,
)
from amenity_booking.config import configure_logging, get_settings
from amenity_booking.database import check_connection, init_db
from amenity_booking.exceptions import (
    BookingNotFoundError,
    BookingUsageError,
    BookingValidationError,
    CancellationWriteError,
    StoreReadError,
    StoreWriteError,
)
from amenity_booking.services.booking import BookingMode
from amenity_booking.services.booking_service import BookingService
from amenity_booking.services.events import DateRange, Resource
from amenity_booking.services.expansion import filter_occurrences

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"
DEFAULT_WINDOW_DAYS = 30


# =============================================================================
# Application Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()
    logger.info("Starting Amenity Booking API")

    yield

    logger.info("Shutting down Amenity Booking API")


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="Amenity Booking API",
    description="""
# Amenity Booking API

One-time and recurring bookings of building amenities, with conflict detection.

## Core Workflows

### Booking Creation
1. **POST /conflicts** - Optionally preview conflicts for a proposed booking
2. **POST /bookings?mode=strict** - Create; rejected if any date conflicts
3. **POST /bookings?mode=skip_conflicts** - Create a series, cancelling only
   the conflicting dates (recurring bookings only)
4. If cancellations partially fail: **POST /bookings/{event_id}/cancellations/retry**
   with the reported `failed_dates`

### Editing
- **PUT / DELETE /bookings/{event_id}/occurrences/{date}** - This occurrence only
- **PUT / DELETE /bookings/{event_id}** - The entire series

## Error Handling

**Conflicts are not errors** - Conflicts return 200 with the conflicting dates.

- **200** - Success (including rejected bookings and conflict reports)
- **400** - Invalid use (e.g. skip_conflicts for a one-time booking)
- **404** - Booking, building or amenity not found
- **422** - Validation error
- **500** - Store failure; partial cancellation failures report `failed_dates`
    """,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(BookingValidationError)
async def validation_error_handler(request, exc: BookingValidationError):
    return JSONResponse(
        status_code=422,
        content=build_error_response("validation_error", exc.message, {"errors": exc.errors}),
    )


@app.exception_handler(BookingUsageError)
async def usage_error_handler(request, exc: BookingUsageError):
    return JSONResponse(
        status_code=400,
        content=build_error_response("usage_error", exc.message),
    )


@app.exception_handler(BookingNotFoundError)
async def not_found_handler(request, exc: BookingNotFoundError):
    return JSONResponse(
        status_code=404,
        content=build_error_response("not_found", exc.message),
    )


@app.exception_handler(CancellationWriteError)
async def partial_failure_handler(request, exc: CancellationWriteError):
    logger.error(f"[{get_request_id()}] Partial booking failure: {exc.message}", exc_info=exc.original_error)
    return JSONResponse(
        status_code=500,
        content=build_error_response(
            "partial_failure",
            exc.message,
            {
                "event_id": str(exc.series_id),
                "failed_dates": [d.isoformat() for d in exc.failed_dates],
                "written_dates": [d.isoformat() for d in exc.written_dates],
            },
            retryable=True,
        ),
    )


@app.exception_handler(StoreReadError)
@app.exception_handler(StoreWriteError)
async def store_error_handler(request, exc: StoreReadError | StoreWriteError):
    logger.error(f"[{get_request_id()}] Store failure: {exc.message}", exc_info=exc.original_error)
    return JSONResponse(
        status_code=500,
        content=build_error_response("store_error", exc.message, retryable=exc.retryable),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_response(
            "http_error", str(exc.detail), retryable=exc.status_code >= 500
        ),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=build_error_response(
            "internal_error", "An unexpected error occurred", retryable=True
        ),
    )


def _today() -> date:
    """Today in the reference timezone."""
    return datetime.now(tz.gettz(get_settings().timezone)).date()


def _date_range(start: date, end: date) -> DateRange:
    try:
        return DateRange(start, end)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# =============================================================================
# Health & Status Endpoints
# =============================================================================


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    tags=["System"],
)
def health_check():
    """Check API and database health."""
    database_connected = check_connection()
    return HealthResponse(
        status="healthy" if database_connected else "unhealthy",
        version=API_VERSION,
        database_connected=database_connected,
    )


# =============================================================================
# Occurrence Endpoints
# =============================================================================


@app.get(
    "/occurrences",
    response_model=OccurrenceListResponse,
    summary="List booking occurrences",
    description="""
Expand every booking into its dated occurrences inside a window, with
cancelled occurrences removed and modified ones merged.

Default window is today to 30 days from now (reference timezone).
    """,
    tags=["Occurrences"],
)
def list_occurrences(
    start_date: Optional[date] = Query(None, description="First day of the window"),
    end_date: Optional[date] = Query(None, description="Last day of the window (inclusive)"),
    building_id: Optional[UUID] = Query(None, description="Only this building"),
    amenity_id: Optional[UUID] = Query(None, description="Only this amenity"),
    service: BookingService = Depends(get_booking_service),
) -> OccurrenceListResponse:
    start = start_date or _today()
    end = end_date or start + timedelta(days=DEFAULT_WINDOW_DAYS)
    window = _date_range(start, end)

    if building_id is not None and amenity_id is not None:
        occurrences = service.expand_for_display(window, Resource(building_id, amenity_id))
    else:
        occurrences = filter_occurrences(
            service.expand_for_display(window), building_id, amenity_id
        )

    return OccurrenceListResponse(
        occurrences=build_occurrence_results(occurrences),
        total=len(occurrences),
        start_date=window.start,
        end_date=window.end,
    )


@app.get(
    "/buildings/{building_id}/amenities/{amenity_id}/bookings/{day}",
    response_model=list[OccurrenceResult],
    summary="Bookings of one amenity on one day",
    tags=["Occurrences"],
)
def bookings_on_day(
    building_id: UUID,
    amenity_id: UUID,
    day: date,
    service: BookingService = Depends(get_booking_service),
) -> list[OccurrenceResult]:
    return build_occurrence_results(service.bookings_on(day, Resource(building_id, amenity_id)))


@app.post(
    "/conflicts",
    response_model=ConflictReportResponse,
    summary="Check a booking for conflicts",
    description="""
Report every date on which the proposed booking overlaps an existing booking
of the same amenity in the same building. Nothing is written.

Pass `event_id` when checking an edit of a stored booking so it does not
conflict with itself.
    """,
    tags=["Bookings"],
)
def check_conflicts(
    request: ConflictCheckRequest,
    service: BookingService = Depends(get_booking_service),
) -> ConflictReportResponse:
    try:
        window = request.window()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    report = service.detect_conflicts(request.to_event(request.event_id), window)
    return build_conflict_report(report)


# =============================================================================
# Booking Endpoints
# =============================================================================


@app.post(
    "/bookings",
    response_model=BookingResponse,
    summary="Create a booking",
    description="""
Create a one-time booking or a recurring series.

## Modes
- **strict** (default): rejected (`status=rejected`) if any date conflicts
- **skip_conflicts**: recurring bookings only; the series is created and each
  conflicting date is cancelled (`skipped_dates`)

## Partial failure
If the series was created but some cancellations failed, the response is 500
with `details.failed_dates`. Retry only those via
`POST /bookings/{event_id}/cancellations/retry`.
    """,
    responses={
        200: {"description": "Booking created or rejected because of conflicts"},
        400: {"description": "skip_conflicts used for a one-time booking"},
        404: {"description": "Building or amenity not found"},
        422: {"description": "Validation error"},
        500: {"description": "Store failure or partial cancellation failure"},
    },
    tags=["Bookings"],
)
def create_booking(
    request: BookingRequest,
    mode: BookingMode = Query(BookingMode.STRICT, description="strict or skip_conflicts"),
    db: Session = Depends(get_db_session),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    logger.info(f"Creating booking '{request.title}' (mode={mode.value})")

    try:
        result = service.create_booking(request.to_event(), mode)
    except CancellationWriteError:
        # Keep the series and the cancellations that were written
        db.commit()
        raise

    return build_booking_response(result)


@app.get(
    "/bookings/{event_id}",
    response_model=BookingDetailResponse,
    summary="Get booking details",
    tags=["Bookings"],
)
def get_booking(
    event_id: UUID,
    service: BookingService = Depends(get_booking_service),
) -> BookingDetailResponse:
    return build_booking_detail(service.get_booking(event_id))


@app.get(
    "/bookings/{event_id}/occurrences",
    response_model=list[OccurrenceResult],
    summary="List occurrences of one booking",
    tags=["Bookings"],
)
def list_booking_occurrences(
    event_id: UUID,
    start_date: Optional[date] = Query(None, description="First day (defaults to the series start)"),
    end_date: Optional[date] = Query(None, description="Last day (defaults to the series end)"),
    service: BookingService = Depends(get_booking_service),
) -> list[OccurrenceResult]:
    window = None
    if start_date is not None or end_date is not None:
        span = service.get_booking(event_id).span
        window = _date_range(start_date or span.start, end_date or span.end)
    return build_occurrence_results(service.series_occurrences(event_id, window))


@app.post(
    "/bookings/{event_id}/cancellations/retry",
    response_model=RetryCancellationsResponse,
    summary="Retry failed cancellation writes",
    description="Idempotent: dates already cancelled are left unchanged.",
    tags=["Bookings"],
)
def retry_cancellations(
    event_id: UUID,
    request: RetryCancellationsRequest,
    db: Session = Depends(get_db_session),
    service: BookingService = Depends(get_booking_service),
) -> RetryCancellationsResponse:
    try:
        written = service.retry_cancellations(event_id, request.dates)
    except CancellationWriteError:
        db.commit()
        raise

    return RetryCancellationsResponse(
        event_id=str(event_id),
        written_dates=written,
        message=f"{len(written)} date(s) cancelled",
    )


@app.put(
    "/bookings/{event_id}",
    response_model=EditResponse,
    summary="Edit the entire booking",
    description="""
Replace the booking's definition. Per-occurrence modifications of a series
are discarded; cancelled occurrences stay cancelled. Rejected with the
conflicting dates if the new definition conflicts with other bookings.
    """,
    tags=["Bookings"],
)
def update_booking(
    event_id: UUID,
    request: BookingRequest,
    service: BookingService = Depends(get_booking_service),
) -> EditResponse:
    report = service.update_booking(request.to_event(event_id))
    if report.has_conflicts:
        return EditResponse(
            status="rejected",
            event_id=str(event_id),
            conflicts=build_conflict_entries(report),
            explanation=f"{len(report)} conflicting date(s) - booking was not changed",
        )
    return EditResponse(status="updated", event_id=str(event_id), explanation="Booking updated")


@app.delete(
    "/bookings/{event_id}",
    response_model=DeleteBookingResponse,
    summary="Cancel the entire booking",
    tags=["Bookings"],
)
def cancel_booking(
    event_id: UUID,
    service: BookingService = Depends(get_booking_service),
) -> DeleteBookingResponse:
    service.cancel_booking(event_id)
    return DeleteBookingResponse(
        success=True,
        event_id=str(event_id),
        message="Booking cancelled",
    )


@app.put(
    "/bookings/{event_id}/occurrences/{occurrence_date}",
    response_model=EditResponse,
    summary="Edit one occurrence of a series",
    tags=["Bookings"],
)
def modify_occurrence(
    event_id: UUID,
    occurrence_date: date,
    request: OccurrenceModificationRequest,
    service: BookingService = Depends(get_booking_service),
) -> EditResponse:
    report = service.modify_occurrence(request.to_modified(event_id, occurrence_date))
    if report.has_conflicts:
        return EditResponse(
            status="rejected",
            event_id=str(event_id),
            occurrence_date=occurrence_date,
            conflicts=build_conflict_entries(report),
            explanation="Occurrence conflicts with another booking - not changed",
        )
    return EditResponse(
        status="updated",
        event_id=str(event_id),
        occurrence_date=occurrence_date,
        explanation="Occurrence updated",
    )


@app.delete(
    "/bookings/{event_id}/occurrences/{occurrence_date}",
    response_model=CancelOccurrenceResponse,
    summary="Cancel one occurrence of a series",
    description="Idempotent: cancelling an already cancelled occurrence succeeds.",
    tags=["Bookings"],
)
def cancel_occurrence(
    event_id: UUID,
    occurrence_date: date,
    service: BookingService = Depends(get_booking_service),
) -> CancelOccurrenceResponse:
    written = service.cancel_occurrence(event_id, occurrence_date)
    return CancelOccurrenceResponse(
        success=True,
        event_id=str(event_id),
        occurrence_date=occurrence_date,
        already_cancelled=not written,
        message="Occurrence cancelled" if written else "Occurrence was already cancelled",
    )


# =============================================================================
# Run with Uvicorn
# =============================================================================


def run_server(host: Optional[str] = None, port: Optional[int] = None, reload: Optional[bool] = None):
    """Run the API server with Uvicorn."""
    import uvicorn

    settings = get_settings()
    if settings.is_development and not settings.uses_postgresql:
        # Production schemas come from `alembic upgrade head`
        init_db()
    uvicorn.run(
        "amenity_booking.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=settings.api_reload if reload is None else reload,
    )


if __name__ == "__main__":
    run_server()
