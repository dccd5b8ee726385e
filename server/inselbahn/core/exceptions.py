"""Engine exceptions following RFC 9457 Problem Details for HTTP APIs."""

import logging
import uuid
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

PROBLEM_BASE_URI = "https://inselbahn-helgoland.de/problems"


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt

    Every engine failure carries an application ``code`` and a ``retryable``
    hint next to the standard members.
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        code: str,
        detail: Optional[str] = None,
        retryable: bool = False,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            code: Application-specific error code
            detail: Human-readable explanation specific to this occurrence
            retryable: Whether the caller may retry the same request
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.code = code
        self.detail = detail
        self.retryable = retryable
        self.type_uri = type_uri or f"{PROBLEM_BASE_URI}/{code.lower().replace('_', '-')}"
        self.instance = instance
        self.extensions = extensions or {}

        self.problem_details = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
            "code": self.code,
            "retryable": self.retryable,
        }

        if self.detail:
            self.problem_details["detail"] = self.detail

        if self.instance:
            self.problem_details["instance"] = self.instance

        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )

    def __str__(self) -> str:
        return f"{self.code}: {self.problem_details.get('detail', self.title)}"


class ValidationError(ProblemDetailsException):
    """Request data is well-formed but not acceptable."""

    def __init__(
        self,
        detail: str = "The request data failed validation",
        errors: Optional[Dict[str, Any]] = None,
    ):
        extensions = {}
        if errors:
            extensions["errors"] = errors

        super().__init__(
            status_code=400,
            title="Validation Error",
            code="VALIDATION",
            detail=detail,
            extensions=extensions,
        )


class NotFoundError(ProblemDetailsException):
    """
    Lookup miss.

    Booking lookups use one message for every miss so that a wrong email is
    indistinguishable from an unknown code.
    """

    def __init__(
        self,
        resource_type: str = "resource",
        detail: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type} could not be found"

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            code="NOT_FOUND",
            detail=detail,
            extensions={"resource_type": resource_type},
        )


class CatalogNotFoundError(ProblemDetailsException):
    """No tour configuration is current for the requested type and date."""

    def __init__(self, tour_type: str, tour_date: date):
        super().__init__(
            status_code=404,
            title="Tour Configuration Not Found",
            code="CATALOG_NOT_FOUND",
            detail=f"No {tour_type} tour configuration is valid on {tour_date.isoformat()}",
            extensions={
                "tour_type": tour_type,
                "tour_date": tour_date.isoformat(),
            },
        )


class BookingWindowError(ProblemDetailsException):
    """Departure is too close or too far in the future to be booked."""

    def __init__(
        self,
        tour_date: date,
        tour_time: time,
        min_lead_minutes: int,
        max_advance_days: int,
    ):
        super().__init__(
            status_code=400,
            title="Outside Booking Window",
            code="OUTSIDE_BOOKING_WINDOW",
            detail=(
                f"Departures can be booked from {max_advance_days} days until "
                f"{min_lead_minutes} minutes before the start"
            ),
            extensions={
                "tour_date": tour_date.isoformat(),
                "tour_time": tour_time.strftime("%H:%M"),
                "min_lead_minutes": min_lead_minutes,
                "max_advance_days": max_advance_days,
            },
        )


class CapacityExceededError(ProblemDetailsException):
    """Slot cannot take the requested seats on this channel."""

    def __init__(
        self,
        occupied_seats: int,
        requested_seats: int,
        capacity: int,
        channel: str,
    ):
        super().__init__(
            status_code=409,
            title="Capacity Exceeded",
            code="FULL",
            detail=(
                f"No seats available ({occupied_seats + requested_seats} of "
                f"{capacity} seats would be occupied)"
            ),
            extensions={
                "occupied_seats": occupied_seats,
                "requested_seats": requested_seats,
                "capacity": capacity,
                "channel": channel,
            },
        )


class HoldExpiredError(ProblemDetailsException):
    """Checkout took longer than the reservation hold."""

    def __init__(self, session_id: str):
        super().__init__(
            status_code=410,
            title="Hold Expired",
            code="HOLD_EXPIRED",
            detail="Your seat reservation has expired, please reserve again",
            extensions={"session_id": session_id},
        )


class CancellationWindowError(ProblemDetailsException):
    """Not enough notice left to cancel the booking."""

    def __init__(self, minimum_notice_hours: int, hours_remaining: float):
        super().__init__(
            status_code=400,
            title="Cancellation Window Closed",
            code="CANCELLATION_WINDOW",
            detail=(
                f"Bookings must be cancelled at least {minimum_notice_hours} "
                "hours before the tour starts"
            ),
            extensions={
                "minimum_notice_hours": minimum_notice_hours,
                "hours_remaining": round(hours_remaining, 1),
            },
        )


class DependencyError(ProblemDetailsException):
    """Record store or email transport failed; the caller may retry with backoff."""

    def __init__(self, dependency: str, operation: Optional[str] = None):
        extensions = {"dependency": dependency}
        if operation:
            extensions["operation"] = operation

        super().__init__(
            status_code=503,
            title="Service Temporarily Unavailable",
            code="DEPENDENCY_UNAVAILABLE",
            detail="The service is temporarily unavailable, please try again later",
            retryable=True,
            extensions=extensions,
            headers={"Retry-After": "5"},
        )


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    content = dict(exc.problem_details)
    content.setdefault("instance", request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=exc.headers,
        media_type="application/problem+json",
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request schema violations as a problem document."""
    violations = [
        {
            "path": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", "invalid value"),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={
            "type": f"{PROBLEM_BASE_URI}/request-validation",
            "title": "Request Validation Failed",
            "status": 422,
            "code": "REQUEST_VALIDATION",
            "retryable": False,
            "instance": request.url.path,
            "violations": violations,
        },
        media_type="application/problem+json",
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    error_id = str(uuid.uuid4())

    logger.error(
        "Unhandled exception",
        extra={"error_id": error_id, "path": request.url.path, "error": str(exc)},
        exc_info=exc,
    )

    problem_details = {
        "type": f"{PROBLEM_BASE_URI}/internal-server-error",
        "title": "Internal Server Error",
        "status": 500,
        "code": "INTERNAL",
        "retryable": False,
        "detail": "An unexpected error occurred, please try again later",
        "instance": request.url.path,
        "error_id": error_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    return JSONResponse(
        status_code=500,
        content=problem_details,
        media_type="application/problem+json",
    )
