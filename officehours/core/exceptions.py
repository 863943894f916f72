# officehours/core/exceptions.py
"""
Domain-specific exceptions for the office-hours platform.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.to_dict())


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message or "An error occurred processing your request",
            "code": self.code,
            "details": self.details,
        }


# Specific business exceptions


class InvalidTimeRangeException(ValidationException):
    """Raised when a requested interval does not start before it ends."""

    def __init__(self, start: Any, end: Any):
        super().__init__(
            message="Start time must be before end time",
            code="INVALID_TIME_RANGE",
            details={"start": str(start), "end": str(end)},
        )


class BookingConflictException(ConflictException):
    """Raised when a booking overlaps an availability block or a scheduled session."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot has already been booked. Please select another time.",
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class AvailabilityConflictException(ConflictException):
    """Raised when a new availability block overlaps existing blocks or bookings."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Availability slot conflicts with existing availability or bookings",
            code="AVAILABILITY_CONFLICT",
            details=details or {},
        )


class MentorBusyException(ConflictException):
    """Raised when the per-mentor critical section could not be entered in time."""

    def __init__(self, mentor_id: str):
        super().__init__(
            message="Another change to this mentor's calendar is in progress. Please retry.",
            code="MENTOR_CALENDAR_BUSY",
            details={"mentor_id": mentor_id},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
