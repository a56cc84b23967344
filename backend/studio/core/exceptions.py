# backend/studio/core/exceptions.py
"""
Domain-specific exceptions for the studio scheduling core.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import DBAPIError, OperationalError


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

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException carrying the structured detail payload."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when request input is malformed or missing."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


class TransientStoreException(DomainException):
    """
    Raised on lock timeouts, deadlocks and dropped connections.

    Nothing was committed, so the caller may retry the whole operation.
    """

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        retry_after_seconds: int = 2,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message or "Service temporarily busy. Please retry.",
            code="TRANSIENT_STORE_FAILURE",
            details=details or {},
        )
        self.retry_after_seconds = retry_after_seconds

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
            headers={"Retry-After": str(self.retry_after_seconds)},
        )


# Specific business exceptions


class NotEnrolledException(NotFoundException):
    """Raised when a participant has no enrollment in the referenced lesson."""

    def __init__(self, lesson_id: int, participant_id: int):
        super().__init__(
            message="Participant is not enrolled in this lesson",
            code="NOT_ENROLLED",
            details={"lesson_id": lesson_id, "participant_id": participant_id},
        )


class AlreadyBookedException(ConflictException):
    """Raised when the (event, participant) pair is already booked."""

    def __init__(self, event_id: int, participant_id: int):
        super().__init__(
            message="Participant is already booked for this event",
            code="ALREADY_BOOKED",
            details={"event_id": event_id, "participant_id": participant_id},
        )


class EligibilityLostException(ConflictException):
    """Raised when re-validation inside the booking transaction fails."""

    def __init__(self, event_id: int, participant_id: int, reason: Optional[str] = None):
        super().__init__(
            message=(
                "Participant no longer meets the eligibility criteria for this event. "
                "Please refresh and retry."
            ),
            code="ELIGIBILITY_LOST",
            details={
                "event_id": event_id,
                "participant_id": participant_id,
                "reason": reason or "ineligible",
            },
        )


class CapacityReachedException(ConflictException):
    """Raised when an event has no seats left."""

    def __init__(self, event_id: int, max_capacity: int):
        super().__init__(
            message="This event is fully booked",
            code="CAPACITY_REACHED",
            details={"event_id": event_id, "max_capacity": max_capacity},
        )


class IntegrityConflictException(ConflictException):
    """Raised when a write is rejected because related records still exist."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "Related records still exist",
            code="INTEGRITY_CONFLICT",
            details=details or {},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


_TRANSIENT_PGCODES = {
    "40001",  # serialization_failure
    "40P01",  # deadlock_detected
    "55P03",  # lock_not_available (lock_timeout)
    "57014",  # query_canceled (statement_timeout)
}

_TRANSIENT_SNIPPETS = (
    "deadlock detected",
    "lock timeout",
    "could not obtain lock",
    "canceling statement due to lock timeout",
    "database is locked",
    "server closed the connection",
    "ssl connection has been closed unexpectedly",
    "connection refused",
)


def is_db_pool_exhaustion(exc: Exception) -> bool:
    """
    Check if an exception indicates DB connection pool exhaustion.

    This is a common failure mode under high load when all database
    connections are in use and new requests time out waiting.
    """
    error_str = str(exc).lower()
    return "queuepool" in error_str or (
        "timeout" in error_str and ("connection" in error_str or "pool" in error_str)
    )


def is_transient_db_error(exc: BaseException) -> bool:
    """Return True when a store failure is safe to retry from scratch."""
    if not isinstance(exc, (OperationalError, DBAPIError)):
        return False
    if getattr(exc, "connection_invalidated", False):
        return True
    orig = getattr(exc, "orig", None)
    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if pgcode in _TRANSIENT_PGCODES:
        return True
    message = str(exc).lower()
    return any(snippet in message for snippet in _TRANSIENT_SNIPPETS) or is_db_pool_exhaustion(
        exc
    )
