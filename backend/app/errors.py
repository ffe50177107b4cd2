"""Domain errors raised by the booking services.

Every error here is a normal outcome for the caller: the operation is
rejected and nothing is written. ``main.py`` maps each kind to an HTTP
status code.
"""
from typing import Any, Optional


class BookingError(Exception):
    """Base class for all marketplace domain errors."""

    status_code = 400

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def kind(self) -> str:
        return self.__class__.__name__


class ValidationError(BookingError):
    """Bad input (non-positive party size, negative offer, missing arrival time)."""

    status_code = 422


class InvalidTransition(BookingError):
    """The requested action is not legal from the request's current status."""

    status_code = 409

    def __init__(self, current_status: str, action: str):
        super().__init__(
            f"Cannot {action} a request that is {current_status}",
            details={"current_status": current_status, "action": action},
        )
        self.current_status = current_status
        self.action = action


class NotAuthorized(BookingError):
    status_code = 403


class NotFound(BookingError):
    status_code = 404


class ConflictError(BookingError):
    """Concurrent modification detected, or the write would break a referential rule."""

    status_code = 409
