from __future__ import annotations


class BookingError(Exception):
    """Base class for errors raised by the booking core."""

    message = "Booking request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(BookingError, ValueError):
    message = "Invalid booking request"


class InvalidPatternError(ValidationError):
    message = "Invalid recurring pattern"


class ConflictError(BookingError):
    message = "This room is already booked during this time"


class NotFoundError(BookingError, LookupError):
    message = "Booking not found"


class StorageError(BookingError, RuntimeError):
    message = "Failed to access booking storage"
