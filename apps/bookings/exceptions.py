"""
Custom exceptions for the booking engine.
Raised in engine.py / checkout.py and caught in the views for clean JSON errors.
Each carries the HTTP status the JSON views answer with.
"""


class BookingEngineError(Exception):
    """Base exception for all booking engine errors."""
    http_status = 400


class SlotConflictError(BookingEngineError):
    """Raised when a requested slot was taken between selection and checkout."""
    http_status = 409


class SlotUnavailableError(BookingEngineError):
    """Raised when the requested time is outside the barber's hours for the date."""
    http_status = 409


class InvalidSessionError(BookingEngineError):
    """Raised when a checkout's sessions do not match the service (count, ids, dates)."""
    pass


class ScheduleConflictError(BookingEngineError):
    """Raised when a schedule edit would strand confirmed future appointments."""
    http_status = 409

    def __init__(self, message, appointments=()):
        super().__init__(message)
        self.appointments = list(appointments)


class CheckoutError(BookingEngineError):
    """Raised when checkout submission fails; the draft is kept for a retry."""

    def __init__(self, message, status=None):
        super().__init__(message)
        if status is not None:
            self.http_status = status
