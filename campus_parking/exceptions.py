"""
Booking error taxonomy.
Every error carries a stable `code` and an HTTP status so routers and
clients can tell "try another slot" apart from "backend is down".
"""


class BookingError(Exception):
    code = "booking_error"
    http_status = 400

    def __init__(self, message: str = "", **context):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.context = context

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code, **self.context}


class ScheduleClosed(BookingError):
    """Requested day/window falls outside every open schedule entry."""
    code = "schedule_closed"
    http_status = 409


class NotAvailable(BookingError):
    """No free slot of the requested vehicle type in the window."""
    code = "not_available"
    http_status = 409


ZoneFull = NotAvailable


class ConflictDetected(BookingError):
    """A concurrent booking won the race for the slot at insert time."""
    code = "conflict_detected"
    http_status = 409


class TransportFailure(BookingError):
    """The reservation backend could not be reached."""
    code = "transport_failure"
    http_status = 503


class InvariantViolation(BookingError, ValueError):
    """Programmer or data error, e.g. end <= start or a weekday claimed twice."""
    code = "invariant_violation"
    http_status = 422


class ReservationNotFound(BookingError):
    code = "not_found"
    http_status = 404
