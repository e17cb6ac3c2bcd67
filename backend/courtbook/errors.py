"""
Domain errors for availability and reservations.

Every error carries an HTTP status and a stable error_code so routes stay
thin: services raise, the handler in main.py renders
{"detail": ..., "error_code": ..., **details}.
"""
from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# HTTP status codes for known error categories
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_FORBIDDEN = 403
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409


class BookingError(Exception):
    """Base for every error raised by the scheduling core."""

    status_code: int = STATUS_BAD_REQUEST
    error_code: str = "BOOKING_ERROR"
    message: str = "Booking error"

    def __init__(self, message: str | None = None, **details: Any):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "error_code": self.error_code, **self.details}


# ── Input validation ─────────────────────────────────────────────────────

class InvalidTimeFormat(BookingError):
    error_code = "INVALID_TIME_FORMAT"
    message = "Time must be in HH:MM format"


class OutOfRange(BookingError):
    error_code = "OUT_OF_RANGE"
    message = "Minutes must be between 0 and 1439"


class InvalidTimeRange(BookingError):
    error_code = "INVALID_TIME_RANGE"
    message = "Start time must be before end time"


class InvalidTimeGranularity(BookingError):
    error_code = "INVALID_TIME_GRANULARITY"
    message = "Times must align to 30-minute intervals"


class InvalidDuration(BookingError):
    error_code = "INVALID_DURATION"
    message = "Invalid duration"


class InvalidDayOfWeek(BookingError):
    error_code = "INVALID_DAY_OF_WEEK"
    message = "day_of_week must be between 0 (Sunday) and 6 (Saturday)"


class InvalidPrice(BookingError):
    error_code = "INVALID_PRICE"
    message = "Price override must be positive"


class InvalidBlockedRange(BookingError):
    error_code = "INVALID_BLOCKED_RANGE"
    message = "Invalid blocked range"


class OutsideBookingWindow(BookingError):
    error_code = "OUTSIDE_BOOKING_WINDOW"
    message = "Requested time is outside the booking window"


# ── Availability ─────────────────────────────────────────────────────────

class BookingConflict(BookingError):
    status_code = STATUS_CONFLICT
    error_code = "BOOKING_CONFLICT"
    message = "Time slot is already booked"


class TimeBlocked(BookingError):
    status_code = STATUS_CONFLICT
    error_code = "TIME_BLOCKED"
    message = "Time slot is blocked"


class RuleConflict(BookingError):
    status_code = STATUS_CONFLICT
    error_code = "RULE_CONFLICT"
    message = "Availability rule overlaps an existing rule"


class OutsideAvailability(BookingError):
    error_code = "OUTSIDE_AVAILABILITY"
    message = "Requested time is outside available hours"


class NoAvailabilityRules(BookingError):
    status_code = STATUS_NOT_FOUND
    error_code = "NO_AVAILABILITY_RULES"
    message = "No availability rules for this day"


# ── Reservation state machine ────────────────────────────────────────────

class InvalidTransition(BookingError):
    status_code = STATUS_CONFLICT
    error_code = "INVALID_TRANSITION"
    message = "Reservation cannot change to the requested status"


class ReservationExpired(InvalidTransition):
    error_code = "RESERVATION_EXPIRED"
    message = "Reservation hold has expired"


class CannotCancelPastSlot(BookingError):
    error_code = "CANNOT_CANCEL_PAST_SLOT"
    message = "Cannot cancel a reservation that has already started"


# ── Lookup / access ──────────────────────────────────────────────────────

class NotFound(BookingError):
    status_code = STATUS_NOT_FOUND
    error_code = "NOT_FOUND"
    message = "Not found"


class CourtNotFound(NotFound):
    error_code = "COURT_NOT_FOUND"
    message = "Court not found"


class CourtInactive(BookingError):
    error_code = "COURT_INACTIVE"
    message = "Court is not active"


class RuleNotFound(NotFound):
    error_code = "RULE_NOT_FOUND"
    message = "Availability rule not found"


class BlockedRangeNotFound(NotFound):
    error_code = "BLOCKED_RANGE_NOT_FOUND"
    message = "Blocked range not found"


class ReservationNotFound(NotFound):
    error_code = "RESERVATION_NOT_FOUND"
    message = "Reservation not found"


class Forbidden(BookingError):
    status_code = STATUS_FORBIDDEN
    error_code = "FORBIDDEN"
    message = "Not allowed"
