"""
Error taxonomy.

Every error carries an HTTP ``status_code`` and a machine-readable ``code``
so the API layer can render it without knowing the concrete class.
Business errors are raised by the services; ``InfrastructureError`` wraps
storage failures whose details must not reach the caller in production.
"""

from __future__ import annotations


class CarpoolError(Exception):
    status_code = 500
    code = "ERROR"
    default_message = "Unexpected error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CarpoolError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class BusinessRuleViolation(CarpoolError):
    status_code = 400
    code = "BUSINESS_RULE_VIOLATION"
    default_message = "Request violates a business rule"


class AuthenticationError(CarpoolError):
    status_code = 401
    code = "NOT_AUTHENTICATED"
    default_message = "Access denied. Authentication required."


class AuthorizationError(CarpoolError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "You are not allowed to perform this action"


class NotFoundError(CarpoolError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(CarpoolError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Resource already exists"


class InfrastructureError(CarpoolError):
    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Internal server error"


# ── Booking / trip rules ──────────────────────────────────────────────


class NoSeatsAvailable(BusinessRuleViolation):
    code = "NO_SEATS_AVAILABLE"
    default_message = "No available seats on this trip"


class TripDeparted(BusinessRuleViolation):
    code = "TRIP_DEPARTED"
    default_message = "Cannot book a trip that has already departed"


class OwnTripBooking(BusinessRuleViolation):
    code = "OWN_TRIP"
    default_message = "You cannot book your own trip"


class AlreadyCancelled(BusinessRuleViolation):
    code = "ALREADY_CANCELLED"
    default_message = "Booking is already cancelled"


class TripHasBookings(BusinessRuleViolation):
    code = "TRIP_HAS_BOOKINGS"
    default_message = "Cannot delete trip with active bookings"


class TripNotDeparted(BusinessRuleViolation):
    code = "TRIP_NOT_DEPARTED"
    default_message = "You can only review a trip after it has departed"


class AlreadyBooked(ConflictError):
    code = "ALREADY_BOOKED"
    default_message = "You have already booked this trip"


class AlreadyReviewed(ConflictError):
    code = "ALREADY_REVIEWED"
    default_message = "You have already reviewed this trip"
