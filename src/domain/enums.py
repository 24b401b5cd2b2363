"""Domain enumerations and state-transition rules."""

import enum


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"  # reserved; bookings are created CONFIRMED
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


# State machine: maps current status -> set of valid next statuses
BOOKING_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
}


def statuses_leading_to(target: BookingStatus) -> set[BookingStatus]:
    """Every status from which *target* is a legal next status."""
    return {
        status
        for status, allowed in BOOKING_TRANSITIONS.items()
        if target in allowed
    }


class UserRole(str, enum.Enum):
    DRIVER = "DRIVER"
    PASSENGER = "PASSENGER"
