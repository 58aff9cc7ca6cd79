from enum import Enum, auto
from typing import Union

from dojobook.utils.time_utils import readable_hours


class BookingError(Enum):
    MEMBERSHIP_INACTIVE = auto()
    USER_BENCHED = auto()
    SESSION_NOT_FOUND = auto()
    SESSION_NOT_BOOKABLE = auto()
    SESSION_NOT_COMPLETED = auto()
    ALREADY_BOOKED = auto()
    BOOKING_DEADLINE_PASSED = auto()
    CANCELLATION_DEADLINE_PASSED = auto()
    SESSION_FULL = auto()
    BOOKING_NOT_FOUND = auto()
    ALREADY_TERMINAL = auto()
    ALREADY_CHECKED_IN = auto()
    FORBIDDEN = auto()


class CheckInError(Enum):
    NO_BOOKING_FOUND = auto()
    SESSION_NOT_CHECKABLE = auto()
    ALREADY_CHECKED_IN = auto()
    ATTENDANCE_NOT_FOUND = auto()
    ALREADY_CHECKED_OUT = auto()


class SessionError(Enum):
    SESSION_NOT_FOUND = auto()
    INVALID_TRANSITION = auto()


class SendError(Enum):
    ERROR = auto()
    NO_RECIPIENT = auto()
    TRANSPORT_FAILED = auto()


DomainError = Union[BookingError, CheckInError, SessionError]

ERROR_MESSAGES: dict[DomainError, str] = {
    BookingError.MEMBERSHIP_INACTIVE: "An active membership is required to book classes",
    BookingError.USER_BENCHED: "Classes cannot be booked while on the bench",
    BookingError.SESSION_NOT_FOUND: "Class session not found",
    BookingError.SESSION_NOT_BOOKABLE: "This class session is not open for booking",
    BookingError.SESSION_NOT_COMPLETED: "The class session has not been completed yet",
    BookingError.ALREADY_BOOKED: "You are already booked for this class session",
    BookingError.SESSION_FULL: "The class is full",
    BookingError.BOOKING_NOT_FOUND: "Booking not found",
    BookingError.ALREADY_TERMINAL: "The booking can no longer be changed",
    BookingError.ALREADY_CHECKED_IN: "The member already checked in to this class session",
    BookingError.FORBIDDEN: "Not allowed to change this booking",
    CheckInError.NO_BOOKING_FOUND: "No active booking found for this class session",
    CheckInError.SESSION_NOT_CHECKABLE: "Check-in is not possible for this class session",
    CheckInError.ALREADY_CHECKED_IN: "Already checked in to this class session",
    CheckInError.ATTENDANCE_NOT_FOUND: "Attendance record not found",
    CheckInError.ALREADY_CHECKED_OUT: "Already checked out of this class session",
    SessionError.SESSION_NOT_FOUND: "Class session not found",
    SessionError.INVALID_TRANSITION: "The class session cannot change to that status",
}


def error_message(
    error: DomainError,
    booking_deadline_hours: int = 2,
    cancellation_deadline_hours: int = 4,
) -> str:
    if error == BookingError.BOOKING_DEADLINE_PASSED:
        return f"Booking closes {readable_hours(booking_deadline_hours)} before class"
    if error == BookingError.CANCELLATION_DEADLINE_PASSED:
        return (
            f"Cancellation closes {readable_hours(cancellation_deadline_hours)} before class"
        )
    return ERROR_MESSAGES.get(error, "Something went wrong")
