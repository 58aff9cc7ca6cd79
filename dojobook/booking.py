import datetime
from typing import Optional, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dojobook import capacity, models
from dojobook.database import crud
from dojobook.errors import BookingError
from dojobook.models import BookingStatus, MembershipStatus, SessionStatus
from dojobook.schemas.config.app import AppConfig
from dojobook.utils.logging_utils import log
from dojobook.utils.time_utils import is_before_deadline, session_start

# NO_SHOW and CANCELLED are terminal. A checked in booking may still be cancelled.
BOOKING_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.BOOKED: {
        BookingStatus.CHECKED_IN,
        BookingStatus.NO_SHOW,
        BookingStatus.CANCELLED,
    },
    BookingStatus.CHECKED_IN: {BookingStatus.CANCELLED},
    BookingStatus.NO_SHOW: set(),
    BookingStatus.CANCELLED: set(),
}


def can_transition_booking(current: BookingStatus, target: BookingStatus) -> bool:
    return target in BOOKING_TRANSITIONS[current]


def check_member_eligibility(
    member: Optional[models.Member],
) -> Optional[BookingError]:
    if member is None or member.membership_status != MembershipStatus.ACTIVE:
        return BookingError.MEMBERSHIP_INACTIVE
    if member.is_on_bench:
        return BookingError.USER_BENCHED
    return None


def create_booking(
    db: Session,
    config: AppConfig,
    user_id: UUID,
    session_id: UUID,
    now: datetime.datetime,
) -> Union[models.Booking, BookingError]:
    eligibility_error = check_member_eligibility(crud.get_member(db, user_id))
    if eligibility_error is not None:
        log.warning(f"Member {user_id} may not book: {eligibility_error.name}")
        return eligibility_error
    session = crud.get_class_session(db, session_id)
    if session is None or session.status != SessionStatus.SCHEDULED:
        log.warning(f"Session {session_id} is not bookable")
        return BookingError.SESSION_NOT_BOOKABLE
    if crud.get_live_booking(db, user_id, session_id) is not None:
        return BookingError.ALREADY_BOOKED
    if not is_before_deadline(
        now, session_start(session), config.booking.booking_deadline_hours
    ):
        log.warning(f"Booking deadline of session {session_id} has passed")
        return BookingError.BOOKING_DEADLINE_PASSED
    reserve_error = capacity.reserve(db, session_id)
    if reserve_error is not None:
        db.rollback()
        log.warning(f"Session {session_id} is full")
        return reserve_error
    booking = models.Booking(
        user_id=user_id,
        class_session_id=session_id,
        booking_status=BookingStatus.BOOKED,
        booking_date=now,
    )
    db.add(booking)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent request from the same member won, undo our reservation
        db.rollback()
        return BookingError.ALREADY_BOOKED
    db.refresh(booking)
    log.info(f"Member {user_id} booked session {session_id}")
    return booking


def cancel_booking(
    db: Session,
    config: AppConfig,
    booking_id: UUID,
    actor_id: UUID,
    now: datetime.datetime,
    reason: Optional[str] = None,
) -> Union[models.Booking, BookingError]:
    booking = crud.get_booking(db, booking_id)
    if booking is None:
        return BookingError.BOOKING_NOT_FOUND
    actor = crud.get_member(db, actor_id)
    if actor is None:
        return BookingError.FORBIDDEN
    is_staff = actor.is_staff
    if booking.user_id != actor_id and not is_staff:
        log.warning(f"Member {actor_id} tried to cancel booking {booking_id}")
        return BookingError.FORBIDDEN
    if not can_transition_booking(booking.booking_status, BookingStatus.CANCELLED):
        return BookingError.ALREADY_TERMINAL
    session = crud.get_class_session(db, booking.class_session_id)
    if session is None:
        return BookingError.SESSION_NOT_FOUND
    if not is_staff and not is_before_deadline(
        now, session_start(session), config.booking.cancellation_deadline_hours
    ):
        return BookingError.CANCELLATION_DEADLINE_PASSED
    # conditional on the status we validated, so a concurrent cancellation cannot release twice
    row_count = (
        db.query(models.Booking)
        .filter_by(id=booking_id, booking_status=booking.booking_status)
        .update(
            {
                models.Booking.booking_status: BookingStatus.CANCELLED,
                models.Booking.cancellation_time: now,
                models.Booking.cancellation_reason: reason,
            },
            synchronize_session=False,
        )
    )
    if row_count == 0:
        db.rollback()
        return BookingError.ALREADY_TERMINAL
    release_error = capacity.release(db, booking.class_session_id)
    if release_error is not None:
        db.rollback()
        return release_error
    db.commit()
    db.refresh(booking)
    log.info(
        f"Booking {booking_id} of member {booking.user_id} cancelled"
        f"{' by staff' if booking.user_id != actor_id else ''}"
    )
    return booking


def mark_no_show(
    db: Session, booking_id: UUID
) -> Union[models.Booking, BookingError]:
    booking = crud.get_booking(db, booking_id)
    if booking is None:
        return BookingError.BOOKING_NOT_FOUND
    if booking.booking_status != BookingStatus.BOOKED:
        return BookingError.ALREADY_TERMINAL
    session = crud.get_class_session(db, booking.class_session_id)
    if session is None:
        return BookingError.SESSION_NOT_FOUND
    if session.status != SessionStatus.COMPLETED:
        return BookingError.SESSION_NOT_COMPLETED
    if (
        crud.get_user_session_attendance(db, booking.user_id, booking.class_session_id)
        is not None
    ):
        return BookingError.ALREADY_CHECKED_IN
    row_count = (
        db.query(models.Booking)
        .filter_by(id=booking_id, booking_status=BookingStatus.BOOKED)
        .update(
            {models.Booking.booking_status: BookingStatus.NO_SHOW},
            synchronize_session=False,
        )
    )
    if row_count == 0:
        db.rollback()
        return BookingError.ALREADY_TERMINAL
    db.commit()
    db.refresh(booking)
    log.info(f"Booking {booking_id} of member {booking.user_id} marked as no-show")
    return booking


def mark_no_shows(db: Session) -> list[models.Booking]:
    marked = []
    for booking in crud.get_unattended_bookings_of_completed_sessions(db):
        result = mark_no_show(db, booking.id)
        if isinstance(result, BookingError):
            log.debug(f"Skipped no-show of booking {booking.id}: {result.name}")
            continue
        marked.append(result)
    if len(marked) > 0:
        log.info(f"Marked {len(marked)} booking{'s' if len(marked) > 1 else ''} as no-show")
    return marked
