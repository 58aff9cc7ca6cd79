import datetime
from typing import Optional, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dojobook import models
from dojobook.database import crud
from dojobook.errors import CheckInError
from dojobook.models import AttendanceStatus, BookingStatus, SessionStatus
from dojobook.schemas.config.app import AppConfig
from dojobook.sessions import start_session
from dojobook.utils.logging_utils import log
from dojobook.utils.time_utils import session_end, session_start

CHECKABLE_SESSION_STATUSES = [SessionStatus.SCHEDULED, SessionStatus.ONGOING]


def arrival_status(
    session: models.ClassSession, now: datetime.datetime
) -> AttendanceStatus:
    return AttendanceStatus.LATE if now > session_start(session) else AttendanceStatus.PRESENT


def check_in(
    db: Session,
    user_id: UUID,
    session_id: UUID,
    now: datetime.datetime,
    notes: Optional[str] = None,
) -> Union[models.Attendance, CheckInError]:
    """
    Record that a booked member showed up for a session.

    In a single transaction the attendance row is written, the booking moves to
    CHECKED_IN, the session moves to ONGOING on its first check-in and the
    member's attended class count is bumped (starting at one for a first visit).
    A rejected check-in leaves the database untouched.
    """
    booking = crud.get_live_booking(db, user_id, session_id)
    if booking is None or booking.booking_status == BookingStatus.NO_SHOW:
        return CheckInError.NO_BOOKING_FOUND
    if booking.booking_status == BookingStatus.CHECKED_IN:
        return CheckInError.ALREADY_CHECKED_IN
    session = crud.get_class_session(db, session_id)
    if session is None or session.status not in CHECKABLE_SESSION_STATUSES:
        return CheckInError.SESSION_NOT_CHECKABLE
    if crud.get_user_session_attendance(db, user_id, session_id) is not None:
        return CheckInError.ALREADY_CHECKED_IN
    row_count = (
        db.query(models.Booking)
        .filter_by(id=booking.id, booking_status=BookingStatus.BOOKED)
        .update(
            {
                models.Booking.booking_status: BookingStatus.CHECKED_IN,
                models.Booking.check_in_time: now,
            },
            synchronize_session=False,
        )
    )
    if row_count == 0:
        db.rollback()
        return CheckInError.ALREADY_CHECKED_IN
    attendance = models.Attendance(
        user_id=user_id,
        class_session_id=session_id,
        booking_id=booking.id,
        check_in_time=now,
        attendance_status=arrival_status(session, now),
        notes=notes,
    )
    db.add(attendance)
    if session.status == SessionStatus.SCHEDULED:
        if start_session(db, session_id) is not None:
            db.rollback()
            return CheckInError.SESSION_NOT_CHECKABLE
    if not crud.increment_member_progress(db, user_id, now):
        db.add(
            models.MemberProgress(
                user_id=user_id, total_classes_attended=1, last_attendance_date=now
            )
        )
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return CheckInError.ALREADY_CHECKED_IN
    db.refresh(attendance)
    log.info(
        f"Member {user_id} checked in to session {session_id} ({attendance.attendance_status.value})"
    )
    return attendance


def check_out(
    db: Session, config: AppConfig, attendance_id: UUID, now: datetime.datetime
) -> Union[models.Attendance, CheckInError]:
    attendance = crud.get_attendance(db, attendance_id)
    if attendance is None:
        return CheckInError.ATTENDANCE_NOT_FOUND
    if attendance.check_out_time is not None:
        return CheckInError.ALREADY_CHECKED_OUT
    session = crud.get_class_session(db, attendance.class_session_id)
    attendance.check_out_time = now
    if session is not None and now < session_end(session) - datetime.timedelta(
        minutes=config.attendance.left_early_threshold_minutes
    ):
        attendance.attendance_status = AttendanceStatus.LEFT_EARLY
    db.commit()
    db.refresh(attendance)
    log.info(
        f"Member {attendance.user_id} checked out of session {attendance.class_session_id}"
    )
    return attendance


def update_attendance(
    db: Session,
    attendance_id: UUID,
    notes: Optional[str] = None,
    attendance_status: Optional[AttendanceStatus] = None,
) -> Union[models.Attendance, CheckInError]:
    attendance = crud.get_attendance(db, attendance_id)
    if attendance is None:
        return CheckInError.ATTENDANCE_NOT_FOUND
    if notes is not None:
        attendance.notes = notes
    if attendance_status is not None:
        attendance.attendance_status = attendance_status
    db.commit()
    db.refresh(attendance)
    log.info(f"Updated attendance {attendance_id} of member {attendance.user_id}")
    return attendance
