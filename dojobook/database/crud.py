import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import exists, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dojobook import models
from dojobook.models import (
    BookingStatus,
    MemberRole,
    MembershipStatus,
    NotificationType,
    SessionStatus,
)

LIVE_BOOKING_STATUSES = [
    BookingStatus.BOOKED,
    BookingStatus.CHECKED_IN,
    BookingStatus.NO_SHOW,
]


def get_member(db: Session, user_id: UUID) -> Optional[models.Member]:
    return db.query(models.Member).filter_by(id=user_id).one_or_none()


def get_class_session(
    db: Session, session_id: UUID, refresh: bool = False
) -> Optional[models.ClassSession]:
    query = db.query(models.ClassSession).filter_by(id=session_id)
    if refresh:
        query = query.populate_existing()
    return query.one_or_none()


def get_booking(db: Session, booking_id: UUID) -> Optional[models.Booking]:
    return db.query(models.Booking).filter_by(id=booking_id).one_or_none()


def get_live_booking(
    db: Session, user_id: UUID, session_id: UUID
) -> Optional[models.Booking]:
    return (
        db.query(models.Booking)
        .filter(
            models.Booking.user_id == user_id,
            models.Booking.class_session_id == session_id,
            models.Booking.booking_status.in_(LIVE_BOOKING_STATUSES),
        )
        .one_or_none()
    )


def get_attendance(db: Session, attendance_id: UUID) -> Optional[models.Attendance]:
    return db.query(models.Attendance).filter_by(id=attendance_id).one_or_none()


def get_user_session_attendance(
    db: Session, user_id: UUID, session_id: UUID
) -> Optional[models.Attendance]:
    return (
        db.query(models.Attendance)
        .filter_by(user_id=user_id, class_session_id=session_id)
        .one_or_none()
    )


def get_member_progress(db: Session, user_id: UUID) -> Optional[models.MemberProgress]:
    return db.query(models.MemberProgress).filter_by(user_id=user_id).one_or_none()


def increment_member_progress(
    db: Session, user_id: UUID, attended_at: datetime.datetime
) -> bool:
    row_count = db.query(models.MemberProgress).filter_by(user_id=user_id).update(
        {
            models.MemberProgress.total_classes_attended: models.MemberProgress.total_classes_attended
            + 1,
            models.MemberProgress.last_attendance_date: attended_at,
        },
        synchronize_session=False,
    )
    return row_count > 0


def get_unfinished_sessions_until(
    db: Session, until: datetime.date
) -> list[models.ClassSession]:
    return (
        db.query(models.ClassSession)
        .filter(
            models.ClassSession.status.in_(
                [SessionStatus.SCHEDULED, SessionStatus.ONGOING]
            ),
            models.ClassSession.session_date <= until,
        )
        .order_by(models.ClassSession.session_date, models.ClassSession.start_time)
        .all()
    )


def update_session_status(
    db: Session,
    session_id: UUID,
    from_statuses: list[SessionStatus],
    to_status: SessionStatus,
) -> bool:
    # compare-and-set, so concurrent transitions cannot move a session backwards
    result = db.execute(
        update(models.ClassSession)
        .where(
            models.ClassSession.id == session_id,
            models.ClassSession.status.in_(from_statuses),
        )
        .values(status=to_status)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


def get_unattended_bookings_of_completed_sessions(db: Session) -> list[models.Booking]:
    return (
        db.query(models.Booking)
        .join(
            models.ClassSession,
            models.ClassSession.id == models.Booking.class_session_id,
        )
        .filter(
            models.Booking.booking_status == BookingStatus.BOOKED,
            models.ClassSession.status == SessionStatus.COMPLETED,
            ~exists().where(
                models.Attendance.user_id == models.Booking.user_id,
                models.Attendance.class_session_id == models.Booking.class_session_id,
            ),
        )
        .all()
    )


def get_members_absent_since(
    db: Session, cutoff: datetime.datetime
) -> list[tuple[models.Member, models.MemberProgress]]:
    return (
        db.query(models.Member, models.MemberProgress)
        .join(
            models.MemberProgress,
            models.MemberProgress.user_id == models.Member.id,
        )
        .filter(
            models.Member.role == MemberRole.MEMBER,
            models.Member.membership_status == MembershipStatus.ACTIVE,
            models.Member.is_on_bench.is_(False),
            models.MemberProgress.last_attendance_date < cutoff,
        )
        .order_by(models.Member.name)
        .all()
    )


def get_last_missed_session(
    db: Session, user_id: UUID, since: datetime.date, until: datetime.date
) -> Optional[tuple[models.ClassSession, models.GymClass]]:
    row = (
        db.query(models.ClassSession, models.GymClass)
        .join(models.GymClass, models.GymClass.id == models.ClassSession.class_id)
        .join(
            models.Booking,
            models.Booking.class_session_id == models.ClassSession.id,
        )
        .filter(
            models.Booking.user_id == user_id,
            models.Booking.booking_status.in_(
                [BookingStatus.BOOKED, BookingStatus.NO_SHOW]
            ),
            models.ClassSession.status == SessionStatus.COMPLETED,
            models.ClassSession.session_date >= since,
            models.ClassSession.session_date <= until,
            ~exists().where(
                models.Attendance.user_id == user_id,
                models.Attendance.class_session_id == models.ClassSession.id,
            ),
        )
        .order_by(
            models.ClassSession.session_date.desc(),
            models.ClassSession.start_time.desc(),
        )
        .first()
    )
    return (row[0], row[1]) if row is not None else None


def get_reminder_candidates(
    db: Session, session_date: datetime.date
) -> list[tuple[models.ClassSession, models.GymClass, models.Booking, models.Member]]:
    rows = (
        db.query(models.ClassSession, models.GymClass, models.Booking, models.Member)
        .join(models.GymClass, models.GymClass.id == models.ClassSession.class_id)
        .join(
            models.Booking,
            models.Booking.class_session_id == models.ClassSession.id,
        )
        .join(models.Member, models.Member.id == models.Booking.user_id)
        .filter(
            models.ClassSession.session_date == session_date,
            models.ClassSession.status == SessionStatus.SCHEDULED,
            models.Booking.booking_status == BookingStatus.BOOKED,
            models.Member.membership_status == MembershipStatus.ACTIVE,
            models.Member.is_on_bench.is_(False),
        )
        .order_by(models.ClassSession.start_time, models.Member.name)
        .all()
    )
    return [(s, c, b, m) for s, c, b, m in rows]


def has_notification(
    db: Session,
    user_id: UUID,
    notification_type: NotificationType,
    since: Optional[datetime.datetime] = None,
    correlation_key: Optional[str] = None,
) -> bool:
    query = db.query(models.NotificationRecord).filter(
        models.NotificationRecord.user_id == user_id,
        models.NotificationRecord.notification_type == notification_type,
    )
    if since is not None:
        query = query.filter(models.NotificationRecord.sent_at >= since)
    if correlation_key is not None:
        query = query.filter(
            models.NotificationRecord.correlation_key == correlation_key
        )
    return db.query(query.exists()).scalar()


def create_notification_record(
    db: Session,
    user_id: UUID,
    notification_type: NotificationType,
    correlation_key: str,
    subject: str,
    message_id: Optional[str],
    sent_at: datetime.datetime,
) -> Optional[models.NotificationRecord]:
    record = models.NotificationRecord(
        user_id=user_id,
        notification_type=notification_type,
        correlation_key=correlation_key,
        subject=subject,
        message_id=message_id,
        sent_at=sent_at,
    )
    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return None
    db.refresh(record)
    return record


def get_active_recurring_classes(db: Session) -> list[models.GymClass]:
    return (
        db.query(models.GymClass)
        .filter_by(is_active=True, is_recurring=True)
        .order_by(models.GymClass.day_of_week, models.GymClass.start_time)
        .all()
    )


def class_session_exists(db: Session, class_id: UUID, session_date: datetime.date) -> bool:
    return db.query(
        db.query(models.ClassSession)
        .filter_by(class_id=class_id, session_date=session_date)
        .exists()
    ).scalar()


def get_member_bookings(
    db: Session,
    user_id: UUID,
    status: Optional[BookingStatus] = None,
    from_date: Optional[datetime.date] = None,
    offset: int = 0,
    limit: int = 10,
) -> tuple[list[models.Booking], int]:
    query = (
        db.query(models.Booking)
        .join(
            models.ClassSession,
            models.ClassSession.id == models.Booking.class_session_id,
        )
        .filter(models.Booking.user_id == user_id)
    )
    if status is not None:
        query = query.filter(models.Booking.booking_status == status)
    if from_date is not None:
        query = query.filter(models.ClassSession.session_date >= from_date)
    total = query.count()
    bookings = (
        query.order_by(
            models.ClassSession.session_date.desc(),
            models.ClassSession.start_time.desc(),
        )
        .offset(offset)
        .limit(limit)
        .all()
    )
    return bookings, total


def get_class_sessions(
    db: Session,
    from_date: datetime.date,
    to_date: Optional[datetime.date] = None,
    class_id: Optional[UUID] = None,
    status: Optional[SessionStatus] = None,
    offset: int = 0,
    limit: int = 10,
) -> tuple[list[tuple[models.ClassSession, models.GymClass]], int]:
    query = (
        db.query(models.ClassSession, models.GymClass)
        .join(models.GymClass, models.GymClass.id == models.ClassSession.class_id)
        .filter(models.ClassSession.session_date >= from_date)
    )
    if to_date is not None:
        query = query.filter(models.ClassSession.session_date <= to_date)
    if class_id is not None:
        query = query.filter(models.ClassSession.class_id == class_id)
    if status is not None:
        query = query.filter(models.ClassSession.status == status)
    total = query.count()
    rows = (
        query.order_by(
            models.ClassSession.session_date, models.ClassSession.start_time
        )
        .offset(offset)
        .limit(limit)
        .all()
    )
    return [(s, c) for s, c in rows], total


def get_attendance_records(
    db: Session,
    user_id: Optional[UUID] = None,
    session_id: Optional[UUID] = None,
    from_date: Optional[datetime.date] = None,
    to_date: Optional[datetime.date] = None,
    offset: int = 0,
    limit: int = 10,
) -> tuple[list[models.Attendance], int]:
    query = db.query(models.Attendance).join(
        models.ClassSession,
        models.ClassSession.id == models.Attendance.class_session_id,
    )
    if user_id is not None:
        query = query.filter(models.Attendance.user_id == user_id)
    if session_id is not None:
        query = query.filter(models.Attendance.class_session_id == session_id)
    if from_date is not None:
        query = query.filter(models.ClassSession.session_date >= from_date)
    if to_date is not None:
        query = query.filter(models.ClassSession.session_date <= to_date)
    total = query.count()
    records = (
        query.order_by(models.Attendance.check_in_time.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return records, total
