import datetime
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor

from dojobook import models
from dojobook.attendance import check_in, check_out, update_attendance
from dojobook.booking import cancel_booking, create_booking, mark_no_show
from dojobook.database import crud
from dojobook.errors import BookingError, CheckInError
from dojobook.models import (
    AttendanceStatus,
    BookingStatus,
    MemberRole,
    SessionStatus,
)
from dojobook.sessions import cancel_session


def _book(db, config, now, member, session):
    booking = create_booking(db, config, member.id, session.id, now)
    assert not isinstance(booking, BookingError)
    return booking


def test_check_in(db, config, now, make_member, make_session):
    member = make_member()
    session = make_session(starts_at=now + datetime.timedelta(hours=6))
    booking = _book(db, config, now, member, session)
    arrived_at = now + datetime.timedelta(hours=5, minutes=50)

    attendance = check_in(db, member.id, session.id, arrived_at)

    assert not isinstance(attendance, CheckInError)
    assert attendance.attendance_status == AttendanceStatus.PRESENT
    assert attendance.check_in_time == arrived_at
    assert attendance.booking_id == booking.id
    db.refresh(booking)
    assert booking.booking_status == BookingStatus.CHECKED_IN
    assert booking.check_in_time == arrived_at
    db.refresh(session)
    assert session.status == SessionStatus.ONGOING
    progress = crud.get_member_progress(db, member.id)
    assert progress.total_classes_attended == 1
    assert progress.last_attendance_date == arrived_at


def test_late_check_in(db, config, now, make_member, make_session):
    member = make_member()
    session = make_session(starts_at=now + datetime.timedelta(hours=6))
    _book(db, config, now, member, session)

    attendance = check_in(
        db, member.id, session.id, now + datetime.timedelta(hours=6, minutes=10)
    )

    assert attendance.attendance_status == AttendanceStatus.LATE


def test_second_check_in_keeps_session_ongoing(
    db, config, now, make_member, make_session
):
    ada = make_member()
    grace = make_member("Grace Hopper")
    session = make_session()
    _book(db, config, now, ada, session)
    _book(db, config, now, grace, session)

    assert not isinstance(check_in(db, ada.id, session.id, now), CheckInError)
    assert not isinstance(check_in(db, grace.id, session.id, now), CheckInError)

    db.refresh(session)
    assert session.status == SessionStatus.ONGOING


def test_check_in_twice(db, config, now, make_member, make_session):
    member = make_member()
    session = make_session()
    _book(db, config, now, member, session)

    assert not isinstance(check_in(db, member.id, session.id, now), CheckInError)
    assert check_in(db, member.id, session.id, now) == CheckInError.ALREADY_CHECKED_IN
    assert crud.get_member_progress(db, member.id).total_classes_attended == 1


def test_check_in_without_booking(db, now, make_member, make_session):
    member = make_member()
    session = make_session()
    assert check_in(db, member.id, session.id, now) == CheckInError.NO_BOOKING_FOUND
    assert check_in(db, member.id, uuid.uuid4(), now) == CheckInError.NO_BOOKING_FOUND


def test_check_in_after_cancellation(db, config, now, make_member, make_session):
    member = make_member()
    session = make_session()
    booking = _book(db, config, now, member, session)
    cancel_booking(db, config, booking.id, member.id, now)

    assert check_in(db, member.id, session.id, now) == CheckInError.NO_BOOKING_FOUND


def test_check_in_to_cancelled_session(db, config, now, make_member, make_session):
    member = make_member()
    session = make_session()
    _book(db, config, now, member, session)
    cancel_session(db, session.id, "Coach is sick")

    assert (
        check_in(db, member.id, session.id, now) == CheckInError.SESSION_NOT_CHECKABLE
    )


def test_check_in_after_no_show(db, config, now, make_member, make_session):
    member = make_member()
    session = make_session()
    booking = _book(db, config, now, member, session)
    session.status = SessionStatus.COMPLETED
    db.commit()
    mark_no_show(db, booking.id)

    assert check_in(db, member.id, session.id, now) == CheckInError.NO_BOOKING_FOUND


def test_cancel_after_check_in_keeps_attendance(
    db, config, now, make_member, make_session
):
    member = make_member()
    coach = make_member("Carl Coach", role=MemberRole.COACH)
    session = make_session()
    booking = _book(db, config, now, member, session)
    attendance = check_in(db, member.id, session.id, now)

    cancelled = cancel_booking(db, config, booking.id, coach.id, now)

    assert cancelled.booking_status == BookingStatus.CANCELLED
    assert crud.get_attendance(db, attendance.id) is not None
    assert crud.get_member_progress(db, member.id).total_classes_attended == 1
    db.refresh(session)
    assert session.current_bookings == 0


def test_check_out(db, config, now, make_member, make_session):
    ada = make_member()
    grace = make_member("Grace Hopper")
    session = make_session(
        starts_at=now + datetime.timedelta(hours=6),
        duration=datetime.timedelta(hours=1, minutes=30),
    )
    _book(db, config, now, ada, session)
    _book(db, config, now, grace, session)
    arrived_at = now + datetime.timedelta(hours=5, minutes=55)
    ada_attendance = check_in(db, ada.id, session.id, arrived_at)
    grace_attendance = check_in(db, grace.id, session.id, arrived_at)

    left_early = check_out(
        db, config, ada_attendance.id, now + datetime.timedelta(hours=7)
    )
    stayed = check_out(
        db, config, grace_attendance.id, now + datetime.timedelta(hours=7, minutes=20)
    )

    assert left_early.attendance_status == AttendanceStatus.LEFT_EARLY
    assert left_early.check_out_time == now + datetime.timedelta(hours=7)
    assert stayed.attendance_status == AttendanceStatus.PRESENT
    assert (
        check_out(db, config, ada_attendance.id, now + datetime.timedelta(hours=8))
        == CheckInError.ALREADY_CHECKED_OUT
    )
    assert (
        check_out(db, config, uuid.uuid4(), now) == CheckInError.ATTENDANCE_NOT_FOUND
    )


def test_rejected_check_in_leaves_no_trace(
    db, config, now, make_member, make_session
):
    member = make_member()
    session = make_session()
    cancelled = make_session(starts_at=now + datetime.timedelta(days=1))
    _book(db, config, now, member, cancelled)
    cancel_session(db, cancelled.id)

    assert check_in(db, member.id, session.id, now) == CheckInError.NO_BOOKING_FOUND
    assert (
        check_in(db, member.id, cancelled.id, now) == CheckInError.SESSION_NOT_CHECKABLE
    )

    assert db.query(models.MemberProgress).filter_by(user_id=member.id).all() == []
    assert db.query(models.Attendance).count() == 0


def test_check_in_adds_to_existing_progress(
    db, config, now, make_member, make_session
):
    member = make_member()
    db.add(
        models.MemberProgress(
            user_id=member.id,
            total_classes_attended=41,
            last_attendance_date=now - datetime.timedelta(days=3),
        )
    )
    db.commit()
    session = make_session()
    _book(db, config, now, member, session)

    check_in(db, member.id, session.id, now)

    progress = crud.get_member_progress(db, member.id)
    db.refresh(progress)
    assert progress.total_classes_attended == 42
    assert progress.last_attendance_date == now


def test_concurrent_check_ins(
    db, session_factory, config, now, make_member, make_session
):
    member = make_member()
    session = make_session()
    _book(db, config, now, member, session)
    barrier = threading.Barrier(2)

    def arrive(_):
        with session_factory() as thread_db:
            barrier.wait()
            result = check_in(thread_db, member.id, session.id, now)
            return result if isinstance(result, CheckInError) else result.id

    with ThreadPoolExecutor(max_workers=2) as executor:
        results = list(executor.map(arrive, range(2)))

    assert len([r for r in results if not isinstance(r, CheckInError)]) == 1
    assert CheckInError.ALREADY_CHECKED_IN in results
    assert db.query(models.Attendance).filter_by(user_id=member.id).count() == 1
    assert crud.get_member_progress(db, member.id).total_classes_attended == 1


def test_update_attendance(db, config, now, make_member, make_session):
    member = make_member()
    session = make_session()
    _book(db, config, now, member, session)
    attendance = check_in(db, member.id, session.id, now)

    noted = update_attendance(db, attendance.id, notes="Rolled with a knee brace")
    assert noted.notes == "Rolled with a knee brace"
    assert noted.attendance_status == AttendanceStatus.PRESENT

    corrected = update_attendance(
        db, attendance.id, attendance_status=AttendanceStatus.LATE
    )
    assert corrected.notes == "Rolled with a knee brace"
    assert corrected.attendance_status == AttendanceStatus.LATE
    assert (
        update_attendance(db, uuid.uuid4(), notes="x")
        == CheckInError.ATTENDANCE_NOT_FOUND
    )
