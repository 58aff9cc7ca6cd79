import datetime
import uuid

from dojobook import models
from dojobook.errors import SessionError
from dojobook.models import SessionStatus
from dojobook.sessions import (
    can_transition_session,
    cancel_session,
    complete_elapsed_sessions,
    generate_sessions,
    start_session,
    transition_session,
)


def test_session_transitions():
    assert can_transition_session(SessionStatus.SCHEDULED, SessionStatus.ONGOING)
    assert can_transition_session(SessionStatus.SCHEDULED, SessionStatus.CANCELLED)
    assert can_transition_session(SessionStatus.ONGOING, SessionStatus.COMPLETED)
    assert not can_transition_session(SessionStatus.ONGOING, SessionStatus.CANCELLED)
    assert not can_transition_session(SessionStatus.COMPLETED, SessionStatus.ONGOING)
    for status in SessionStatus:
        assert not can_transition_session(SessionStatus.CANCELLED, status)


def test_transition_session(db, make_session):
    session = make_session()

    assert start_session(db, session.id) is None
    # starting an ongoing session again is a no-op
    assert start_session(db, session.id) is None
    db.commit()
    assert session.status == SessionStatus.ONGOING

    assert (
        transition_session(db, session.id, SessionStatus.CANCELLED)
        == SessionError.INVALID_TRANSITION
    )
    assert transition_session(db, session.id, SessionStatus.COMPLETED) is None
    db.commit()
    assert session.status == SessionStatus.COMPLETED
    assert start_session(db, session.id) == SessionError.INVALID_TRANSITION
    assert start_session(db, uuid.uuid4()) == SessionError.SESSION_NOT_FOUND


def test_cancel_session(db, make_session):
    scheduled = make_session()
    ongoing = make_session(
        starts_at=datetime.datetime(2026, 3, 3, 18, 0), status=SessionStatus.ONGOING
    )

    cancelled = cancel_session(db, scheduled.id, "Mat cleaning")

    assert not isinstance(cancelled, SessionError)
    assert cancelled.status == SessionStatus.CANCELLED
    assert cancelled.notes == "Mat cleaning"
    assert cancel_session(db, scheduled.id) == SessionError.INVALID_TRANSITION
    assert cancel_session(db, ongoing.id) == SessionError.INVALID_TRANSITION
    assert cancel_session(db, uuid.uuid4()) == SessionError.SESSION_NOT_FOUND


def test_complete_elapsed_sessions(db, now, make_session):
    ended = make_session(starts_at=now - datetime.timedelta(hours=3))
    ongoing_ended = make_session(
        starts_at=now - datetime.timedelta(days=1), status=SessionStatus.ONGOING
    )
    running = make_session(
        starts_at=now - datetime.timedelta(minutes=30), status=SessionStatus.ONGOING
    )
    upcoming = make_session(starts_at=now + datetime.timedelta(hours=6))
    cancelled = make_session(
        starts_at=now - datetime.timedelta(hours=5), status=SessionStatus.CANCELLED
    )

    completed = complete_elapsed_sessions(db, now)

    assert {s.id for s in completed} == {ended.id, ongoing_ended.id}
    assert ended.status == SessionStatus.COMPLETED
    assert ongoing_ended.status == SessionStatus.COMPLETED
    assert running.status == SessionStatus.ONGOING
    assert upcoming.status == SessionStatus.SCHEDULED
    assert cancelled.status == SessionStatus.CANCELLED
    assert complete_elapsed_sessions(db, now) == []


def test_generate_sessions(db, now, gym_class):
    inactive = models.GymClass(
        name="Open Mat",
        day_of_week=now.weekday(),
        start_time=datetime.time(10, 0),
        end_time=datetime.time(12, 0),
        max_capacity=30,
        is_active=False,
    )
    db.add(inactive)
    db.commit()

    created = generate_sessions(db, now.date(), weeks=2)

    assert [s.session_date for s in created] == [
        now.date(),
        now.date() + datetime.timedelta(weeks=1),
    ]
    for session in created:
        assert session.class_id == gym_class.id
        assert session.start_time == gym_class.start_time
        assert session.end_time == gym_class.end_time
        assert session.max_capacity == gym_class.max_capacity
        assert session.current_bookings == 0
        assert session.status == SessionStatus.SCHEDULED

    # existing dates are skipped
    more = generate_sessions(db, now.date(), weeks=3)
    assert [s.session_date for s in more] == [now.date() + datetime.timedelta(weeks=2)]
