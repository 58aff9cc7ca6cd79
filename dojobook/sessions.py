import datetime
from typing import Optional, Union
from uuid import UUID

from dateutil import rrule
from sqlalchemy.orm import Session

from dojobook import models
from dojobook.database import crud
from dojobook.errors import SessionError
from dojobook.models import SessionStatus
from dojobook.utils.logging_utils import log
from dojobook.utils.time_utils import session_end

# sessions only ever move forward, COMPLETED and CANCELLED are terminal
SESSION_TRANSITIONS: dict[SessionStatus, set[SessionStatus]] = {
    SessionStatus.SCHEDULED: {
        SessionStatus.ONGOING,
        SessionStatus.COMPLETED,
        SessionStatus.CANCELLED,
    },
    SessionStatus.ONGOING: {SessionStatus.COMPLETED},
    SessionStatus.COMPLETED: set(),
    SessionStatus.CANCELLED: set(),
}


def can_transition_session(current: SessionStatus, target: SessionStatus) -> bool:
    return target in SESSION_TRANSITIONS[current]


def transition_session(
    db: Session, session_id: UUID, target: SessionStatus
) -> Optional[SessionError]:
    """
    Move a session to `target` without committing.

    The status change is a compare-and-set against every status allowed to
    reach `target`, so a concurrent transition can never be undone.
    """
    sources = [s for s, targets in SESSION_TRANSITIONS.items() if target in targets]
    if crud.update_session_status(db, session_id, sources, target):
        log.debug(f"Session {session_id} is now {target.value}")
        return None
    session = crud.get_class_session(db, session_id, refresh=True)
    if session is None:
        return SessionError.SESSION_NOT_FOUND
    if session.status == target:
        return None
    return SessionError.INVALID_TRANSITION


def start_session(db: Session, session_id: UUID) -> Optional[SessionError]:
    return transition_session(db, session_id, SessionStatus.ONGOING)


def cancel_session(
    db: Session, session_id: UUID, reason: Optional[str] = None
) -> Union[models.ClassSession, SessionError]:
    session = crud.get_class_session(db, session_id)
    if session is None:
        return SessionError.SESSION_NOT_FOUND
    if session.status != SessionStatus.SCHEDULED:
        return SessionError.INVALID_TRANSITION
    error = transition_session(db, session_id, SessionStatus.CANCELLED)
    if error is not None:
        db.rollback()
        return error
    if reason is not None:
        session.notes = reason
    db.commit()
    db.refresh(session)
    log.info(f"Cancelled session {session_id}")
    return session


def complete_elapsed_sessions(
    db: Session, now: datetime.datetime
) -> list[models.ClassSession]:
    completed = []
    for session in crud.get_unfinished_sessions_until(db, now.date()):
        if now <= session_end(session):
            continue
        if transition_session(db, session.id, SessionStatus.COMPLETED) is None:
            completed.append(session)
    db.commit()
    for session in completed:
        db.refresh(session)
    if len(completed) > 0:
        log.info(
            f"Completed {len(completed)} elapsed session{'s' if len(completed) > 1 else ''}"
        )
    return completed


def generate_sessions(
    db: Session, start_date: datetime.date, weeks: int
) -> list[models.ClassSession]:
    """
    Create one independent SCHEDULED session per active recurring class and
    matching weekday, for `weeks` weeks from `start_date`.

    Dates that already have a session of the class are left untouched.
    """
    classes = crud.get_active_recurring_classes(db)
    if len(classes) == 0:
        log.warning("No active recurring classes, no sessions to generate")
        return []
    dtstart = datetime.datetime.combine(start_date, datetime.time.min)
    until = dtstart + datetime.timedelta(days=weeks * 7 - 1)
    created = []
    for gym_class in classes:
        for occurrence in rrule.rrule(
            rrule.WEEKLY, byweekday=gym_class.day_of_week, dtstart=dtstart, until=until
        ):
            date = occurrence.date()
            if crud.class_session_exists(db, gym_class.id, date):
                continue
            session = models.ClassSession(
                class_id=gym_class.id,
                session_date=date,
                start_time=gym_class.start_time,
                end_time=gym_class.end_time,
                max_capacity=gym_class.max_capacity,
                current_bookings=0,
                status=SessionStatus.SCHEDULED,
            )
            db.add(session)
            created.append(session)
            log.debug(f"Created session of '{gym_class.name}' on {date.isoformat()}")
    db.commit()
    for session in created:
        db.refresh(session)
    created.sort(key=lambda s: (s.session_date, s.start_time))
    log.info(
        f"Generated {len(created)} new session{'s' if len(created) != 1 else ''} "
        f"for {len(classes)} active class{'es' if len(classes) != 1 else ''}"
    )
    return created
