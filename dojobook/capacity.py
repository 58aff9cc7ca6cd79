"""
Capacity accounting for class sessions.

`current_bookings` is only ever changed through the conditional updates below,
which let the database decide who gets the last slot. Neither function commits,
the calling booking transition owns the transaction.
"""
from typing import Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from dojobook import models
from dojobook.database import crud
from dojobook.errors import BookingError
from dojobook.utils.logging_utils import log


def reserve(db: Session, session_id: UUID) -> Optional[BookingError]:
    result = db.execute(
        update(models.ClassSession)
        .where(
            models.ClassSession.id == session_id,
            models.ClassSession.current_bookings < models.ClassSession.max_capacity,
        )
        .values(current_bookings=models.ClassSession.current_bookings + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        log.debug(f"No capacity left in session {session_id}")
        return BookingError.SESSION_FULL
    return None


def release(db: Session, session_id: UUID) -> Optional[BookingError]:
    result = db.execute(
        update(models.ClassSession)
        .where(
            models.ClassSession.id == session_id,
            models.ClassSession.current_bookings > 0,
        )
        .values(current_bookings=models.ClassSession.current_bookings - 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        if crud.get_class_session(db, session_id) is None:
            return BookingError.SESSION_NOT_FOUND
        log.warning(
            f"Booking count of session {session_id} is already zero, nothing to release"
        )
    return None


def remaining_capacity(session: models.ClassSession) -> int:
    return max(session.max_capacity - session.current_bookings, 0)
