from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from starlette import status

from dojobook import models
from dojobook.database import crud
from dojobook.database.database import SessionLocal
from dojobook.errors import (
    BookingError,
    CheckInError,
    DomainError,
    SessionError,
    error_message,
)
from dojobook.schemas.booking import ErrorOut
from dojobook.schemas.config.app import AppConfig
from dojobook.schemas.config.config import read_app_config
from dojobook.settings import Settings, get_settings
from dojobook.utils.time_utils import Clock


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_clock(app_config: AppConfig = Depends(read_app_config)) -> Clock:
    return Clock(app_config.booking.timezone)


# Scheme for the Authorization header of scheduled jobs
cron_auth_scheme = HTTPBearer()


def verify_cron_secret(
    token: HTTPAuthorizationCredentials = Depends(cron_auth_scheme),
    settings: Settings = Depends(get_settings),
):
    if settings.CRON_SECRET is None or token.credentials != settings.CRON_SECRET:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def get_actor(
    x_user_id: Optional[UUID] = Header(None),
    db: Session = Depends(get_db),
) -> models.Member:
    # the authenticating gateway in front of the api sets the user id header
    if x_user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    actor = crud.get_member(db, x_user_id)
    if actor is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return actor


def get_staff_actor(actor: models.Member = Depends(get_actor)) -> models.Member:
    if not actor.is_staff:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
    return actor


ERROR_STATUS_CODES: dict[DomainError, int] = {
    BookingError.SESSION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    BookingError.BOOKING_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    BookingError.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    BookingError.ALREADY_BOOKED: status.HTTP_409_CONFLICT,
    BookingError.SESSION_FULL: status.HTTP_409_CONFLICT,
    BookingError.ALREADY_TERMINAL: status.HTTP_409_CONFLICT,
    BookingError.ALREADY_CHECKED_IN: status.HTTP_409_CONFLICT,
    CheckInError.ATTENDANCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    CheckInError.ALREADY_CHECKED_IN: status.HTTP_409_CONFLICT,
    CheckInError.ALREADY_CHECKED_OUT: status.HTTP_409_CONFLICT,
    SessionError.SESSION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    SessionError.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
}


def error_response(error: DomainError, app_config: AppConfig) -> JSONResponse:
    return JSONResponse(
        status_code=ERROR_STATUS_CODES.get(error, status.HTTP_400_BAD_REQUEST),
        content=ErrorOut(
            code=error.name,
            message=error_message(
                error,
                app_config.booking.booking_deadline_hours,
                app_config.booking.cancellation_deadline_hours,
            ),
        ).model_dump(by_alias=True),
    )
