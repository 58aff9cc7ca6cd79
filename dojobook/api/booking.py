from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from starlette import status

from dojobook import booking as booking_lifecycle
from dojobook.api.common import (
    error_response,
    get_actor,
    get_clock,
    get_db,
    get_staff_actor,
)
from dojobook.database import crud
from dojobook.errors import BookingError
from dojobook.models import BookingStatus, Member
from dojobook.schemas.booking import (
    BookingCancellationPayload,
    BookingList,
    BookingOut,
    BookingPayload,
    Pagination,
)
from dojobook.schemas.config.app import AppConfig
from dojobook.schemas.config.config import read_app_config
from dojobook.utils.logging_utils import log
from dojobook.utils.time_utils import Clock

router = APIRouter()


@router.get("/bookings", response_model=BookingList)
def get_bookings_api(
    user_id: Optional[UUID] = Query(None, alias="userId"),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    upcoming: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: Member = Depends(get_actor),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    app_config: AppConfig = Depends(read_app_config),
):
    member_id = user_id if user_id is not None else actor.id
    if member_id != actor.id and not actor.is_staff:
        return error_response(BookingError.FORBIDDEN, app_config)
    bookings, total = crud.get_member_bookings(
        db,
        member_id,
        status=booking_status,
        from_date=clock.today() if upcoming else None,
        offset=(page - 1) * limit,
        limit=limit,
    )
    return BookingList(
        bookings=[BookingOut.model_validate(b) for b in bookings],
        pagination=Pagination.of(page, limit, total),
    )


@router.post(
    "/bookings", response_model=BookingOut, status_code=status.HTTP_201_CREATED
)
def create_booking_api(
    payload: BookingPayload,
    actor: Member = Depends(get_actor),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    app_config: AppConfig = Depends(read_app_config),
):
    log.debug(f"Booking session {payload.class_session_id} for '{actor.name}'...")
    result = booking_lifecycle.create_booking(
        db, app_config, actor.id, payload.class_session_id, clock.now()
    )
    if isinstance(result, BookingError):
        return error_response(result, app_config)
    return BookingOut.model_validate(result)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingOut)
def cancel_booking_api(
    booking_id: UUID,
    payload: BookingCancellationPayload,
    actor: Member = Depends(get_actor),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    app_config: AppConfig = Depends(read_app_config),
):
    log.debug(f"Cancelling booking {booking_id} on behalf of '{actor.name}'...")
    result = booking_lifecycle.cancel_booking(
        db, app_config, booking_id, actor.id, clock.now(), payload.reason
    )
    if isinstance(result, BookingError):
        return error_response(result, app_config)
    return BookingOut.model_validate(result)


@router.post("/bookings/{booking_id}/no-show", response_model=BookingOut)
def mark_no_show_api(
    booking_id: UUID,
    _staff: Member = Depends(get_staff_actor),
    db: Session = Depends(get_db),
    app_config: AppConfig = Depends(read_app_config),
):
    result = booking_lifecycle.mark_no_show(db, booking_id)
    if isinstance(result, BookingError):
        return error_response(result, app_config)
    return BookingOut.model_validate(result)
