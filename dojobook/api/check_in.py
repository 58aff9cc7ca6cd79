import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from starlette import status

from dojobook import attendance
from dojobook.api.common import error_response, get_actor, get_clock, get_db
from dojobook.database import crud
from dojobook.errors import BookingError, CheckInError
from dojobook.models import Member
from dojobook.schemas.booking import (
    AttendanceList,
    AttendanceOut,
    AttendanceUpdatePayload,
    CheckInPayload,
    Pagination,
)
from dojobook.schemas.config.app import AppConfig
from dojobook.schemas.config.config import read_app_config
from dojobook.utils.time_utils import Clock

router = APIRouter()


@router.post(
    "/check-in", response_model=AttendanceOut, status_code=status.HTTP_201_CREATED
)
def check_in_api(
    payload: CheckInPayload,
    actor: Member = Depends(get_actor),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    app_config: AppConfig = Depends(read_app_config),
):
    if payload.user_id != actor.id and not actor.is_staff:
        return error_response(BookingError.FORBIDDEN, app_config)
    notes = payload.notes
    if notes is None and payload.user_id != actor.id:
        notes = f"Checked in by {actor.name}"
    result = attendance.check_in(
        db, payload.user_id, payload.class_session_id, clock.now(), notes
    )
    if isinstance(result, CheckInError):
        return error_response(result, app_config)
    return AttendanceOut.model_validate(result)


@router.post("/attendance/{attendance_id}/check-out", response_model=AttendanceOut)
def check_out_api(
    attendance_id: UUID,
    actor: Member = Depends(get_actor),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    app_config: AppConfig = Depends(read_app_config),
):
    existing = crud.get_attendance(db, attendance_id)
    if existing is None:
        return error_response(CheckInError.ATTENDANCE_NOT_FOUND, app_config)
    if existing.user_id != actor.id and not actor.is_staff:
        return error_response(BookingError.FORBIDDEN, app_config)
    result = attendance.check_out(db, app_config, attendance_id, clock.now())
    if isinstance(result, CheckInError):
        return error_response(result, app_config)
    return AttendanceOut.model_validate(result)


@router.get("/attendance", response_model=AttendanceList)
def get_attendance_api(
    user_id: Optional[UUID] = Query(None, alias="userId"),
    class_session_id: Optional[UUID] = Query(None, alias="classSessionId"),
    date_from: Optional[datetime.date] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime.date] = Query(None, alias="dateTo"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: Member = Depends(get_actor),
    db: Session = Depends(get_db),
    app_config: AppConfig = Depends(read_app_config),
):
    if not actor.is_staff:
        # members only see their own attendance
        if user_id is not None and user_id != actor.id:
            return error_response(BookingError.FORBIDDEN, app_config)
        user_id = actor.id
    records, total = crud.get_attendance_records(
        db,
        user_id=user_id,
        session_id=class_session_id,
        from_date=date_from,
        to_date=date_to,
        offset=(page - 1) * limit,
        limit=limit,
    )
    return AttendanceList(
        attendance=[AttendanceOut.model_validate(a) for a in records],
        pagination=Pagination.of(page, limit, total),
    )


@router.put("/attendance/{attendance_id}", response_model=AttendanceOut)
def update_attendance_api(
    attendance_id: UUID,
    payload: AttendanceUpdatePayload,
    actor: Member = Depends(get_actor),
    db: Session = Depends(get_db),
    app_config: AppConfig = Depends(read_app_config),
):
    existing = crud.get_attendance(db, attendance_id)
    if existing is None:
        return error_response(CheckInError.ATTENDANCE_NOT_FOUND, app_config)
    if existing.user_id != actor.id and not actor.is_staff:
        return error_response(BookingError.FORBIDDEN, app_config)
    # members may annotate their own attendance, only staff correct its status
    if payload.attendance_status is not None and not actor.is_staff:
        return error_response(BookingError.FORBIDDEN, app_config)
    result = attendance.update_attendance(
        db, attendance_id, payload.notes, payload.attendance_status
    )
    if isinstance(result, CheckInError):
        return error_response(result, app_config)
    return AttendanceOut.model_validate(result)
