import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dojobook import sessions
from dojobook.api.common import (
    error_response,
    get_actor,
    get_clock,
    get_db,
    get_staff_actor,
)
from dojobook.capacity import remaining_capacity
from dojobook.database import crud
from dojobook.errors import SessionError
from dojobook.models import Member, SessionStatus
from dojobook.schemas.booking import (
    ClassSessionList,
    ClassSessionOut,
    ClassSessionSummary,
    Pagination,
    SessionCancellationPayload,
)
from dojobook.schemas.config.app import AppConfig
from dojobook.schemas.config.config import read_app_config
from dojobook.utils.time_utils import Clock

router = APIRouter()


@router.get("/class-sessions", response_model=ClassSessionList)
def get_class_sessions_api(
    class_id: Optional[UUID] = Query(None, alias="classId"),
    date_from: Optional[datetime.date] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime.date] = Query(None, alias="dateTo"),
    session_status: Optional[SessionStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    _actor: Member = Depends(get_actor),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    # upcoming sessions unless a start date is given
    rows, total = crud.get_class_sessions(
        db,
        date_from if date_from is not None else clock.today(),
        to_date=date_to,
        class_id=class_id,
        status=session_status,
        offset=(page - 1) * limit,
        limit=limit,
    )
    return ClassSessionList(
        sessions=[
            ClassSessionSummary(
                **ClassSessionOut.model_validate(session).model_dump(),
                class_name=gym_class.name,
                remaining_capacity=remaining_capacity(session),
            )
            for session, gym_class in rows
        ],
        pagination=Pagination.of(page, limit, total),
    )


@router.post("/sessions/{session_id}/cancel", response_model=ClassSessionOut)
def cancel_session_api(
    session_id: UUID,
    payload: SessionCancellationPayload,
    _staff: Member = Depends(get_staff_actor),
    db: Session = Depends(get_db),
    app_config: AppConfig = Depends(read_app_config),
):
    result = sessions.cancel_session(db, session_id, payload.reason)
    if isinstance(result, SessionError):
        return error_response(result, app_config)
    return ClassSessionOut.model_validate(result)
