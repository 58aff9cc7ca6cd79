import datetime
import math
from typing import Optional
from uuid import UUID

from dojobook.models import AttendanceStatus, BookingStatus, SessionStatus
from dojobook.schemas.base import CamelModel, CamelOrmBase


class BookingPayload(CamelModel):
    class_session_id: UUID


class BookingCancellationPayload(CamelModel):
    reason: Optional[str] = None


class CheckInPayload(CamelModel):
    user_id: UUID
    class_session_id: UUID
    notes: Optional[str] = None


class SessionCancellationPayload(CamelModel):
    reason: Optional[str] = None


class BookingOut(CamelOrmBase):
    id: UUID
    user_id: UUID
    class_session_id: UUID
    booking_status: BookingStatus
    booking_date: datetime.datetime
    check_in_time: Optional[datetime.datetime] = None
    cancellation_time: Optional[datetime.datetime] = None
    cancellation_reason: Optional[str] = None


class AttendanceOut(CamelOrmBase):
    id: UUID
    user_id: UUID
    class_session_id: UUID
    check_in_time: datetime.datetime
    check_out_time: Optional[datetime.datetime] = None
    attendance_status: AttendanceStatus
    notes: Optional[str] = None


class ClassSessionOut(CamelOrmBase):
    id: UUID
    class_id: UUID
    session_date: datetime.date
    start_time: datetime.time
    end_time: datetime.time
    max_capacity: int
    current_bookings: int
    status: SessionStatus
    notes: Optional[str] = None


class ErrorOut(CamelModel):
    code: str
    message: str


class AttendanceUpdatePayload(CamelModel):
    notes: Optional[str] = None
    attendance_status: Optional[AttendanceStatus] = None


class ClassSessionSummary(ClassSessionOut):
    class_name: str
    remaining_capacity: int


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def of(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class BookingList(CamelModel):
    bookings: list[BookingOut]
    pagination: Pagination


class ClassSessionList(CamelModel):
    sessions: list[ClassSessionSummary]
    pagination: Pagination


class AttendanceList(CamelModel):
    attendance: list[AttendanceOut]
    pagination: Pagination
