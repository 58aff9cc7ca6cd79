import datetime
import enum
import uuid
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Enum,
    ForeignKey,
    Index,
    SmallInteger,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from dojobook.utils.typing_utils import small_integer


class MemberRole(enum.Enum):
    MEMBER = "MEMBER"
    COACH = "COACH"
    ADMIN = "ADMIN"


class MembershipStatus(enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    CANCELLED = "CANCELLED"


class SessionStatus(enum.Enum):
    SCHEDULED = "SCHEDULED"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class BookingStatus(enum.Enum):
    BOOKED = "BOOKED"
    CHECKED_IN = "CHECKED_IN"
    NO_SHOW = "NO_SHOW"
    CANCELLED = "CANCELLED"


class AttendanceStatus(enum.Enum):
    PRESENT = "PRESENT"
    LATE = "LATE"
    LEFT_EARLY = "LEFT_EARLY"


class NotificationType(enum.Enum):
    MISSED_CLASS = "MISSED_CLASS"
    CLASS_REMINDER = "CLASS_REMINDER"


class Base(DeclarativeBase):
    type_annotation_map = {
        uuid.UUID: Uuid(as_uuid=True),
        small_integer: SmallInteger,
        MemberRole: Enum(MemberRole),
        MembershipStatus: Enum(MembershipStatus),
        SessionStatus: Enum(SessionStatus),
        BookingStatus: Enum(BookingStatus),
        AttendanceStatus: Enum(AttendanceStatus),
        NotificationType: Enum(NotificationType),
    }


class Member(Base):
    __tablename__ = "members"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, index=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column()
    email: Mapped[Optional[str]] = mapped_column(unique=True)
    role: Mapped[MemberRole] = mapped_column(default=MemberRole.MEMBER)
    membership_status: Mapped[MembershipStatus] = mapped_column(
        default=MembershipStatus.ACTIVE
    )
    is_on_bench: Mapped[bool] = mapped_column(default=False)

    @property
    def is_staff(self) -> bool:
        return self.role in (MemberRole.COACH, MemberRole.ADMIN)

    def __repr__(self):
        return (
            f"<Member (id='{self.id}' name='{self.name}' role='{self.role}' "
            f"membership_status='{self.membership_status}' is_on_bench={self.is_on_bench})>"
        )


class GymClass(Base):
    __tablename__ = "gym_classes"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, index=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column()
    day_of_week: Mapped[small_integer] = mapped_column(
        CheckConstraint(
            "day_of_week >= 0 AND day_of_week <= 6", name="check_day_of_week_range"
        ),
    )
    start_time: Mapped[datetime.time] = mapped_column()
    end_time: Mapped[datetime.time] = mapped_column()
    max_capacity: Mapped[int] = mapped_column(
        CheckConstraint("max_capacity > 0", name="check_class_max_capacity_positive"),
    )
    is_active: Mapped[bool] = mapped_column(default=True)
    is_recurring: Mapped[bool] = mapped_column(default=True)

    def __repr__(self):
        return (
            f"<GymClass (id='{self.id}' name='{self.name}' day_of_week={self.day_of_week} "
            f"start_time='{self.start_time}' max_capacity={self.max_capacity})>"
        )


class ClassSession(Base):
    __tablename__ = "class_sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, index=True, default=uuid.uuid4
    )
    class_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("gym_classes.id", ondelete="cascade"), index=True
    )
    session_date: Mapped[datetime.date] = mapped_column(index=True)
    start_time: Mapped[datetime.time] = mapped_column()
    end_time: Mapped[datetime.time] = mapped_column()
    max_capacity: Mapped[int] = mapped_column()
    current_bookings: Mapped[int] = mapped_column(default=0)
    status: Mapped[SessionStatus] = mapped_column(default=SessionStatus.SCHEDULED)
    notes: Mapped[Optional[str]] = mapped_column()

    __table_args__ = (
        CheckConstraint("max_capacity > 0", name="check_max_capacity_positive"),
        CheckConstraint(
            "current_bookings >= 0 AND current_bookings <= max_capacity",
            name="check_current_bookings_range",
        ),
        UniqueConstraint(
            "class_id",
            "session_date",
            "start_time",
            name="unique_class_session",
        ),
    )

    def __repr__(self):
        return (
            f"<ClassSession (id='{self.id}' class_id='{self.class_id}' session_date='{self.session_date}' "
            f"start_time='{self.start_time}' status='{self.status}' "
            f"bookings={self.current_bookings}/{self.max_capacity})>"
        )


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, index=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("members.id", ondelete="cascade"), index=True
    )
    class_session_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("class_sessions.id", ondelete="cascade"), index=True
    )
    booking_status: Mapped[BookingStatus] = mapped_column(
        default=BookingStatus.BOOKED
    )
    booking_date: Mapped[datetime.datetime] = mapped_column()
    check_in_time: Mapped[Optional[datetime.datetime]] = mapped_column()
    cancellation_time: Mapped[Optional[datetime.datetime]] = mapped_column()
    cancellation_reason: Mapped[Optional[str]] = mapped_column()

    __table_args__ = (
        # cancelled bookings are kept as history, so only live ones must be unique
        Index(
            "unique_live_booking",
            "user_id",
            "class_session_id",
            unique=True,
            sqlite_where=text("booking_status != 'CANCELLED'"),
            postgresql_where=text("booking_status != 'CANCELLED'"),
        ),
    )

    def __repr__(self):
        return (
            f"<Booking (id='{self.id}' user_id='{self.user_id}' class_session_id='{self.class_session_id}' "
            f"booking_status='{self.booking_status}')>"
        )


class Attendance(Base):
    __tablename__ = "attendance"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, index=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("members.id", ondelete="cascade")
    )
    class_session_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("class_sessions.id", ondelete="cascade")
    )
    booking_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("bookings.id", ondelete="set null")
    )
    check_in_time: Mapped[datetime.datetime] = mapped_column()
    check_out_time: Mapped[Optional[datetime.datetime]] = mapped_column()
    attendance_status: Mapped[AttendanceStatus] = mapped_column()
    notes: Mapped[Optional[str]] = mapped_column()

    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "class_session_id",
            name="unique_attendance",
        ),
    )

    def __repr__(self):
        return (
            f"<Attendance (id='{self.id}' user_id='{self.user_id}' class_session_id='{self.class_session_id}' "
            f"attendance_status='{self.attendance_status}' "
            f"check_in_time='{self.check_in_time.isoformat() if self.check_in_time is not None else None}')>"
        )


class MemberProgress(Base):
    __tablename__ = "member_progress"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("members.id", ondelete="cascade"), primary_key=True
    )
    total_classes_attended: Mapped[int] = mapped_column(default=0)
    last_attendance_date: Mapped[Optional[datetime.datetime]] = mapped_column()

    def __repr__(self):
        return (
            f"<MemberProgress (user_id='{self.user_id}' total_classes_attended={self.total_classes_attended} "
            f"last_attendance_date='{self.last_attendance_date.isoformat() if self.last_attendance_date is not None else None}')>"
        )


class NotificationRecord(Base):
    __tablename__ = "notification_records"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, index=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("members.id", ondelete="cascade"), index=True
    )
    notification_type: Mapped[NotificationType] = mapped_column()
    # id of the class session the notification is about
    correlation_key: Mapped[str] = mapped_column()
    subject: Mapped[str] = mapped_column()
    message_id: Mapped[Optional[str]] = mapped_column()
    sent_at: Mapped[datetime.datetime] = mapped_column()

    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "notification_type",
            "correlation_key",
            name="unique_notification",
        ),
    )

    def __repr__(self):
        return (
            f"<NotificationRecord (user_id='{self.user_id}' notification_type='{self.notification_type}' "
            f"correlation_key='{self.correlation_key}' sent_at='{self.sent_at.isoformat()}')>"
        )
