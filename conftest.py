import datetime
import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import pytest

_config_dir = Path(tempfile.mkdtemp(prefix="dojobook-test-"))
_config_file = _config_dir / "config.json"
_config_file.write_text(
    json.dumps(
        {
            "is_development": True,
            "database_connection_string": f"sqlite:///{_config_dir / 'app.db'}",
            "gym_name": "Test Dojo",
            "booking": {"timezone": "UTC"},
        }
    )
)
# must be set before any dojobook module reads the config
os.environ["DOJOBOOK_CONFIG_FILE"] = str(_config_file)

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from dojobook import models  # noqa: E402
from dojobook.errors import SendError  # noqa: E402
from dojobook.models import (  # noqa: E402
    MemberRole,
    MembershipStatus,
    SessionStatus,
)
from dojobook.schemas.config.app import AppConfig  # noqa: E402
from dojobook.utils.time_utils import FixedClock  # noqa: E402

# a Monday
NOW = datetime.datetime(2026, 3, 2, 12, 0)


class RecordingNotificationSender:
    """Keeps sent messages in memory instead of delivering them."""

    def __init__(self, failing_recipients: Optional[set[str]] = None):
        self.sent: list[tuple[str, str, str]] = []
        self.failing_recipients = failing_recipients or set()

    def send(self, to: Optional[str], subject: str, body: str) -> Union[str, SendError]:
        if to is None:
            return SendError.NO_RECIPIENT
        if to in self.failing_recipients:
            return SendError.TRANSPORT_FAILED
        self.sent.append((to, subject, body))
        return f"message-{len(self.sent)}"


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    models.Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(
        database_connection_string="sqlite://",
        gym_name="Test Dojo",
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def sender() -> RecordingNotificationSender:
    return RecordingNotificationSender()


@pytest.fixture
def make_member(db):
    def _make_member(
        name: str = "Ada Lovelace",
        email: Optional[str] = None,
        role: MemberRole = MemberRole.MEMBER,
        membership_status: MembershipStatus = MembershipStatus.ACTIVE,
        is_on_bench: bool = False,
    ) -> models.Member:
        member = models.Member(
            name=name,
            email=email if email is not None else f"{name.split()[0].lower()}@example.com",
            role=role,
            membership_status=membership_status,
            is_on_bench=is_on_bench,
        )
        db.add(member)
        db.commit()
        db.refresh(member)
        return member

    return _make_member


@pytest.fixture
def gym_class(db) -> models.GymClass:
    gym_class = models.GymClass(
        name="Fundamentals",
        day_of_week=NOW.weekday(),
        start_time=datetime.time(18, 0),
        end_time=datetime.time(19, 30),
        max_capacity=20,
    )
    db.add(gym_class)
    db.commit()
    db.refresh(gym_class)
    return gym_class


@pytest.fixture
def make_session(db, gym_class):
    def _make_session(
        starts_at: datetime.datetime = NOW + datetime.timedelta(hours=6),
        duration: datetime.timedelta = datetime.timedelta(hours=1, minutes=30),
        max_capacity: int = 20,
        current_bookings: int = 0,
        status: SessionStatus = SessionStatus.SCHEDULED,
    ) -> models.ClassSession:
        session = models.ClassSession(
            class_id=gym_class.id,
            session_date=starts_at.date(),
            start_time=starts_at.time(),
            end_time=(starts_at + duration).time(),
            max_capacity=max_capacity,
            current_bookings=current_bookings,
            status=status,
        )
        db.add(session)
        db.commit()
        db.refresh(session)
        return session

    return _make_session


@pytest.fixture
def now() -> datetime.datetime:
    return NOW


@pytest.fixture
def make_sender():
    return RecordingNotificationSender
