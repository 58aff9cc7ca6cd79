import os
from typing import Optional

from dojobook.schemas.base import CamelOrmBase, OrmBase

CONFIG_FILE = os.environ.get("DOJOBOOK_CONFIG_FILE", "config.json")


class Booking(OrmBase):
    timezone: str = "UTC"
    booking_deadline_hours: int = 2
    cancellation_deadline_hours: int = 4


class Attendance(OrmBase):
    # checking out earlier than this before the scheduled end counts as leaving early
    left_early_threshold_minutes: int = 15


class Sessions(OrmBase):
    generation_weeks: int = 4


class Cron(OrmBase):
    dojobook_dir: str
    python_path: str
    log_path: str


class Apprise(CamelOrmBase):
    config_file: str


class Email(CamelOrmBase):
    # apprise notification url for member emails, "{to}" is replaced by the recipient address
    url: str


class Notifications(CamelOrmBase):
    missed_class_notification_days_threshold: int = 14
    missed_class_cooldown_days: int = 7
    reminder_lookback_hours: int = 24
    apprise: Optional[Apprise] = None
    email: Optional[Email] = None


class AppConfig(OrmBase):
    is_development: bool = False
    database_connection_string: str
    allowed_origins: list[str] = []
    gym_name: str = "dojobook"
    booking: Booking = Booking()
    attendance: Attendance = Attendance()
    sessions: Sessions = Sessions()
    cron: Optional[Cron] = None
    notifications: Notifications = Notifications()
