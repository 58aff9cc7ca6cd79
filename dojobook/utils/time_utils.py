import datetime

import pytz

from dojobook import models


class Clock:
    """
    Wall-clock source in the gym's local time.

    Session dates and times are stored as naive local wall-clock values, so all
    deadline arithmetic is done on naive datetimes in the gym timezone.
    """

    def __init__(self, timezone: str = "UTC"):
        self.timezone = pytz.timezone(timezone)

    def now(self) -> datetime.datetime:
        return datetime.datetime.now(self.timezone).replace(tzinfo=None)

    def today(self) -> datetime.date:
        return self.now().date()


class FixedClock(Clock):
    def __init__(self, now: datetime.datetime):
        super().__init__()
        self._now = now

    def now(self) -> datetime.datetime:
        return self._now

    def advance(self, delta: datetime.timedelta):
        self._now += delta


def session_start(session: models.ClassSession) -> datetime.datetime:
    return datetime.datetime.combine(session.session_date, session.start_time)


def session_end(session: models.ClassSession) -> datetime.datetime:
    end = datetime.datetime.combine(session.session_date, session.end_time)
    # classes running past midnight end on the following day
    if session.end_time <= session.start_time:
        end += datetime.timedelta(days=1)
    return end


def is_before_deadline(
    now: datetime.datetime, starts_at: datetime.datetime, hours: int
) -> bool:
    return now < starts_at - datetime.timedelta(hours=hours)


def readable_hours(hours: int):
    return f"{hours} hour{'s' if hours != 1 else ''}"
