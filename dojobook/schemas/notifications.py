from dojobook.schemas.base import CamelModel


class SweepResults(CamelModel):
    missed_class_notifications: int = 0
    class_reminders: int = 0
    errors: list[str] = []
