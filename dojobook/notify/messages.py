import datetime

from dojobook.utils.str_utils import first_name

DATE_FORMAT = "%A %d %B %Y"


def missed_class_message(
    gym_name: str, member_name: str, class_name: str, session_date: datetime.date
) -> tuple[str, str]:
    subject = f"Missed Class Reminder - {gym_name}"
    body = "\n".join(
        [
            f"Hi {first_name(member_name)},",
            "",
            f"We noticed you missed the {class_name} class on "
            f"{session_date.strftime(DATE_FORMAT)}. We hope everything is okay!",
            "",
            "Regular training is key to progress, and we'd love to see you back on the mats soon.",
            "",
            "- Check the class schedule for upcoming sessions",
            "- Book your next class through the booking system",
            "- Reach out if you're dealing with an injury or need a break",
            "",
            f"See you soon,\n{gym_name}",
        ]
    )
    return subject, body


def class_reminder_message(
    gym_name: str,
    member_name: str,
    class_name: str,
    session_date: datetime.date,
    start_time: datetime.time,
) -> tuple[str, str]:
    subject = f"Class Reminder - {gym_name}"
    body = "\n".join(
        [
            f"Hi {first_name(member_name)},",
            "",
            "This is a friendly reminder that you have a class booked for tomorrow:",
            "",
            f"{class_name}",
            f"Date: {session_date.strftime(DATE_FORMAT)}",
            f"Time: {start_time.strftime('%H:%M')}",
            "",
            "Remember to bring your training gear and water. "
            "If you can no longer make it, please cancel your booking so someone else can take the spot.",
            "",
            f"See you on the mats,\n{gym_name}",
        ]
    )
    return subject, body
