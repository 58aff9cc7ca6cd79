"""
Scheduled member notifications.

The sweep is safe to run repeatedly: a message is only sent when no matching
notification record exists, and a record is only written after a successful
send, so failed sends are retried on the next run.
"""
import datetime

from apprise import NotifyType
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dojobook import models
from dojobook.database import crud
from dojobook.errors import SendError
from dojobook.models import NotificationType
from dojobook.notify.apprise import aprs
from dojobook.notify.messages import class_reminder_message, missed_class_message
from dojobook.notify.sender import NotificationSender
from dojobook.schemas.config.app import AppConfig
from dojobook.schemas.notifications import SweepResults
from dojobook.utils.apprise_utils import aprs_ctx
from dojobook.utils.logging_utils import log
from dojobook.utils.str_utils import pluralize


def _notify(
    db: Session,
    sender: NotificationSender,
    member: models.Member,
    notification_type: NotificationType,
    correlation_key: str,
    subject: str,
    body: str,
    now: datetime.datetime,
    results: SweepResults,
) -> bool:
    send_result = sender.send(member.email, subject, body)
    if isinstance(send_result, SendError):
        log.error(
            f"Failed to send {notification_type.value} notification to '{member.name}' ({send_result.name})"
        )
        results.errors.append(
            f"Failed to send {notification_type.value} notification to {member.email or member.name}"
        )
        return False
    record = crud.create_notification_record(
        db,
        member.id,
        notification_type,
        correlation_key,
        subject,
        send_result,
        now,
    )
    if record is None:
        log.warning(
            f"{notification_type.value} notification for '{member.name}' about {correlation_key} "
            "was already recorded"
        )
    return True


def process_missed_class_notifications(
    db: Session,
    config: AppConfig,
    sender: NotificationSender,
    now: datetime.datetime,
    results: SweepResults,
):
    notifications_config = config.notifications
    cutoff = now - datetime.timedelta(
        days=notifications_config.missed_class_notification_days_threshold
    )
    cooldown_start = now - datetime.timedelta(
        days=notifications_config.missed_class_cooldown_days
    )
    for member, progress in crud.get_members_absent_since(db, cutoff):
        if crud.has_notification(
            db, member.id, NotificationType.MISSED_CLASS, since=cooldown_start
        ):
            log.debug(f"'{member.name}' was recently notified about a missed class")
            continue
        missed = crud.get_last_missed_session(
            db,
            member.id,
            progress.last_attendance_date.date(),
            now.date(),
        )
        if missed is None:
            continue
        session, gym_class = missed
        correlation_key = str(session.id)
        if crud.has_notification(
            db,
            member.id,
            NotificationType.MISSED_CLASS,
            correlation_key=correlation_key,
        ):
            continue
        subject, body = missed_class_message(
            config.gym_name, member.name, gym_class.name, session.session_date
        )
        if _notify(
            db,
            sender,
            member,
            NotificationType.MISSED_CLASS,
            correlation_key,
            subject,
            body,
            now,
            results,
        ):
            results.missed_class_notifications += 1


def process_class_reminders(
    db: Session,
    config: AppConfig,
    sender: NotificationSender,
    now: datetime.datetime,
    results: SweepResults,
):
    tomorrow = now.date() + datetime.timedelta(days=1)
    lookback_start = now - datetime.timedelta(
        hours=config.notifications.reminder_lookback_hours
    )
    for session, gym_class, booking, member in crud.get_reminder_candidates(
        db, tomorrow
    ):
        correlation_key = str(session.id)
        if crud.has_notification(
            db,
            member.id,
            NotificationType.CLASS_REMINDER,
            since=lookback_start,
            correlation_key=correlation_key,
        ):
            continue
        subject, body = class_reminder_message(
            config.gym_name,
            member.name,
            gym_class.name,
            session.session_date,
            session.start_time,
        )
        if _notify(
            db,
            sender,
            member,
            NotificationType.CLASS_REMINDER,
            correlation_key,
            subject,
            body,
            now,
            results,
        ):
            results.class_reminders += 1


def run_notification_sweep(
    db: Session,
    config: AppConfig,
    sender: NotificationSender,
    now: datetime.datetime,
) -> SweepResults:
    results = SweepResults()
    for name, process in [
        ("missed class notifications", process_missed_class_notifications),
        ("class reminders", process_class_reminders),
    ]:
        try:
            process(db, config, sender, now, results)
        except SQLAlchemyError as e:
            db.rollback()
            log.exception(f"Error processing {name}")
            results.errors.append(f"Error processing {name}: {e}")
    log.info(
        f"Notification sweep sent {pluralize(results.missed_class_notifications, 'missed class notification')} "
        f"and {pluralize(results.class_reminders, 'class reminder')}"
    )
    if len(results.errors) > 0:
        with aprs_ctx(errors=results.errors) as error_ctx:
            aprs.notify(
                notify_type=NotifyType.WARNING,
                title="Notification sweep errors",
                body=f"Notification sweep finished with {pluralize(len(results.errors), 'error')}",
                attach=[error_ctx],
            )
    return results
