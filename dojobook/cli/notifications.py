import typer

from dojobook.database.database import SessionLocal
from dojobook.notify.sender import AppriseNotificationSender
from dojobook.notify.sweep import run_notification_sweep
from dojobook.schemas.config.config import read_app_config
from dojobook.utils.logging_utils import log
from dojobook.utils.time_utils import Clock

notifications_cli = typer.Typer()


@notifications_cli.command(name="sweep")
def notification_sweep_cli():
    """
    Send missed class notifications and reminders for tomorrow's classes
    """
    app_config = read_app_config()
    sender = AppriseNotificationSender(app_config.notifications.email)
    with SessionLocal() as db:
        results = run_notification_sweep(
            db, app_config, sender, Clock(app_config.booking.timezone).now()
        )
    for error in results.errors:
        log.error(error)
    if len(results.errors) > 0:
        raise typer.Exit(1)
