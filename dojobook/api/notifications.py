from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dojobook.api.common import get_clock, get_db, verify_cron_secret
from dojobook.notify.sender import AppriseNotificationSender, NotificationSender
from dojobook.notify.sweep import run_notification_sweep
from dojobook.schemas.config.app import AppConfig
from dojobook.schemas.config.config import read_app_config
from dojobook.schemas.notifications import SweepResults
from dojobook.utils.time_utils import Clock

router = APIRouter()


def get_notification_sender(
    app_config: AppConfig = Depends(read_app_config),
) -> NotificationSender:
    return AppriseNotificationSender(app_config.notifications.email)


@router.post(
    "/notifications/process",
    response_model=SweepResults,
    dependencies=[Depends(verify_cron_secret)],
)
def process_notifications_api(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    app_config: AppConfig = Depends(read_app_config),
    sender: NotificationSender = Depends(get_notification_sender),
):
    return run_notification_sweep(db, app_config, sender, clock.now())
