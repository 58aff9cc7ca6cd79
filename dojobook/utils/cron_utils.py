from crontab import CronItem, CronTab

from dojobook.schemas.config.app import Cron
from dojobook.schemas.config.config import read_app_config
from dojobook.settings import get_settings
from dojobook.utils.logging_utils import log

# (command, schedule, comment) of the periodic jobs driving the session lifecycle
SWEEP_JOBS = [
    ("sessions complete", "*/15 * * * *", "complete elapsed sessions"),
    ("sessions no-shows", "30 0 * * *", "mark no-shows"),
    ("sessions generate", "0 3 * * 1", "generate upcoming sessions"),
    ("notifications sweep", "0 9 * * *", "notification sweep"),
]


def generate_cron_cli_command_prefix(cron_config: Cron) -> str:
    return f"cd {cron_config.dojobook_dir} || exit 1; {cron_config.python_path}/dojobook "


def generate_cron_cli_command_logging_suffix(cron_config: Cron) -> str:
    return f" >> {cron_config.log_path} 2>&1"


def generate_cron_cli_command(command: str, cron_config: Cron) -> str:
    return (
        f"{generate_cron_cli_command_prefix(cron_config)}"
        f"{command}"
        f"{generate_cron_cli_command_logging_suffix(cron_config)}"
    )


def build_cron_comment(comment: str) -> str:
    return f"{get_settings().CRON_JOB_COMMENT_PREFIX} [{comment}]"


def upsert_cli_cron_job(
    crontab: CronTab,
    command: str,
    schedule: str,
    comment: str,
    cron_config: Cron,
):
    full_comment = build_cron_comment(comment)
    j = CronItem(
        command=generate_cron_cli_command(command, cron_config),
        comment=full_comment,
        pre_comment=True,
    )
    j.setall(schedule)
    crontab.remove_all(comment=full_comment)
    crontab.append(j)
    log.debug(f":heavy_check_mark: Cronjob '{comment}' created")


def install_sweep_cron_jobs(crontab: CronTab) -> bool:
    cron_config = read_app_config().cron
    if cron_config is None:
        log.error("Missing 'cron' section in config, no cron jobs installed")
        return False
    for command, schedule, comment in SWEEP_JOBS:
        upsert_cli_cron_job(crontab, command, schedule, comment, cron_config)
    return True
