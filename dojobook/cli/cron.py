from datetime import datetime

import humanize
import typer
from cron_descriptor import CasingTypeEnum  # type: ignore[import-untyped]
from crontab import CronTab
from tabulate import tabulate

from dojobook.utils.cron_utils import install_sweep_cron_jobs

cron_cli = typer.Typer()


@cron_cli.command(name="init")
def initialize_cron():
    """
    Install the cron jobs for the session and notification sweeps
    """
    with CronTab(user=True) as crontab:
        if not install_sweep_cron_jobs(crontab):
            raise typer.Exit(1)


@cron_cli.callback(invoke_without_command=True)
def list_cron_jobs(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Include more details about each cron job"
    ),
):
    if ctx.invoked_subcommand is not None:
        return
    with CronTab(user=True) as crontab:
        print_table_data: list[tuple[datetime | None, str, str]] = []
        for j in crontab:
            description = j.description(
                use_24hour_time_format=True, casing_type=CasingTypeEnum.LowerCase
            )
            if not j.is_valid():
                print_table_data.append((None, f"{j.comment} (invalid)", description))
                continue
            if not j.is_enabled():
                print_table_data.append((None, f"{j.comment} (disabled)", description))
                continue
            next_run: datetime = j.schedule(date_from=datetime.now()).get_next()
            print_table_data.append((next_run, j.comment, description))
        # jobs without a next run are listed last
        print_table_data.sort(key=lambda x: (x[0] is None, x[0] or datetime.max))
        print_table = []
        for next_run, comment, description in print_table_data:
            row = [humanize.naturaltime(next_run) if next_run else None, comment]
            print_table.append(row + [next_run, description] if verbose else row)
        headers = ["until next run", "comment"]
        if verbose:
            headers.extend(["next run timestamp", "description"])
        print(
            tabulate(
                print_table,
                headers=headers,
                tablefmt="rounded_outline",
            )
        )
