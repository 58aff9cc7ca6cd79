import typer
import uvicorn

from dojobook.api import api
from dojobook.cli.cron import cron_cli
from dojobook.cli.notifications import notifications_cli
from dojobook.cli.sessions import sessions_cli
from dojobook.database.database import init_db
from dojobook.utils.logging_utils import log

cli = typer.Typer()
cli.add_typer(sessions_cli, name="sessions", help="Manage class sessions")
cli.add_typer(
    notifications_cli, name="notifications", help="Send member notifications"
)
cli.add_typer(cron_cli, name="cron", help="Manage cron jobs for the periodic sweeps")


@cli.command(
    name="api",
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
    },  # Enabled to support uvicorn options
)
def serve_api(ctx: typer.Context):
    """
    Start a web server

    Actually a wrapper around uvicorn, and supports passing additional options to the underlying uvicorn.run() command.
    """
    ctx.args.insert(0, f"{api.__name__}:api")
    uvicorn.main.main(args=ctx.args)


@cli.command(name="init-db")
def init_db_cli():
    """
    Create any missing database tables
    """
    init_db()
    log.info(":heavy_check_mark: Database tables created")


@cli.callback()
def callback():
    """
    Class session booking and attendance for gyms
    """
