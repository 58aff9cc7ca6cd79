import datetime
from typing import Optional
from uuid import UUID

import typer
from tabulate import tabulate

from dojobook import booking, sessions
from dojobook.database.database import SessionLocal
from dojobook.errors import SessionError, error_message
from dojobook.schemas.config.config import read_app_config
from dojobook.utils.logging_utils import log
from dojobook.utils.time_utils import Clock

sessions_cli = typer.Typer()


@sessions_cli.command(name="generate")
def generate_sessions_cli(
    weeks: Optional[int] = typer.Option(
        None, help="Number of weeks to generate sessions for"
    ),
    start: Optional[datetime.datetime] = typer.Option(
        None, formats=["%Y-%m-%d"], help="First date to generate (defaults to tomorrow)"
    ),
):
    """
    Generate upcoming sessions from the active recurring classes
    """
    app_config = read_app_config()
    start_date = (
        start.date()
        if start is not None
        else Clock(app_config.booking.timezone).today() + datetime.timedelta(days=1)
    )
    with SessionLocal() as db:
        created = sessions.generate_sessions(
            db,
            start_date,
            weeks if weeks is not None else app_config.sessions.generation_weeks,
        )
        if len(created) > 0:
            print(
                tabulate(
                    [
                        [s.session_date.isoformat(), s.start_time.strftime("%H:%M"), s.max_capacity]
                        for s in created
                    ],
                    headers=["date", "start", "capacity"],
                    tablefmt="rounded_outline",
                )
            )


@sessions_cli.command(name="complete")
def complete_sessions_cli():
    """
    Complete every session that has ended
    """
    app_config = read_app_config()
    with SessionLocal() as db:
        sessions.complete_elapsed_sessions(
            db, Clock(app_config.booking.timezone).now()
        )


@sessions_cli.command(name="no-shows")
def mark_no_shows_cli():
    """
    Mark bookings of completed sessions without a check-in as no-shows
    """
    with SessionLocal() as db:
        marked = booking.mark_no_shows(db)
        if len(marked) == 0:
            log.debug("No bookings to mark as no-show")


@sessions_cli.command(name="cancel")
def cancel_session_cli(
    session_id: UUID,
    reason: Optional[str] = typer.Option(None, help="Reason shown to staff"),
):
    """
    Cancel a scheduled session
    """
    with SessionLocal() as db:
        result = sessions.cancel_session(db, session_id, reason)
    if isinstance(result, SessionError):
        log.error(error_message(result))
        raise typer.Exit(1)
