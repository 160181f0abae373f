"""``opsboard email ...`` — manage the email sequence subscribers."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from opsboard.config import config
from opsboard.core.email_tracker import (
    DuplicateSubscriberError,
    EmailTracker,
    SubscriberNotFoundError,
)
from opsboard.models.email import SubscriberStatus
from opsboard.monitor.renderer import BoardRenderer

console = Console()

email_app = typer.Typer(
    name="email",
    help="Email sequence tracker.",
    no_args_is_help=True,
    add_completion=False,
)

_DB_OPTION = typer.Option(
    config.db_path,
    "--db",
    "-d",
    help="Path to the opsboard SQLite database.",
)


def _resolve(tracker: EmailTracker, prefix: str) -> str:
    """Accept a full subscriber id or a unique prefix of one."""
    matches = [s.id for s in tracker.list_subscribers() if s.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        console.print(f"[bold red]No subscriber matches[/bold red] {escape(prefix)}")
    else:
        console.print(f"[bold red]Ambiguous id prefix[/bold red] {escape(prefix)}")
    raise typer.Exit(code=1)


@email_app.command("list", help="Show the funnel and subscribers.")
def list_cmd(
    stage: int = typer.Option(None, "--stage", "-s", min=1, max=8, help="Only this email stage."),
    status: SubscriberStatus = typer.Option(None, "--status", help="Only this status."),
    db: Path = _DB_OPTION,
) -> None:
    tracker = EmailTracker(db)
    subscribers = tracker.list_subscribers(stage=stage, status=status)
    console.print(
        BoardRenderer(console=console).render_email(
            subscribers, tracker.funnel_counts(), tracker.summary()
        )
    )


@email_app.command("add", help="Enroll a subscriber at email 1.")
def add_cmd(
    name: str = typer.Argument(..., help="Subscriber name."),
    email: str = typer.Argument(..., help="Subscriber email address."),
    signup_date: str = typer.Option(None, "--signup-date", help="YYYY-MM-DD, defaults to today."),
    db: Path = _DB_OPTION,
) -> None:
    tracker = EmailTracker(db)
    try:
        signed_up = date.fromisoformat(signup_date) if signup_date else None
    except ValueError:
        console.print(f"[bold red]Invalid date:[/bold red] {escape(signup_date)}")
        raise typer.Exit(code=1)
    try:
        sub = tracker.add_subscriber(name, email, signed_up)
    except DuplicateSubscriberError as exc:
        console.print(f"[bold red]{escape(str(exc))}[/bold red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Subscribed[/green] {escape(sub.email)} [dim]({sub.id})[/dim]")


@email_app.command("advance", help="Record the current email as sent and move on.")
def advance_cmd(
    subscriber_id: str = typer.Argument(..., help="Subscriber id or unique prefix."),
    db: Path = _DB_OPTION,
) -> None:
    tracker = EmailTracker(db)
    sub_id = _resolve(tracker, subscriber_id)
    send = tracker.advance_stage(sub_id)
    if send is None:
        console.print("[yellow]Subscriber has already reached the final email.[/yellow]")
        return
    sub = tracker.get(sub_id)
    console.print(
        f"[green]Sent email {send.email_number}[/green] ({send.stage_label}); "
        f"now on {sub.current_stage} ({sub.stage_label}), {sub.status.value}"
    )


def _set_status(subscriber_id: str, status: SubscriberStatus, db: Path) -> None:
    tracker = EmailTracker(db)
    sub_id = _resolve(tracker, subscriber_id)
    try:
        sub = tracker.set_status(sub_id, status)
    except SubscriberNotFoundError as exc:
        console.print(f"[bold red]{escape(str(exc))}[/bold red]")
        raise typer.Exit(code=1)
    console.print(f"{escape(sub.name)} is now [bold]{sub.status.value}[/bold]")


@email_app.command("pause", help="Pause a subscriber.")
def pause_cmd(
    subscriber_id: str = typer.Argument(..., help="Subscriber id or unique prefix."),
    db: Path = _DB_OPTION,
) -> None:
    _set_status(subscriber_id, SubscriberStatus.PAUSED, db)


@email_app.command("resume", help="Resume a paused subscriber.")
def resume_cmd(
    subscriber_id: str = typer.Argument(..., help="Subscriber id or unique prefix."),
    db: Path = _DB_OPTION,
) -> None:
    _set_status(subscriber_id, SubscriberStatus.ACTIVE, db)
