"""``opsboard update-state`` and ``opsboard archive``.

``update-state`` takes a full dashboard state document, as an argument
or piped on stdin, archives any pipeline that has just finished, and
replaces the live document.  ``archive`` re-runs only the archival step
against the document already stored.
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from opsboard.config import config
from opsboard.core.history_store import HistoryStore
from opsboard.core.state_store import LiveStateStore
from opsboard.core.status_update import StateDocumentError, StatusUpdater

console = Console()


def _build_updater(db_path: Path) -> StatusUpdater:
    return StatusUpdater(LiveStateStore(db_path), HistoryStore(db_path))


def _read_input(state_json: str | None) -> str:
    if state_json:
        return state_json
    if not sys.stdin.isatty():
        return sys.stdin.read()
    return ""


def update_state_cmd(
    state_json: str = typer.Argument(
        None,
        help="Full state JSON document. Read from stdin when omitted.",
        show_default=False,
    ),
    db: Path = typer.Option(
        config.db_path,
        "--db",
        "-d",
        help="Path to the opsboard SQLite database.",
    ),
) -> None:
    """Replace the live dashboard state, archiving finished pipelines first."""
    raw = _read_input(state_json)
    if not raw.strip():
        console.print(
            "[bold red]Error:[/bold red] Provide state JSON as an argument or via stdin."
        )
        console.print("[dim]Usage: opsboard update-state '{\"kpis\": {...}, \"pipelines\": [...]}'[/dim]")
        raise typer.Exit(code=1)

    try:
        result = _build_updater(db).apply(raw)
    except StateDocumentError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    for record in result.archived:
        console.print(
            f"[cyan]Archived[/cyan] {escape(record.pipeline_id)} "
            f"({record.status.value}, {record.duration})"
        )
    console.print(
        f"[green]Dashboard state updated at "
        f"{result.updated_at.strftime('%Y-%m-%dT%H:%M:%SZ')}[/green]"
    )


def archive_cmd(
    db: Path = typer.Option(
        config.db_path,
        "--db",
        "-d",
        help="Path to the opsboard SQLite database.",
    ),
) -> None:
    """Archive finished pipelines found in the stored live state."""
    archived = _build_updater(db).archive_current()
    if not archived:
        console.print("[dim]Nothing to archive.[/dim]")
        return
    for record in archived:
        console.print(
            f"[cyan]Archived[/cyan] {escape(record.pipeline_id)} "
            f"({record.status.value}, {record.duration})"
        )
