"""``opsboard history`` — list archived pipeline runs."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from opsboard.config import config
from opsboard.core.history_store import HistoryStore
from opsboard.monitor.renderer import BoardRenderer

console = Console()


def history_cmd(
    pipeline: str = typer.Option(
        None,
        "--pipeline",
        "-p",
        help="Only show runs of this pipeline id.",
    ),
    limit: int = typer.Option(
        config.history_limit,
        "--limit",
        "-n",
        min=1,
        help="Maximum number of runs to show.",
    ),
    db: Path = typer.Option(
        config.db_path,
        "--db",
        "-d",
        help="Path to the opsboard SQLite database.",
    ),
) -> None:
    """Show archived pipeline runs, newest first."""
    store = HistoryStore(db)
    records = store.list_records(pipeline_id=pipeline, limit=limit)
    renderer = BoardRenderer(console=console)
    console.print(renderer.render_history(records, store.stats()))

    if pipeline is None:
        ids = store.pipeline_ids()
        if ids:
            console.print(f"[dim]Filter with --pipeline: {escape(', '.join(ids[:10]))}[/dim]")
