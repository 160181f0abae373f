"""``opsboard monitor`` — show the operations board in the terminal.

Single-shot by default; ``--live`` keeps polling the live-state row at
the configured interval until Ctrl+C.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from opsboard.config import config
from opsboard.core.state_store import LiveStateStore
from opsboard.monitor.poller import PollState, StatePoller
from opsboard.monitor.projection import BoardProjection, ExpandState
from opsboard.monitor.renderer import BoardRenderer

console = Console()


def monitor_cmd(
    live: bool = typer.Option(
        False,
        "--live",
        "-L",
        help="Keep polling and re-rendering (Ctrl+C to exit).",
    ),
    interval: float = typer.Option(
        config.poll_interval_seconds,
        "--interval",
        "-i",
        min=0.5,
        help="Polling interval in seconds for live mode.",
    ),
    expand_all: bool = typer.Option(
        False,
        "--expand-all",
        "-e",
        help="Show finished pipelines expanded as well.",
    ),
    db: Path = typer.Option(
        config.db_path,
        "--db",
        "-d",
        help="Path to the opsboard SQLite database.",
    ),
) -> None:
    """Show the operations board.

    The board is a pure read-only projection over the live-state row.
    It never maintains its own state — every display re-reads the store.
    """
    store = LiveStateStore(db)
    renderer = BoardRenderer(console=console)

    if live:
        console.print(
            f"[dim]Polling every {interval:g}s. Press Ctrl+C to exit.[/dim]"
        )
        poller = StatePoller(lambda: store.read().state, interval_seconds=interval)
        renderer.render_live(poller, PollState())
        return

    board = BoardProjection(store).snapshot()
    expand_state = None
    if expand_all:
        expand_state = ExpandState(
            v.pipeline_id or v.name for v in board.finished
        )
    renderer.print_board(board, expand_state)
