"""Main Typer application — imports and registers all CLI commands.

Entry point: ``opsboard`` (configured via pyproject.toml scripts).

Commands: update-state, archive, monitor, history, email, ui.
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

import typer

from opsboard.cli.commands.email_cmd import email_app
from opsboard.cli.commands.history_cmd import history_cmd
from opsboard.cli.commands.monitor_cmd import monitor_cmd
from opsboard.cli.commands.update_state import archive_cmd, update_state_cmd
from opsboard.config import config
from opsboard.observability import configure_logging

app = typer.Typer(
    name="opsboard",
    help="opsboard: operations status board with pipeline history and email tracking.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        config.log_level,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    ),
) -> None:
    """Configure logging before any command runs."""
    try:
        configure_logging("DEBUG" if config.debug else log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--log-level")


# Register subcommands
app.command(name="update-state", help="Replace the live dashboard state (JSON arg or stdin).")(update_state_cmd)
app.command(name="archive", help="Archive finished pipelines from the stored live state.")(archive_cmd)
app.command(name="monitor", help="Show the operations board.")(monitor_cmd)
app.command(name="history", help="List archived pipeline runs.")(history_cmd)
app.add_typer(email_app, name="email")


@app.command(name="ui", help="Launch the Streamlit dashboard.")
def ui_cmd(
    db: Path = typer.Option(
        config.db_path, "--db", "-d", help="Path to the opsboard SQLite database."
    ),
    port: int = typer.Option(config.port, help="Port to serve the dashboard on."),
) -> None:
    """Launch the opsboard web dashboard (requires the ``dashboard`` extra)."""
    from opsboard.dashboard import DASHBOARD_SCRIPT, HAS_STREAMLIT

    if not HAS_STREAMLIT:
        typer.echo("Streamlit is required for the dashboard.")
        typer.echo("Install with: pip install opsboard[dashboard]")
        raise typer.Exit(code=1)

    command = [
        sys.executable, "-m", "streamlit", "run", str(DASHBOARD_SCRIPT),
        "--server.port", str(port),
        "--server.address", config.host,
    ]
    env = {**os.environ, "OPSBOARD_DB_PATH": str(db)}
    raise typer.Exit(code=subprocess.call(command, env=env))


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
