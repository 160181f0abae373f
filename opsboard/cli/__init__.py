"""opsboard CLI — Typer-based command-line interface.

Provides the ``opsboard`` command with subcommands for pushing status
updates, archiving finished pipelines, viewing the board and history,
and managing email sequence subscribers.

All output uses Rich for formatted terminal display.
"""
