"""Logging setup for the CLI and dashboard entry points.

Library modules only create ``logging.getLogger(__name__)`` loggers; the
entry points call ``configure_logging`` once to route them through Rich
on stderr.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "opsboard-rich"


def configure_logging(level: str = "INFO", console: Console | None = None) -> None:
    """Install a single Rich handler on the ``opsboard`` logger.

    Calling this again replaces the level and handler instead of stacking
    duplicates.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level!r}")

    root = logging.getLogger("opsboard")
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(numeric)
