"""Rich terminal renderer for the operations board.

Turns ``BoardView``, history records and email funnel data into Rich
renderables, with an optional continuous ``Rich.Live`` mode.

Style tables are keyed by enum member and indexed directly.  Adding a
status without a style raises ``KeyError`` at render time (and fails the
coverage tests) instead of rendering a blank cell.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from opsboard.core.timeutil import parse_timestamp, time_ago, utc_now
from opsboard.models.dashboard import ServiceStatus, Severity, TaskStatus
from opsboard.models.email import SEQUENCE_STAGES, SubscriberStatus
from opsboard.models.pipeline import PipelineStatus
from opsboard.monitor.projection import (
    BoardView,
    ExpandState,
    PipelineView,
    StageTag,
    project_board,
)

if TYPE_CHECKING:
    from opsboard.models.email import EmailSummary, Subscriber
    from opsboard.models.history import HistoryRecord, HistoryStats
    from opsboard.monitor.poller import PollState, StatePoller


# ---------------------------------------------------------------------------
# Enum -> Rich style mapping
# ---------------------------------------------------------------------------

_PIPELINE_STYLES: dict[PipelineStatus, str] = {
    PipelineStatus.RUNNING: "bold bright_green",
    PipelineStatus.COMPLETE: "bold green",
    PipelineStatus.FAILED: "bold red",
}

_STAGE_MARKUP: dict[StageTag, str] = {
    StageTag.DONE: "[green]✓ {name}[/green]",
    StageTag.CURRENT: "[bold bright_green]● {name}[/bold bright_green]",
    StageTag.PENDING: "[dim]○ {name}[/dim]",
    StageTag.FAILED_HERE: "[bold red]✗ {name}[/bold red]",
}

_TASK_STYLES: dict[TaskStatus, str] = {
    TaskStatus.RUNNING: "bright_green",
    TaskStatus.QUEUED: "dim",
    TaskStatus.PAUSED: "yellow",
}

_SEVERITY_STYLES: dict[Severity, str] = {
    Severity.CRITICAL: "bold bright_red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "dim",
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "green",
}

_SEVERITY_ICONS: dict[Severity, str] = {
    Severity.CRITICAL: "🔴",
    Severity.HIGH: "🟠",
    Severity.MEDIUM: "🟡",
    Severity.LOW: "⚪",
    Severity.ERROR: "🔴",
    Severity.WARNING: "🟡",
    Severity.INFO: "🟢",
}

_SERVICE_STYLES: dict[ServiceStatus, str] = {
    ServiceStatus.CONNECTED: "green",
    ServiceStatus.DEGRADED: "yellow",
    ServiceStatus.DISCONNECTED: "bold red",
}

_SUBSCRIBER_STYLES: dict[SubscriberStatus, str] = {
    SubscriberStatus.ACTIVE: "bright_green",
    SubscriberStatus.PAUSED: "yellow",
    SubscriberStatus.COMPLETED: "dim",
}

# Display labels for well-known system keys; others are shown as-is.
SYSTEM_LABELS: dict[str, str] = {
    "xApi": "X API",
    "braveSearch": "Brave Search",
    "elevenlabs": "ElevenLabs",
    "vercel": "Vercel",
    "supabase": "Supabase",
    "metaAds": "Meta Ads",
    "email": "Email",
}


def _fmt_time(value: datetime | str | None) -> str:
    parsed = parse_timestamp(value)
    return parsed.strftime("%H:%M") if parsed else "-"


def _fmt_datetime(value: datetime | str | None) -> str:
    parsed = parse_timestamp(value)
    return parsed.strftime("%b %d %H:%M") if parsed else "-"


class BoardRenderer:
    """Renders the operations board as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Operations board
    # ------------------------------------------------------------------

    def render_board(
        self,
        board: BoardView,
        expand_state: ExpandState | None = None,
        countdown: float | None = None,
    ) -> Panel:
        """Render a ``BoardView`` as a single Rich Panel."""
        expand_state = expand_state or ExpandState()
        parts: list = [self._kpi_table(board), Text("")]

        if board.pipelines:
            for view in board.pipelines:
                parts.append(self.render_pipeline(view, expand_state.is_expanded(view)))
        else:
            parts.append(Text("No pipelines reported.", style="dim"))

        parts.extend([Text(""), self._active_tasks_table(board)])
        parts.extend([Text(""), self._completions_table(board)])
        parts.extend([Text(""), self._error_log_table(board)])
        parts.extend([Text(""), self._system_status_table(board)])

        subtitle = f"Updated {_fmt_datetime(board.last_updated)}"
        if countdown is not None:
            subtitle += f"  |  refresh in {int(countdown)}s"

        return Panel(
            Group(*parts),
            title="[bold]Operations Board[/bold]",
            subtitle=subtitle,
            border_style="green",
            padding=(1, 2),
        )

    def _kpi_table(self, board: BoardView) -> Table:
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("Active Agents", justify="center")
        table.add_column("Running Pipelines", justify="center")
        table.add_column("Tasks Completed Today", justify="center")
        table.add_column("Errors Today", justify="center")
        errors_style = "bold red" if board.kpis.errors_today else "green"
        table.add_row(
            f"[bold]{board.kpis.active_agents}[/bold]",
            f"[bold]{board.kpis.running_pipelines}[/bold]",
            f"[bold]{board.kpis.tasks_completed_today}[/bold]",
            f"[{errors_style}]{board.kpis.errors_today}[/{errors_style}]",
        )
        return table

    def render_pipeline(self, view: PipelineView, expanded: bool) -> Panel | Text:
        """One pipeline: a full panel when expanded, a summary line otherwise."""
        style = _PIPELINE_STYLES[view.status]
        header = (
            f"[{style}]{escape(view.name)}[/{style}]  "
            f"[{style}]{view.status.value.capitalize()}[/{style}]  "
            f"{view.completed_count}/{view.total_stages} stages ({view.completion_percent}%)"
        )
        if not expanded:
            return Text.from_markup(f"▸ {header}")

        stages = "  ".join(
            _STAGE_MARKUP[stage.tag].format(name=escape(stage.name)) for stage in view.stages
        )
        footer = f"[dim]Started {_fmt_datetime(view.started_at)}[/dim]"
        if view.current_stage:
            footer += f"[dim] · Active:[/dim] [bright_green]{escape(view.current_stage)}[/bright_green]"

        return Panel(
            Group(
                ProgressBar(total=100, completed=view.completion_percent),
                Text.from_markup(stages),
                Text.from_markup(footer),
            ),
            title=f"▾ {header}",
            title_align="left",
            border_style=style,
        )

    def _active_tasks_table(self, board: BoardView) -> Table:
        table = Table(title="Active Tasks", header_style="bold cyan", expand=True)
        table.add_column("Agent")
        table.add_column("Task")
        table.add_column("Status", justify="center")
        table.add_column("Started", justify="right")
        table.add_column("ETA", justify="right")
        for task in board.active_tasks:
            style = _TASK_STYLES[task.status]
            table.add_row(
                escape(task.agent_name),
                escape(task.task_description),
                f"[{style}]{task.status.value.capitalize()}[/{style}]",
                _fmt_time(task.started_at),
                _fmt_time(task.est_completion),
            )
        if not board.active_tasks:
            table.add_row("[dim]-[/dim]", "[dim]No active tasks[/dim]", "", "", "")
        return table

    def _completions_table(self, board: BoardView) -> Table:
        table = Table(title="Recent Completions", header_style="bold cyan", expand=True)
        table.add_column("Agent")
        table.add_column("Task")
        table.add_column("Completed", justify="right")
        table.add_column("Duration", justify="right")
        for item in board.recent_completions:
            table.add_row(
                escape(item.agent_name),
                escape(item.task_description),
                time_ago(item.completed_at, board.rendered_at),
                escape(item.duration or "-"),
            )
        return table

    def _error_log_table(self, board: BoardView) -> Table:
        table = Table(title="Error Log", header_style="bold cyan", expand=True)
        table.add_column("", width=2)
        table.add_column("Time", justify="right")
        table.add_column("Agent")
        table.add_column("Message")
        for entry in board.error_log:
            style = _SEVERITY_STYLES[entry.severity]
            table.add_row(
                _SEVERITY_ICONS[entry.severity],
                _fmt_time(entry.timestamp),
                escape(entry.agent),
                f"[{style}]{escape(entry.message)}[/{style}]",
            )
        if not board.error_log:
            table.add_row("", "", "", "[green]No errors[/green]")
        return table

    def _system_status_table(self, board: BoardView) -> Table:
        table = Table(title="Systems", header_style="bold cyan", expand=True)
        table.add_column("Service")
        table.add_column("Status", justify="center")
        for key, status in board.system_status.items():
            style = _SERVICE_STYLES[status]
            table.add_row(
                escape(SYSTEM_LABELS.get(key, key)),
                f"[{style}]{status.value}[/{style}]",
            )
        return table

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def render_history(
        self,
        records: list[HistoryRecord],
        stats: HistoryStats,
        now: datetime | None = None,
    ) -> Panel:
        """Render archived runs with the total/completed/failed header."""
        now = now or utc_now()
        failed_style = "bold red" if stats.failed else "green"
        header = Text.from_markup(
            f"[bold]Total Runs:[/bold] {stats.total}  |  "
            f"[bold]Completed:[/bold] [green]{stats.completed}[/green]  |  "
            f"[bold]Failed:[/bold] [{failed_style}]{stats.failed}[/{failed_style}]"
        )

        table = Table(header_style="bold cyan", expand=True)
        table.add_column("Pipeline")
        table.add_column("Status", justify="center")
        table.add_column("Duration", justify="right")
        table.add_column("Stages")
        table.add_column("Ended", justify="right")
        table.add_column("Tasks", justify="right")
        for record in records:
            style = _PIPELINE_STYLES[record.status]
            stages = " ".join(
                f"[green]✓ {escape(s)}[/green]" if s in record.completed_stages else f"[red]✗ {escape(s)}[/red]"
                for s in record.stages
            )
            table.add_row(
                escape(record.name),
                f"[{style}]{record.status.value.capitalize()}[/{style}]",
                escape(record.duration),
                stages,
                f"{_fmt_datetime(record.completed_at)} ({time_ago(record.completed_at, now)})",
                str(len(record.tasks)) if record.tasks else "[dim]0[/dim]",
            )
        if not records:
            table.add_row("[dim]No pipeline history found[/dim]", "", "", "", "", "")

        return Panel(
            Group(header, Text(""), table),
            title="[bold]Pipeline History[/bold]",
            border_style="blue",
            padding=(1, 2),
        )

    # ------------------------------------------------------------------
    # Email sequence
    # ------------------------------------------------------------------

    def render_email(
        self,
        subscribers: list[Subscriber],
        funnel: list[int],
        summary: EmailSummary,
    ) -> Panel:
        """Render the email funnel and the subscriber table."""
        header = Text.from_markup(
            f"[bold]Subscribers:[/bold] {summary.total_subscribers}  |  "
            f"[bold]Active:[/bold] [bright_green]{summary.active}[/bright_green]  |  "
            f"[bold]Completed:[/bold] {summary.completed}  |  "
            f"[bold]Emails Sent:[/bold] {summary.total_sent}"
        )

        peak = max(max(funnel, default=0), 1)
        funnel_table = Table(title="Sequence Funnel (active)", expand=True, show_header=False)
        funnel_table.add_column("Email", width=4, justify="right")
        funnel_table.add_column("Stage")
        funnel_table.add_column("Count", justify="right")
        funnel_table.add_column("Bar")
        for i, count in enumerate(funnel):
            bar = max(round(count / peak * 20), 1) if count else 0
            funnel_table.add_row(
                str(i + 1),
                SEQUENCE_STAGES[i],
                str(count),
                "[bright_green]" + "█" * bar + "[/bright_green]",
            )

        subs = Table(title="Subscribers", header_style="bold cyan", expand=True)
        subs.add_column("Name")
        subs.add_column("Email")
        subs.add_column("Signed Up")
        subs.add_column("Stage", justify="center")
        subs.add_column("Status", justify="center")
        subs.add_column("ID", style="dim")
        for sub in subscribers:
            style = _SUBSCRIBER_STYLES[sub.status]
            subs.add_row(
                escape(sub.name),
                escape(sub.email),
                sub.signup_date.isoformat(),
                f"{sub.current_stage}/{len(SEQUENCE_STAGES)} {sub.stage_label}",
                f"[{style}]{sub.status.value}[/{style}]",
                sub.id[:8],
            )

        return Panel(
            Group(header, Text(""), funnel_table, Text(""), subs),
            title="[bold]Email Sequence[/bold]",
            border_style="magenta",
            padding=(1, 2),
        )

    # ------------------------------------------------------------------
    # Continuous live rendering
    # ------------------------------------------------------------------

    def render_live(
        self,
        poller: StatePoller,
        poll_state: PollState,
        *,
        expand_state: ExpandState | None = None,
        tick_seconds: float = 1.0,
    ) -> PollState:
        """Continuously render the board in Rich Live mode.

        The poller re-reads the store whenever its interval elapses; the
        countdown ticks in between.  Press Ctrl+C to stop.  Returns the
        final poll state so the caller keeps ownership of it.
        """
        with Live(console=self.console, refresh_per_second=4, transient=False) as live:
            try:
                while True:
                    now = utc_now()
                    poll_state = poller.poll_if_due(poll_state, now)
                    if poll_state.state is not None:
                        board = project_board(poll_state.state, now)
                        live.update(
                            self.render_board(
                                board,
                                expand_state,
                                countdown=poller.seconds_until_refresh(poll_state, now),
                            )
                        )
                    else:
                        live.update(Text("Loading operations board...", style="green"))
                    time.sleep(tick_seconds)
            except KeyboardInterrupt:
                pass
        return poll_state

    # ------------------------------------------------------------------
    # Standalone print
    # ------------------------------------------------------------------

    def print_board(self, board: BoardView, expand_state: ExpandState | None = None) -> None:
        self.console.print(self.render_board(board, expand_state))
