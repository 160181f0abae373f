"""Pipeline projection — pure derived views over polled dashboard state.

The board is a PROJECTION of the live-state row.  It does not compute
truth, it displays it.  ``project()`` and ``project_board()`` are pure
functions of their inputs; ``BoardProjection`` re-reads the store on
every call and never caches.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from opsboard.core.timeutil import parse_timestamp, utc_now
from opsboard.models.dashboard import (
    ActiveTask,
    CompletedTask,
    DashboardState,
    ErrorLogEntry,
    ServiceStatus,
)
from opsboard.models.pipeline import DEFAULT_PIPELINE_NAME, PipelineSnapshot, PipelineStatus

if TYPE_CHECKING:
    from opsboard.core.state_store import LiveStateStore


class StageTag(str, Enum):
    """Display status of one stage within a pipeline."""

    DONE = "done"
    CURRENT = "current"
    PENDING = "pending"
    FAILED_HERE = "failed_here"


class StageView(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    tag: StageTag


class PipelineView(BaseModel):
    """Derived, render-ready view of a single pipeline snapshot."""

    model_config = ConfigDict(frozen=True)

    pipeline_id: str | None = None
    name: str
    status: PipelineStatus
    stages: list[StageView] = []
    completed_count: int = 0
    total_stages: int = 0
    completion_percent: int = 0
    current_stage: str | None = None
    started_at: datetime | None = None
    expanded: bool = False


def completion_percent(completed: int, total: int) -> int:
    """``round(100 * completed / total)`` rounding halves up, exactly.

    Returns 0 when *total* is not positive.
    """
    if total <= 0:
        return 0
    # floor(100k/n + 1/2) == floor((200k + n) / 2n)
    return (200 * completed + total) // (2 * total)


def tag_stage(stage: str, snapshot: PipelineSnapshot, completed: set[str]) -> StageTag:
    """Classify one stage of *snapshot*."""
    if stage in completed:
        return StageTag.DONE
    if stage == snapshot.current_stage:
        if snapshot.status is PipelineStatus.RUNNING:
            return StageTag.CURRENT
        if snapshot.status is PipelineStatus.FAILED:
            return StageTag.FAILED_HERE
    return StageTag.PENDING


def project(snapshot: PipelineSnapshot) -> PipelineView:
    """Project a snapshot into its render-ready view.

    Malformed input never raises: a ``current_stage`` outside ``stages``
    simply highlights nothing, and completed names outside ``stages``
    are not counted.
    """
    completed = set(snapshot.completed_stages)
    stage_views = [
        StageView(name=stage, tag=tag_stage(stage, snapshot, completed))
        for stage in snapshot.stages
    ]
    completed_count = sum(1 for view in stage_views if view.tag is StageTag.DONE)
    total = len(stage_views)

    current = None
    if (
        snapshot.status is PipelineStatus.RUNNING
        and snapshot.current_stage in snapshot.stages
    ):
        current = snapshot.current_stage

    return PipelineView(
        pipeline_id=snapshot.id,
        name=snapshot.name or DEFAULT_PIPELINE_NAME,
        status=snapshot.status,
        stages=stage_views,
        completed_count=completed_count,
        total_stages=total,
        completion_percent=completion_percent(completed_count, total),
        current_stage=current,
        started_at=parse_timestamp(snapshot.started_at),
        expanded=snapshot.status is PipelineStatus.RUNNING,
    )


class ExpandState:
    """Caller-owned expand/collapse toggles, keyed by pipeline.

    Toggling flips a pipeline away from its default (expanded while
    running, collapsed otherwise).  It only selects which rendering to
    show; the projected values are unaffected.
    """

    def __init__(self, toggled: Iterable[str] = ()) -> None:
        self._toggled: set[str] = set(toggled)

    @staticmethod
    def _key(view: PipelineView) -> str:
        return view.pipeline_id or view.name

    def toggle(self, view: PipelineView) -> bool:
        """Flip *view* and return its new expanded state."""
        key = self._key(view)
        if key in self._toggled:
            self._toggled.discard(key)
        else:
            self._toggled.add(key)
        return self.is_expanded(view)

    def is_expanded(self, view: PipelineView) -> bool:
        return view.expanded != (self._key(view) in self._toggled)


# ---------------------------------------------------------------------------
# Whole-board projection
# ---------------------------------------------------------------------------


class KpiView(BaseModel):
    model_config = ConfigDict(frozen=True)

    active_agents: int = 0
    tasks_completed_today: int = 0
    errors_today: int = 0
    running_pipelines: int = 0


class BoardView(BaseModel):
    """Everything the operations page shows, derived from one document."""

    model_config = ConfigDict(frozen=True)

    kpis: KpiView = KpiView()
    running: list[PipelineView] = []
    finished: list[PipelineView] = []
    active_tasks: list[ActiveTask] = []
    recent_completions: list[CompletedTask] = []
    error_log: list[ErrorLogEntry] = []
    system_status: dict[str, ServiceStatus] = {}
    last_updated: datetime | None = None
    rendered_at: datetime

    @property
    def pipelines(self) -> list[PipelineView]:
        return self.running + self.finished


def project_board(state: DashboardState, now: datetime | None = None) -> BoardView:
    """Project a full dashboard document.

    Running pipelines come first, then finished ones; input order is kept
    within each group.  When the document omits ``activeAgents``, the
    number of running pipelines stands in for it.
    """
    views = [project(snapshot) for snapshot in state.pipelines]
    running = [v for v in views if v.status is PipelineStatus.RUNNING]
    finished = [v for v in views if v.status is not PipelineStatus.RUNNING]

    active_agents = state.kpis.active_agents
    if active_agents is None:
        active_agents = len(running)

    return BoardView(
        kpis=KpiView(
            active_agents=active_agents,
            tasks_completed_today=state.kpis.tasks_completed_today,
            errors_today=state.kpis.errors_today,
            running_pipelines=len(running),
        ),
        running=running,
        finished=finished,
        active_tasks=list(state.active_tasks),
        recent_completions=list(state.recent_completions),
        error_log=list(state.error_log),
        system_status=dict(state.system_status),
        last_updated=parse_timestamp(state.last_updated),
        rendered_at=now or utc_now(),
    )


class BoardProjection:
    """Pure read-only projection over the live-state store.

    This class NEVER stores state.  Every call re-reads the store.
    """

    def __init__(self, state_store: LiveStateStore) -> None:
        self._store = state_store

    def snapshot(self, now: datetime | None = None) -> BoardView:
        live = self._store.read()
        board = project_board(live.state, now)
        if board.last_updated is None and live.updated_at is not None:
            board = board.model_copy(update={"last_updated": live.updated_at})
        return board
