"""Live dashboard state document (schema v2).

The external writer replaces this whole document on every status update.
Each section defaults to empty, so the seeded ``{}`` row is a valid
document.  Status-like fields are closed enums: an unrecognised value is
a validation error rather than a silently blank render.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from opsboard.models.pipeline import WIRE_CONFIG, PipelineSnapshot


class TaskStatus(str, Enum):
    RUNNING = "running"
    QUEUED = "queued"
    PAUSED = "paused"


class Severity(str, Enum):
    """Error log severities, highest first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ServiceStatus(str, Enum):
    CONNECTED = "connected"
    DEGRADED = "degraded"
    DISCONNECTED = "disconnected"


class Kpis(BaseModel):
    model_config = WIRE_CONFIG

    active_agents: int | None = None  # None: derive from running pipelines
    tasks_completed_today: int = 0
    errors_today: int = 0


class ActiveTask(BaseModel):
    model_config = WIRE_CONFIG

    id: str
    agent_name: str = ""
    task_description: str = ""
    status: TaskStatus = TaskStatus.QUEUED
    started_at: str | None = None
    est_completion: str | None = None


class CompletedTask(BaseModel):
    model_config = WIRE_CONFIG

    id: str
    agent_name: str = ""
    task_description: str = ""
    completed_at: str | None = None
    duration: str = ""


class ErrorLogEntry(BaseModel):
    model_config = WIRE_CONFIG

    id: str
    timestamp: str | None = None
    agent: str = ""
    message: str = ""
    severity: Severity = Severity.ERROR


class DashboardState(BaseModel):
    """The full document held in the single live-state row."""

    model_config = WIRE_CONFIG

    last_updated: str | None = None
    kpis: Kpis = Kpis()
    pipelines: list[PipelineSnapshot] = []
    active_tasks: list[ActiveTask] = []
    recent_completions: list[CompletedTask] = []
    error_log: list[ErrorLogEntry] = []
    system_status: dict[str, ServiceStatus] = {}
