"""opsboard data models — all Pydantic v2, all frozen (immutable)."""

from opsboard.models.dashboard import (
    ActiveTask,
    CompletedTask,
    DashboardState,
    ErrorLogEntry,
    Kpis,
    ServiceStatus,
    Severity,
    TaskStatus,
)
from opsboard.models.email import (
    SEQUENCE_LENGTH,
    SEQUENCE_STAGES,
    EmailSend,
    EmailSummary,
    SendStatus,
    Subscriber,
    SubscriberStatus,
)
from opsboard.models.history import HistoryRecord, HistoryStats
from opsboard.models.pipeline import PipelineSnapshot, PipelineStatus, TaskSummary

__all__ = [
    # pipeline
    "PipelineStatus",
    "PipelineSnapshot",
    "TaskSummary",
    # history
    "HistoryRecord",
    "HistoryStats",
    # dashboard
    "DashboardState",
    "Kpis",
    "ActiveTask",
    "CompletedTask",
    "ErrorLogEntry",
    "TaskStatus",
    "Severity",
    "ServiceStatus",
    # email
    "SEQUENCE_STAGES",
    "SEQUENCE_LENGTH",
    "Subscriber",
    "SubscriberStatus",
    "EmailSend",
    "SendStatus",
    "EmailSummary",
]
