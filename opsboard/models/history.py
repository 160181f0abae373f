"""Pipeline history models — immutable records of finished runs.

A ``HistoryRecord`` is created exactly once, by the archival gatekeeper,
when a pipeline first reaches a terminal status.  It is never updated or
deleted afterwards.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from opsboard.models.pipeline import PipelineStatus, TaskSummary


class HistoryRecord(BaseModel):
    """The archived outcome of one pipeline run."""

    model_config = ConfigDict(frozen=True)

    pipeline_id: str
    name: str
    stages: list[str] = []
    completed_stages: list[str] = []
    started_at: str | None = None
    completed_at: datetime
    status: PipelineStatus
    duration: str
    tasks: list[TaskSummary] | None = None

    @field_validator("status")
    @classmethod
    def _terminal_only(cls, value: PipelineStatus) -> PipelineStatus:
        if not value.is_terminal:
            raise ValueError(f"history records require a terminal status, got {value.value!r}")
        return value

    @property
    def completed_count(self) -> int:
        return len(self.completed_stages)

    @property
    def total_stages(self) -> int:
        return len(self.stages)


class HistoryStats(BaseModel):
    """Aggregate counts shown above the history list."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    completed: int = 0
    failed: int = 0
