"""Pipeline snapshot models — the live, frequently-overwritten view of a run.

Snapshots arrive inside the dashboard state document written by an
external script.  They are parsed leniently: a snapshot with a missing
id or an unparseable start time is still a snapshot, and the consumers
(projector, gatekeeper) decide how to degrade.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class PipelineStatus(str, Enum):
    """Lifecycle status of a pipeline run."""

    RUNNING = "running"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Terminal runs never resume and are eligible for archival."""
        return self in (PipelineStatus.COMPLETE, PipelineStatus.FAILED)


DEFAULT_PIPELINE_NAME = "Unknown Pipeline"


def _text_or_none(value: Any) -> str | None:
    """Keep strings; anything else the writer sent is treated as absent."""
    return value if isinstance(value, str) else None


def _scalar_text(value: Any) -> str | None:
    """Keep strings and render numbers; drop everything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    return _text_or_none(value)


# Wire documents use camelCase keys; attributes are snake_case.
WIRE_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class TaskSummary(BaseModel):
    """A task attached to a pipeline run.  Copied verbatim into history."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str | None = None
    description: str | None = None
    agent_name: str | None = None
    status: str | None = None
    duration: str | None = None

    @field_validator("id", "description", "agent_name", "status", "duration", mode="before")
    @classmethod
    def _lenient_text(cls, value: Any) -> str | None:
        return _scalar_text(value)


class PipelineSnapshot(BaseModel):
    """Point-in-time progress of one pipeline, as reported by the writer.

    ``stages`` is ordered by execution order.  ``started_at`` is kept as
    the raw string so that malformed timestamps survive parsing and can
    degrade to an ``"unknown"`` duration at archival time.
    """

    model_config = WIRE_CONFIG

    id: str | None = None
    name: str | None = None
    stages: list[str] = []
    current_stage: str | None = None
    completed_stages: list[str] = []
    started_at: str | None = None
    status: PipelineStatus = PipelineStatus.RUNNING
    tasks: list[TaskSummary] | None = Field(default=None)

    # One malformed field degrades its own snapshot, never the whole document.
    @field_validator("id", mode="before")
    @classmethod
    def _lenient_id(cls, value: Any) -> str | None:
        return _scalar_text(value)

    @field_validator("name", "current_stage", "started_at", mode="before")
    @classmethod
    def _lenient_text(cls, value: Any) -> str | None:
        return _text_or_none(value)

    @field_validator("stages", "completed_stages", mode="before")
    @classmethod
    def _string_items(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str)]

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal
