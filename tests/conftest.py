"""Shared test fixtures for opsboard."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from opsboard.core.archival import ArchivalGatekeeper
from opsboard.core.email_tracker import EmailTracker
from opsboard.core.history_store import HistoryStore
from opsboard.core.state_store import LiveStateStore
from opsboard.core.status_update import StatusUpdater
from opsboard.models.pipeline import PipelineSnapshot

FIXED_NOW = datetime(2026, 2, 28, 11, 5, 30, tzinfo=timezone.utc)

STAGES = ["Research", "Draft", "Review", "Publish"]


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """One SQLite file shared by all stores, like a deployment."""
    return tmp_path / "opsboard.db"


@pytest.fixture
def history_store(db_path: Path) -> HistoryStore:
    return HistoryStore(db_path)


@pytest.fixture
def state_store(db_path: Path) -> LiveStateStore:
    return LiveStateStore(db_path)


@pytest.fixture
def email_tracker(db_path: Path) -> EmailTracker:
    return EmailTracker(db_path)


@pytest.fixture
def gatekeeper() -> ArchivalGatekeeper:
    return ArchivalGatekeeper(clock=lambda: FIXED_NOW)


@pytest.fixture
def updater(
    state_store: LiveStateStore,
    history_store: HistoryStore,
    gatekeeper: ArchivalGatekeeper,
) -> StatusUpdater:
    return StatusUpdater(state_store, history_store, gatekeeper)


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


# ---------------------------------------------------------------------------
# Snapshot factories — shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_snapshot() -> Callable[..., PipelineSnapshot]:
    """Factory fixture: build a PipelineSnapshot with sensible defaults."""

    def _factory(
        id: str | None = "p1",
        status: str = "running",
        **overrides: Any,
    ) -> PipelineSnapshot:
        defaults: dict[str, Any] = {
            "id": id,
            "name": "Content Pipeline",
            "stages": list(STAGES),
            "currentStage": "Draft",
            "completedStages": ["Research"],
            "startedAt": "2026-02-28T10:00:00Z",
            "status": status,
        }
        defaults.update(overrides)
        return PipelineSnapshot.model_validate(defaults)

    return _factory


@pytest.fixture
def make_state_doc() -> Callable[..., dict[str, Any]]:
    """Factory fixture: a raw dashboard state document (camelCase dict)."""

    def _factory(pipelines: list[dict[str, Any]] | None = None, **overrides: Any) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "lastUpdated": "2026-02-28T11:00:00Z",
            "kpis": {"activeAgents": 3, "tasksCompletedToday": 12, "errorsToday": 1},
            "pipelines": pipelines if pipelines is not None else [],
            "activeTasks": [
                {
                    "id": "t1",
                    "agentName": "Scout",
                    "taskDescription": "Scan sources",
                    "status": "running",
                    "startedAt": "2026-02-28T10:55:00Z",
                    "estCompletion": "2026-02-28T11:15:00Z",
                }
            ],
            "recentCompletions": [
                {
                    "id": "c1",
                    "agentName": "Writer",
                    "taskDescription": "Draft newsletter",
                    "completedAt": "2026-02-28T10:30:00Z",
                    "duration": "12m",
                }
            ],
            "errorLog": [
                {
                    "id": "e1",
                    "timestamp": "2026-02-28T10:45:00Z",
                    "agent": "Publisher",
                    "message": "Rate limited",
                    "severity": "warning",
                }
            ],
            "systemStatus": {"vercel": "connected", "email": "degraded"},
        }
        doc.update(overrides)
        return doc

    return _factory


@pytest.fixture
def make_pipeline_doc() -> Callable[..., dict[str, Any]]:
    """Factory fixture: a raw pipeline entry for a state document."""

    def _factory(id: str, status: str, **overrides: Any) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "id": id,
            "name": f"Pipeline {id}",
            "stages": list(STAGES),
            "currentStage": "Publish",
            "completedStages": list(STAGES) if status == "complete" else ["Research"],
            "startedAt": "2026-02-28T10:00:00Z",
            "status": status,
        }
        doc.update(overrides)
        return doc

    return _factory
