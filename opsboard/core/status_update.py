"""External status-update trigger.

An operator (or an agent script) hands over a complete dashboard state
document.  Before the document replaces the live row, the archival
gatekeeper runs over its pipelines so that any run which has just
finished is recorded in history exactly once.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime

from pydantic import BaseModel, ConfigDict, ValidationError

from opsboard.core.archival import ArchivalGatekeeper
from opsboard.core.history_store import HistoryStore
from opsboard.core.state_store import LiveStateStore
from opsboard.core.timeutil import parse_timestamp, utc_now
from opsboard.models.dashboard import DashboardState
from opsboard.models.history import HistoryRecord

logger = logging.getLogger(__name__)


class StateDocumentError(ValueError):
    """Raised when a status update is not a valid dashboard state document."""


class StatusUpdateResult(BaseModel):
    """Outcome of one status update."""

    model_config = ConfigDict(frozen=True)

    archived: list[HistoryRecord] = []
    updated_at: datetime


def parse_state_document(raw: str) -> DashboardState:
    """Parse and validate raw JSON text into a ``DashboardState``."""
    if not raw or not raw.strip():
        raise StateDocumentError("Empty state document")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StateDocumentError(f"Invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise StateDocumentError(
            f"State document must be a JSON object, got {type(data).__name__}"
        )
    try:
        return DashboardState.model_validate(data)
    except ValidationError as exc:
        raise StateDocumentError(f"Invalid state document: {exc}") from exc


class StatusUpdater:
    """Archives finished pipelines, then writes the new live document.

    Callers must not run two updaters against the same stores at once;
    the history store's uniqueness constraint is the backstop if they do.
    """

    def __init__(
        self,
        state_store: LiveStateStore,
        history_store: HistoryStore,
        gatekeeper: ArchivalGatekeeper | None = None,
    ) -> None:
        self._state_store = state_store
        self._history_store = history_store
        self._gatekeeper = gatekeeper or ArchivalGatekeeper()

    def apply(self, raw: str, now: datetime | None = None) -> StatusUpdateResult:
        """Apply a raw JSON status update.

        Raises
        ------
        StateDocumentError
            If *raw* is not a valid state document.  Nothing is written.
        """
        state = parse_state_document(raw)
        stamp = parse_timestamp(now) if now is not None else utc_now()

        archived = self._archive(state, stamp)
        self._state_store.write(state, updated_at=stamp)
        logger.info(
            "Dashboard state updated at %s (%d pipelines, %d archived)",
            stamp.isoformat(),
            len(state.pipelines),
            len(archived),
        )
        return StatusUpdateResult(archived=archived, updated_at=stamp)

    def archive_current(self, now: datetime | None = None) -> list[HistoryRecord]:
        """Run the gatekeeper over the stored live document only."""
        stamp = parse_timestamp(now) if now is not None else utc_now()
        live = self._state_store.read()
        return self._archive(live.state, stamp)

    def _archive(self, state: DashboardState, now: datetime) -> list[HistoryRecord]:
        candidates = self._gatekeeper.archive(
            state.pipelines, self._history_store.exists, now=now
        )
        if not candidates:
            return []
        return self._history_store.append_many(candidates)
