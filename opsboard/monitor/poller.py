"""Polling state owned by the caller.

The poller holds no state of its own.  Each ``poll()`` takes the
previous ``PollState`` and the current time and returns the next one,
so refresh timing and the last good document live wherever the caller
keeps them.  A failed fetch keeps the previous document on screen.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from opsboard.models.dashboard import DashboardState

logger = logging.getLogger(__name__)


class PollState(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: DashboardState | None = None
    last_refresh: datetime | None = None  # last successful fetch
    last_attempt: datetime | None = None
    last_error: str | None = None


class StatePoller:
    """Fetches the live document at a fixed interval.

    Parameters
    ----------
    fetch:
        Returns the current ``DashboardState``; may raise on transport
        failure.
    interval_seconds:
        Minimum gap between two fetches.
    """

    def __init__(
        self,
        fetch: Callable[[], DashboardState],
        interval_seconds: float = 10.0,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._fetch = fetch
        self.interval_seconds = interval_seconds

    def is_due(self, poll_state: PollState, now: datetime) -> bool:
        return self.seconds_until_refresh(poll_state, now) <= 0

    def seconds_until_refresh(self, poll_state: PollState, now: datetime) -> float:
        """Countdown to the next fetch; 0 when one is due."""
        if poll_state.last_attempt is None:
            return 0.0
        elapsed = (now - poll_state.last_attempt).total_seconds()
        return max(self.interval_seconds - elapsed, 0.0)

    def poll(self, poll_state: PollState, now: datetime) -> PollState:
        """Fetch once and return the next poll state."""
        try:
            state = self._fetch()
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to fetch dashboard state: %s", exc)
            return poll_state.model_copy(update={"last_error": str(exc), "last_attempt": now})
        return PollState(state=state, last_refresh=now, last_attempt=now)

    def poll_if_due(self, poll_state: PollState, now: datetime) -> PollState:
        if self.is_due(poll_state, now):
            return self.poll(poll_state, now)
        return poll_state
