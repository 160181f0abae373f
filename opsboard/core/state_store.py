"""Live dashboard state — a single SQLite row, last write wins.

The row (id = 1) holds the whole ``DashboardState`` document as JSON.
Readers poll it; the status-update command overwrites it.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from opsboard.core.timeutil import parse_timestamp, utc_now
from opsboard.models.dashboard import DashboardState

STATE_ROW_ID = 1

_CREATE_STATE = """
CREATE TABLE IF NOT EXISTS dashboard_state (
    id          INTEGER PRIMARY KEY DEFAULT 1,
    state       TEXT NOT NULL DEFAULT '{}',
    updated_at  TEXT
);
"""

_SEED_STATE = """
INSERT OR IGNORE INTO dashboard_state (id, state) VALUES (1, '{}');
"""


class LiveState(BaseModel):
    """The live document together with the time it was written."""

    model_config = ConfigDict(frozen=True)

    state: DashboardState
    updated_at: datetime | None = None


class LiveStateStore:
    """Reads and overwrites the single live-state row.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_STATE)
            conn.execute(_SEED_STATE)
            conn.commit()

    def read(self) -> LiveState:
        """Return the current document (an empty one if never written)."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT state, updated_at FROM dashboard_state WHERE id = ?",
                (STATE_ROW_ID,),
            ).fetchone()
        if row is None:
            return LiveState(state=DashboardState())
        state_json, updated_at = row
        return LiveState(
            state=DashboardState.model_validate(json.loads(state_json)),
            updated_at=parse_timestamp(updated_at),
        )

    def write(
        self, state: DashboardState, updated_at: datetime | None = None
    ) -> LiveState:
        """Replace the live document."""
        stamp = updated_at or utc_now()
        payload = state.model_dump_json(by_alias=True, exclude_none=True)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO dashboard_state (id, state, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    state = excluded.state,
                    updated_at = excluded.updated_at
                """,
                (STATE_ROW_ID, payload, stamp.isoformat()),
            )
            conn.commit()
        return LiveState(state=state, updated_at=stamp)
