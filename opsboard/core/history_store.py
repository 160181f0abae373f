"""Append-only pipeline history backed by SQLite.

Design:
- Append-only: ``append()`` / ``append_many()`` only; no update, no delete.
- ``pipeline_id UNIQUE``: at most one record per pipeline, enforced by the
  store so two concurrent gatekeeper runs cannot both insert.
- WAL journal mode for concurrent readers.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterable
from pathlib import Path

from opsboard.models.history import HistoryRecord, HistoryStats
from opsboard.models.pipeline import PipelineStatus, TaskSummary

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_HISTORY = """
CREATE TABLE IF NOT EXISTS pipeline_history (
    id                    INTEGER PRIMARY KEY AUTOINCREMENT,
    pipeline_id           TEXT NOT NULL UNIQUE,
    name                  TEXT NOT NULL,
    stages_json           TEXT NOT NULL DEFAULT '[]',
    completed_stages_json TEXT NOT NULL DEFAULT '[]',
    started_at            TEXT,
    completed_at          TEXT NOT NULL,
    status                TEXT NOT NULL CHECK (status IN ('complete', 'failed')),
    duration              TEXT,
    tasks_json            TEXT
);
"""

_CREATE_IDX_COMPLETED = """
CREATE INDEX IF NOT EXISTS idx_history_completed ON pipeline_history(completed_at);
"""

_INSERT = """
INSERT INTO pipeline_history
    (pipeline_id, name, stages_json, completed_stages_json, started_at,
     completed_at, status, duration, tasks_json)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

_INSERT_OR_IGNORE = _INSERT.replace("INSERT INTO", "INSERT OR IGNORE INTO", 1)

_SELECT_COLUMNS = """
SELECT pipeline_id, name, stages_json, completed_stages_json, started_at,
       completed_at, status, duration, tasks_json
FROM pipeline_history
"""


class DuplicateArchivalError(RuntimeError):
    """Raised when a record for the same pipeline id already exists."""


class HistoryStore:
    """Append-only store of ``HistoryRecord`` rows.

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
            conn.execute(_CREATE_HISTORY)
            conn.execute(_CREATE_IDX_COMPLETED)
            conn.commit()

    # ------------------------------------------------------------------
    # Core: append-only write
    # ------------------------------------------------------------------

    def append(self, record: HistoryRecord) -> HistoryRecord:
        """Insert one record.

        Raises
        ------
        DuplicateArchivalError
            If the pipeline id is already archived.
        """
        try:
            with self._connect() as conn:
                conn.execute(_INSERT, self._record_to_row(record))
                conn.commit()
        except sqlite3.IntegrityError as exc:
            raise DuplicateArchivalError(
                f"Pipeline {record.pipeline_id!r} is already archived"
            ) from exc
        logger.info("Archived pipeline %s (%s)", record.pipeline_id, record.status.value)
        return record

    def append_many(self, records: Iterable[HistoryRecord]) -> list[HistoryRecord]:
        """Insert a batch in a single transaction.

        Rows that collide with an existing pipeline id are skipped rather
        than failing the batch.  Returns the records actually inserted,
        in input order.
        """
        inserted: list[HistoryRecord] = []
        with self._connect() as conn:
            for record in records:
                cursor = conn.execute(
                    _INSERT_OR_IGNORE, self._record_to_row(record),
                )
                if cursor.rowcount == 1:
                    inserted.append(record)
                else:
                    logger.warning(
                        "Pipeline %s archived concurrently, row skipped",
                        record.pipeline_id,
                    )
            conn.commit()
        for record in inserted:
            logger.info(
                "Archived pipeline %s (%s)", record.pipeline_id, record.status.value
            )
        return inserted

    # ------------------------------------------------------------------
    # Query methods (read-only)
    # ------------------------------------------------------------------

    def exists(self, pipeline_id: str) -> bool:
        """Whether a record for *pipeline_id* has been archived."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM pipeline_history WHERE pipeline_id = ? LIMIT 1",
                (pipeline_id,),
            ).fetchone()
        return row is not None

    def get(self, pipeline_id: str) -> HistoryRecord | None:
        with self._connect() as conn:
            row = conn.execute(
                _SELECT_COLUMNS + "WHERE pipeline_id = ?",
                (pipeline_id,),
            ).fetchone()
        return self._row_to_record(row) if row else None

    def list_records(
        self,
        pipeline_id: str | None = None,
        limit: int | None = None,
    ) -> list[HistoryRecord]:
        """Return records newest ``completed_at`` first, optionally filtered."""
        query = _SELECT_COLUMNS
        params: list[object] = []
        if pipeline_id is not None:
            query += "WHERE pipeline_id = ? "
            params.append(pipeline_id)
        query += "ORDER BY completed_at DESC, id DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_record(row) for row in rows]

    def pipeline_ids(self) -> list[str]:
        """Distinct archived pipeline ids, for the history filter bar."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT pipeline_id FROM pipeline_history ORDER BY completed_at DESC, id DESC"
            ).fetchall()
        return [row[0] for row in rows]

    def stats(self) -> HistoryStats:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT status, COUNT(*) FROM pipeline_history GROUP BY status"
            ).fetchall()
        counts = {status: count for status, count in rows}
        completed = counts.get(PipelineStatus.COMPLETE.value, 0)
        failed = counts.get(PipelineStatus.FAILED.value, 0)
        return HistoryStats(total=completed + failed, completed=completed, failed=failed)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _record_to_row(record: HistoryRecord) -> tuple:
        tasks_json = None
        if record.tasks is not None:
            tasks_json = json.dumps(
                [
                    task.model_dump(mode="json", by_alias=True, exclude_unset=True)
                    for task in record.tasks
                ]
            )
        return (
            record.pipeline_id,
            record.name,
            json.dumps(record.stages),
            json.dumps(record.completed_stages),
            record.started_at,
            record.completed_at.isoformat(),
            record.status.value,
            record.duration,
            tasks_json,
        )

    @staticmethod
    def _row_to_record(row: tuple) -> HistoryRecord:
        (
            pipeline_id,
            name,
            stages_json,
            completed_stages_json,
            started_at,
            completed_at,
            status,
            duration,
            tasks_json,
        ) = row
        tasks = None
        if tasks_json is not None:
            tasks = [TaskSummary.model_validate(t) for t in json.loads(tasks_json)]
        return HistoryRecord(
            pipeline_id=pipeline_id,
            name=name,
            stages=json.loads(stages_json),
            completed_stages=json.loads(completed_stages_json),
            started_at=started_at,
            completed_at=completed_at,
            status=PipelineStatus(status),
            duration=duration or "unknown",
            tasks=tasks,
        )
