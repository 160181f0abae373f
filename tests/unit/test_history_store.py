"""Tests for the append-only pipeline history store.

Verifies that:
1. Records round-trip through SQLite (including task payloads).
2. A pipeline id can be archived at most once.
3. Listing is newest first, filterable, and limited.
4. Stats count by terminal status.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from opsboard.core.history_store import DuplicateArchivalError, HistoryStore
from opsboard.models.history import HistoryRecord
from opsboard.models.pipeline import PipelineStatus, TaskSummary

BASE = datetime(2026, 2, 28, 10, 0, tzinfo=timezone.utc)


def _record(pipeline_id: str = "p1", status: str = "complete", minutes: int = 0, **kw) -> HistoryRecord:
    defaults = dict(
        pipeline_id=pipeline_id,
        name=f"Pipeline {pipeline_id}",
        stages=["a", "b"],
        completed_stages=["a", "b"] if status == "complete" else ["a"],
        started_at="2026-02-28T09:00:00Z",
        completed_at=BASE + timedelta(minutes=minutes),
        status=status,
        duration="1h 0m",
    )
    defaults.update(kw)
    return HistoryRecord(**defaults)


# ---------------------------------------------------------------------------
# Test: Append
# ---------------------------------------------------------------------------


class TestAppend:
    def test_append_and_get(self, history_store: HistoryStore):
        history_store.append(_record())
        got = history_store.get("p1")
        assert got == _record()

    def test_get_missing(self, history_store: HistoryStore):
        assert history_store.get("nope") is None

    def test_exists(self, history_store: HistoryStore):
        assert history_store.exists("p1") is False
        history_store.append(_record())
        assert history_store.exists("p1") is True

    def test_duplicate_rejected(self, history_store: HistoryStore):
        history_store.append(_record())
        with pytest.raises(DuplicateArchivalError):
            history_store.append(_record(status="failed"))
        assert history_store.get("p1").status is PipelineStatus.COMPLETE

    def test_tasks_round_trip(self, history_store: HistoryStore):
        tasks = [
            TaskSummary.model_validate({"id": "t1", "agentName": "Writer", "tokens": 1200}),
        ]
        history_store.append(_record(tasks=tasks))
        got = history_store.get("p1")
        assert got.tasks is not None
        dumped = got.tasks[0].model_dump(by_alias=True, exclude_none=True)
        assert dumped == {"id": "t1", "agentName": "Writer", "tokens": 1200}

    def test_no_tasks_stays_none(self, history_store: HistoryStore):
        history_store.append(_record())
        assert history_store.get("p1").tasks is None

    def test_started_at_kept_raw(self, history_store: HistoryStore):
        history_store.append(_record(started_at=None, duration="unknown"))
        got = history_store.get("p1")
        assert got.started_at is None
        assert got.duration == "unknown"

    def test_persists_across_instances(self, db_path):
        HistoryStore(db_path).append(_record())
        assert HistoryStore(db_path).exists("p1")


class TestAppendMany:
    def test_inserts_all_new(self, history_store: HistoryStore):
        inserted = history_store.append_many([_record("a"), _record("b")])
        assert [r.pipeline_id for r in inserted] == ["a", "b"]
        assert history_store.stats().total == 2

    def test_skips_existing(self, history_store: HistoryStore):
        history_store.append(_record("a"))
        inserted = history_store.append_many([_record("a", status="failed"), _record("b")])
        assert [r.pipeline_id for r in inserted] == ["b"]
        assert history_store.get("a").status is PipelineStatus.COMPLETE

    def test_empty_batch(self, history_store: HistoryStore):
        assert history_store.append_many([]) == []


# ---------------------------------------------------------------------------
# Test: Queries
# ---------------------------------------------------------------------------


class TestQueries:
    @pytest.fixture
    def populated(self, history_store: HistoryStore) -> HistoryStore:
        history_store.append(_record("old", minutes=0))
        history_store.append(_record("mid", status="failed", minutes=10))
        history_store.append(_record("new", minutes=20))
        return history_store

    def test_newest_first(self, populated: HistoryStore):
        assert [r.pipeline_id for r in populated.list_records()] == ["new", "mid", "old"]

    def test_filter_by_pipeline(self, populated: HistoryStore):
        records = populated.list_records(pipeline_id="mid")
        assert [r.pipeline_id for r in records] == ["mid"]

    def test_limit(self, populated: HistoryStore):
        assert len(populated.list_records(limit=2)) == 2

    def test_pipeline_ids(self, populated: HistoryStore):
        assert populated.pipeline_ids() == ["new", "mid", "old"]

    def test_stats(self, populated: HistoryStore):
        stats = populated.stats()
        assert (stats.total, stats.completed, stats.failed) == (3, 2, 1)

    def test_empty_stats(self, history_store: HistoryStore):
        stats = history_store.stats()
        assert (stats.total, stats.completed, stats.failed) == (0, 0, 0)
