"""Tests for the single-row live state store."""

from __future__ import annotations

from opsboard.core.state_store import LiveStateStore
from opsboard.models.dashboard import DashboardState, ServiceStatus


class TestLiveStateStore:
    def test_fresh_store_reads_empty_document(self, state_store: LiveStateStore):
        live = state_store.read()
        assert live.state == DashboardState()
        assert live.updated_at is None

    def test_write_then_read(self, state_store: LiveStateStore, make_state_doc, make_pipeline_doc, now):
        doc = DashboardState.model_validate(
            make_state_doc(pipelines=[make_pipeline_doc("p1", "running", currentStage="Draft")])
        )
        state_store.write(doc, updated_at=now)

        live = state_store.read()
        assert live.state == doc
        assert live.updated_at == now
        assert live.state.system_status["email"] is ServiceStatus.DEGRADED

    def test_last_write_wins(self, state_store: LiveStateStore, make_state_doc, make_pipeline_doc):
        state_store.write(DashboardState.model_validate(make_state_doc(pipelines=[make_pipeline_doc("a", "running")])))
        state_store.write(DashboardState.model_validate(make_state_doc(pipelines=[make_pipeline_doc("b", "complete")])))

        pipelines = state_store.read().state.pipelines
        assert [p.id for p in pipelines] == ["b"]

    def test_stored_as_camel_case(self, state_store: LiveStateStore, db_path, make_state_doc):
        import sqlite3

        state_store.write(DashboardState.model_validate(make_state_doc()))
        with sqlite3.connect(str(db_path)) as conn:
            (raw,) = conn.execute("SELECT state FROM dashboard_state WHERE id = 1").fetchone()
        assert '"activeTasks"' in raw
        assert '"active_tasks"' not in raw

    def test_missing_active_agents_survives(self, state_store: LiveStateStore, make_state_doc):
        doc = DashboardState.model_validate(make_state_doc(kpis={"tasksCompletedToday": 2}))
        state_store.write(doc)
        assert state_store.read().state.kpis.active_agents is None

    def test_shared_file_with_history(self, db_path, state_store: LiveStateStore):
        from opsboard.core.history_store import HistoryStore

        HistoryStore(db_path)
        assert state_store.read().state == DashboardState()
