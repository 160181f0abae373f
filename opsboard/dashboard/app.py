"""opsboard Dashboard -- Streamlit web UI.

A pure projection over the live-state row, the pipeline history and the
email tracker. Never computes truth -- only displays it. The one write
path is the subscriber actions on the Email tab.

Usage:
    streamlit run opsboard/dashboard/app.py
    # or via CLI:
    opsboard ui
"""

from __future__ import annotations

import time
from pathlib import Path

import streamlit as st

from opsboard.config import BoardConfig
from opsboard.core.email_tracker import EmailTracker
from opsboard.core.history_store import HistoryStore
from opsboard.core.state_store import LiveStateStore
from opsboard.core.timeutil import time_ago, utc_now
from opsboard.dashboard import escape_markdown as md
from opsboard.models.dashboard import ServiceStatus, Severity, TaskStatus
from opsboard.models.email import SEQUENCE_LENGTH, SEQUENCE_STAGES, SubscriberStatus
from opsboard.models.pipeline import PipelineStatus
from opsboard.monitor.projection import BoardProjection, PipelineView, StageTag

# Enum-keyed, indexed directly: a missing member fails loudly.
_PIPELINE_ICONS: dict[PipelineStatus, str] = {
    PipelineStatus.RUNNING: "\U0001f7e2",
    PipelineStatus.COMPLETE: "✅",
    PipelineStatus.FAILED: "❌",
}

_STAGE_ICONS: dict[StageTag, str] = {
    StageTag.DONE: "✅",
    StageTag.CURRENT: "\U0001f504",
    StageTag.PENDING: "⬜",
    StageTag.FAILED_HERE: "❌",
}

_TASK_ICONS: dict[TaskStatus, str] = {
    TaskStatus.RUNNING: "\U0001f7e2",
    TaskStatus.QUEUED: "⚪",
    TaskStatus.PAUSED: "\U0001f7e1",
}

_SEVERITY_ICONS: dict[Severity, str] = {
    Severity.CRITICAL: "\U0001f534",
    Severity.HIGH: "\U0001f7e0",
    Severity.MEDIUM: "\U0001f7e1",
    Severity.LOW: "⚪",
    Severity.ERROR: "\U0001f534",
    Severity.WARNING: "\U0001f7e1",
    Severity.INFO: "\U0001f7e2",
}

_SERVICE_ICONS: dict[ServiceStatus, str] = {
    ServiceStatus.CONNECTED: "\U0001f7e2",
    ServiceStatus.DEGRADED: "\U0001f7e1",
    ServiceStatus.DISCONNECTED: "\U0001f534",
}


# ---------------------------------------------------------------------------
# Internal dashboard runner
# ---------------------------------------------------------------------------


def _run_dashboard(board_config: BoardConfig) -> None:
    db_path = board_config.db_path
    st.set_page_config(
        page_title="opsboard",
        page_icon="\U0001f4e1",
        layout="wide",
    )

    st.sidebar.title("\U0001f4e1 opsboard")
    st.sidebar.caption(f"Database: `{db_path}`")
    auto_refresh = st.sidebar.checkbox("Auto-refresh", value=True)
    interval = st.sidebar.number_input(
        "Refresh interval (s)", min_value=1.0, value=board_config.poll_interval_seconds, step=1.0
    )

    tab1, tab2, tab3 = st.tabs(
        ["\U0001f4ca Operations", "\U0001f4dc History", "✉ Email"]
    )

    with tab1:
        _render_operations(db_path)

    with tab2:
        _render_history(db_path, board_config.history_limit)

    with tab3:
        _render_email(db_path)

    if auto_refresh:
        time.sleep(interval)
        st.rerun()


# ===================================================================
# Tab 1 -- Operations
# ===================================================================


def _render_operations(db_path: Path) -> None:
    board = BoardProjection(LiveStateStore(db_path)).snapshot()

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Active Agents", board.kpis.active_agents)
    col2.metric("Running Pipelines", board.kpis.running_pipelines)
    col3.metric("Tasks Completed Today", board.kpis.tasks_completed_today)
    col4.metric("Errors Today", board.kpis.errors_today)

    st.subheader("Pipelines")
    if not board.pipelines:
        st.info("No pipelines reported.")
    for view in board.pipelines:
        _render_pipeline(view)

    st.subheader("Active Tasks")
    if board.active_tasks:
        st.dataframe(
            [
                {
                    "Agent": t.agent_name,
                    "Task": t.task_description,
                    "Status": f"{_TASK_ICONS[t.status]} {t.status.value}",
                    "Started": t.started_at or "-",
                    "ETA": t.est_completion or "-",
                }
                for t in board.active_tasks
            ],
            use_container_width=True,
        )
    else:
        st.caption("No active tasks.")

    st.subheader("Recent Completions")
    for item in board.recent_completions:
        st.markdown(
            f"**{md(item.agent_name)}** {md(item.task_description)} "
            f"-- {time_ago(item.completed_at, board.rendered_at)} ({md(item.duration or '-')})"
        )

    st.subheader("Error Log")
    if not board.error_log:
        st.success("No errors.")
    for entry in board.error_log:
        st.markdown(
            f"{_SEVERITY_ICONS[entry.severity]} {md(entry.timestamp or '-')} "
            f"**{md(entry.agent)}** {md(entry.message)}"
        )

    st.subheader("Systems")
    if board.system_status:
        cols = st.columns(len(board.system_status))
        for col, (key, status) in zip(cols, board.system_status.items()):
            col.markdown(f"{_SERVICE_ICONS[status]} **{md(key)}**  \n{status.value}")

    if board.last_updated:
        st.caption(f"Last updated {board.last_updated:%Y-%m-%d %H:%M:%S} UTC")


def _render_pipeline(view: PipelineView) -> None:
    title = (
        f"{_PIPELINE_ICONS[view.status]} {md(view.name)} -- {view.status.value} "
        f"({view.completed_count}/{view.total_stages}, {view.completion_percent}%)"
    )
    with st.expander(title, expanded=view.expanded):
        st.progress(view.completion_percent / 100)
        st.markdown(
            "  ".join(f"{_STAGE_ICONS[s.tag]} {md(s.name)}" for s in view.stages)
        )
        caption = "Started " + (f"{view.started_at:%b %d %H:%M}" if view.started_at else "-")
        if view.current_stage:
            caption += f" · Active: {md(view.current_stage)}"
        st.caption(caption)


# ===================================================================
# Tab 2 -- History
# ===================================================================


def _render_history(db_path: Path, limit: int) -> None:
    store = HistoryStore(db_path)
    stats = store.stats()

    col1, col2, col3 = st.columns(3)
    col1.metric("Total Runs", stats.total)
    col2.metric("Completed", stats.completed)
    col3.metric("Failed", stats.failed)

    choice = st.selectbox("Filter", ["all", *store.pipeline_ids()])
    records = store.list_records(
        pipeline_id=None if choice == "all" else choice, limit=limit
    )
    if not records:
        st.info("No pipeline history found.")
        return

    now = utc_now()
    for record in records:
        title = (
            f"{_PIPELINE_ICONS[record.status]} {md(record.name)} -- {md(record.duration)} "
            f"({record.completed_count}/{record.total_stages} stages, "
            f"{time_ago(record.completed_at, now)})"
        )
        with st.expander(title):
            st.markdown(
                " ".join(
                    f"✅ {md(s)}" if s in record.completed_stages else f"❌ {md(s)}"
                    for s in record.stages
                )
            )
            st.caption(f"Started {md(record.started_at or '-')} · Ended {record.completed_at:%b %d %H:%M}")
            if record.tasks:
                st.dataframe(
                    [t.model_dump(by_alias=True) for t in record.tasks],
                    use_container_width=True,
                )
            else:
                st.caption("No tasks recorded.")


# ===================================================================
# Tab 3 -- Email
# ===================================================================


def _render_email(db_path: Path) -> None:
    tracker = EmailTracker(db_path)
    summary = tracker.summary()

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Subscribers", summary.total_subscribers)
    col2.metric("Active", summary.active)
    col3.metric("Completed", summary.completed)
    col4.metric("Emails Sent", summary.total_sent)

    st.subheader("Sequence Funnel")
    st.bar_chart(
        {label: [count] for label, count in zip(SEQUENCE_STAGES, tracker.funnel_counts())}
    )

    stage_filter = st.selectbox("Stage", ["all", *range(1, SEQUENCE_LENGTH + 1)])
    status_filter = st.selectbox("Status", ["all", *(s.value for s in SubscriberStatus)])
    subscribers = tracker.list_subscribers(
        stage=None if stage_filter == "all" else int(stage_filter),
        status=None if status_filter == "all" else SubscriberStatus(status_filter),
    )

    for sub in subscribers:
        with st.expander(
            f"{md(sub.name)} ({md(sub.email)}) -- {sub.current_stage}/{SEQUENCE_LENGTH} "
            f"{sub.stage_label} ({sub.status.value})"
        ):
            left, mid, right = st.columns(3)
            if sub.status is SubscriberStatus.ACTIVE:
                if left.button("Advance", key=f"adv-{sub.id}"):
                    tracker.advance_stage(sub.id)
                    st.rerun()
                if mid.button("Pause", key=f"pause-{sub.id}"):
                    tracker.set_status(sub.id, SubscriberStatus.PAUSED)
                    st.rerun()
            elif sub.status is SubscriberStatus.PAUSED:
                if right.button("Resume", key=f"resume-{sub.id}"):
                    tracker.set_status(sub.id, SubscriberStatus.ACTIVE)
                    st.rerun()
            for send in tracker.sends_for(sub.id):
                st.caption(
                    f"Email {send.email_number} ({send.stage_label}) · "
                    f"{send.sent_at:%b %d %H:%M} · {send.status.value}"
                )

    st.subheader("Recent Activity")
    for send in tracker.recent_sends():
        st.caption(
            f"{send.stage_label} · {time_ago(send.sent_at, utc_now())} · {send.status.value}"
        )


# ---------------------------------------------------------------------------
# Entry point for `streamlit run opsboard/dashboard/app.py`
# ---------------------------------------------------------------------------

if __name__ == "__main__" or st.runtime.exists():
    _run_dashboard(BoardConfig())
