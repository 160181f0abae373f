"""opsboard monitor — pure read-only projection over the live-state row.

The board NEVER maintains its own state.  Every refresh re-reads the
store; polling timers and expand toggles belong to the caller.

Modules
-------
projection
    ``project()`` derives a ``PipelineView`` per snapshot;
    ``BoardProjection`` produces a frozen ``BoardView`` of the whole page.
poller
    ``StatePoller`` fetches on an interval against caller-owned
    ``PollState``.
renderer
    ``BoardRenderer`` turns views into Rich renderables, including
    continuous ``Rich.Live`` mode.
"""
