"""Tests for the caller-owned state poller."""

from __future__ import annotations

from datetime import timedelta

import pytest

from opsboard.models.dashboard import DashboardState, Kpis
from opsboard.monitor.poller import PollState, StatePoller


class _Source:
    """Fetch callable that counts calls and can be told to fail."""

    def __init__(self) -> None:
        self.calls = 0
        self.fail = False

    def __call__(self) -> DashboardState:
        self.calls += 1
        if self.fail:
            raise ConnectionError("store unavailable")
        return DashboardState(kpis=Kpis(tasks_completed_today=self.calls))


class TestStatePoller:
    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            StatePoller(_Source(), interval_seconds=0)

    def test_first_poll_is_due(self, now):
        poller = StatePoller(_Source(), interval_seconds=10)
        assert poller.is_due(PollState(), now)
        assert poller.seconds_until_refresh(PollState(), now) == 0.0

    def test_poll_records_state(self, now):
        source = _Source()
        state = StatePoller(source, interval_seconds=10).poll(PollState(), now)
        assert state.state is not None
        assert state.last_refresh == now
        assert state.last_error is None
        assert source.calls == 1

    def test_countdown(self, now):
        poller = StatePoller(_Source(), interval_seconds=10)
        state = poller.poll(PollState(), now)
        assert poller.seconds_until_refresh(state, now + timedelta(seconds=4)) == 6.0
        assert not poller.is_due(state, now + timedelta(seconds=4))
        assert poller.is_due(state, now + timedelta(seconds=10))

    def test_poll_if_due_skips_early(self, now):
        source = _Source()
        poller = StatePoller(source, interval_seconds=10)
        state = poller.poll_if_due(PollState(), now)
        same = poller.poll_if_due(state, now + timedelta(seconds=3))
        assert same is state
        assert source.calls == 1

        later = poller.poll_if_due(state, now + timedelta(seconds=11))
        assert source.calls == 2
        assert later.state.kpis.tasks_completed_today == 2

    def test_failure_keeps_previous_document(self, now):
        source = _Source()
        poller = StatePoller(source, interval_seconds=10)
        good = poller.poll(PollState(), now)

        source.fail = True
        later = now + timedelta(seconds=10)
        failed = poller.poll(good, later)

        assert failed.state == good.state
        assert failed.last_refresh == now
        assert failed.last_attempt == later
        assert "store unavailable" in failed.last_error

    def test_failure_waits_full_interval(self, now):
        source = _Source()
        source.fail = True
        poller = StatePoller(source, interval_seconds=10)
        failed = poller.poll(PollState(), now)
        assert not poller.is_due(failed, now + timedelta(seconds=1))

    def test_recovery_clears_error(self, now):
        source = _Source()
        poller = StatePoller(source, interval_seconds=10)
        source.fail = True
        failed = poller.poll(PollState(), now)
        source.fail = False
        recovered = poller.poll(failed, now + timedelta(seconds=10))
        assert recovered.last_error is None
        assert recovered.state is not None
