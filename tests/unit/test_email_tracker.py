"""Tests for the email sequence tracker.

Verifies that:
1. Subscribers enroll at email 1 and email addresses are unique.
2. advance_stage() records a send for the email left behind.
3. Reaching the last email completes the subscriber; advancing past it is a no-op.
4. Funnel and summary aggregates count the right rows.
"""

from __future__ import annotations

from datetime import date

import pytest

from opsboard.core.email_tracker import (
    DuplicateSubscriberError,
    EmailTracker,
    SubscriberNotFoundError,
)
from opsboard.models.email import SEQUENCE_LENGTH, SEQUENCE_STAGES, SubscriberStatus


def _advance_to(tracker: EmailTracker, subscriber_id: str, stage: int) -> None:
    while tracker.get(subscriber_id).current_stage < stage:
        tracker.advance_stage(subscriber_id)


# ---------------------------------------------------------------------------
# Test: Enrollment
# ---------------------------------------------------------------------------


class TestEnrollment:
    def test_new_subscriber_defaults(self, email_tracker: EmailTracker):
        sub = email_tracker.add_subscriber("Ada", "ada@example.com", date(2026, 2, 1))
        assert sub.current_stage == 1
        assert sub.status is SubscriberStatus.ACTIVE
        assert sub.stage_label == "Welcome"
        assert email_tracker.get(sub.id) == sub

    def test_duplicate_email(self, email_tracker: EmailTracker):
        email_tracker.add_subscriber("Ada", "ada@example.com")
        with pytest.raises(DuplicateSubscriberError):
            email_tracker.add_subscriber("Ada Again", "ada@example.com")

    def test_get_missing(self, email_tracker: EmailTracker):
        with pytest.raises(SubscriberNotFoundError):
            email_tracker.get("missing")

    def test_list_newest_signup_first(self, email_tracker: EmailTracker):
        email_tracker.add_subscriber("Old", "old@example.com", date(2026, 1, 1))
        email_tracker.add_subscriber("New", "new@example.com", date(2026, 2, 1))
        assert [s.name for s in email_tracker.list_subscribers()] == ["New", "Old"]

    def test_list_filters(self, email_tracker: EmailTracker):
        a = email_tracker.add_subscriber("A", "a@example.com")
        b = email_tracker.add_subscriber("B", "b@example.com")
        email_tracker.advance_stage(a.id)
        email_tracker.set_status(b.id, SubscriberStatus.PAUSED)

        assert [s.id for s in email_tracker.list_subscribers(stage=2)] == [a.id]
        assert [s.id for s in email_tracker.list_subscribers(status=SubscriberStatus.PAUSED)] == [b.id]
        assert email_tracker.list_subscribers(stage=2, status=SubscriberStatus.PAUSED) == []


# ---------------------------------------------------------------------------
# Test: Advancing
# ---------------------------------------------------------------------------


class TestAdvance:
    def test_advance_records_send_for_previous_email(self, email_tracker: EmailTracker):
        sub = email_tracker.add_subscriber("Ada", "ada@example.com")
        send = email_tracker.advance_stage(sub.id)

        assert send is not None
        assert send.email_number == 1
        assert send.stage_label == SEQUENCE_STAGES[0]
        assert email_tracker.get(sub.id).current_stage == 2
        assert [s.id for s in email_tracker.sends_for(sub.id)] == [send.id]

    def test_reaching_last_email_completes(self, email_tracker: EmailTracker):
        sub = email_tracker.add_subscriber("Ada", "ada@example.com")
        _advance_to(email_tracker, sub.id, SEQUENCE_LENGTH)

        final = email_tracker.get(sub.id)
        assert final.current_stage == SEQUENCE_LENGTH
        assert final.status is SubscriberStatus.COMPLETED
        assert len(email_tracker.sends_for(sub.id)) == SEQUENCE_LENGTH - 1

    def test_advance_past_end_is_noop(self, email_tracker: EmailTracker):
        sub = email_tracker.add_subscriber("Ada", "ada@example.com")
        _advance_to(email_tracker, sub.id, SEQUENCE_LENGTH)

        assert email_tracker.advance_stage(sub.id) is None
        assert email_tracker.get(sub.id).current_stage == SEQUENCE_LENGTH
        assert len(email_tracker.sends_for(sub.id)) == SEQUENCE_LENGTH - 1

    def test_paused_subscriber_stays_paused(self, email_tracker: EmailTracker):
        sub = email_tracker.add_subscriber("Ada", "ada@example.com")
        email_tracker.set_status(sub.id, SubscriberStatus.PAUSED)
        email_tracker.advance_stage(sub.id)
        assert email_tracker.get(sub.id).status is SubscriberStatus.PAUSED

    def test_advance_missing(self, email_tracker: EmailTracker):
        with pytest.raises(SubscriberNotFoundError):
            email_tracker.advance_stage("missing")


class TestStatus:
    def test_pause_and_resume(self, email_tracker: EmailTracker):
        sub = email_tracker.add_subscriber("Ada", "ada@example.com")
        assert email_tracker.set_status(sub.id, SubscriberStatus.PAUSED).status is SubscriberStatus.PAUSED
        assert email_tracker.set_status(sub.id, SubscriberStatus.ACTIVE).status is SubscriberStatus.ACTIVE

    def test_set_status_missing(self, email_tracker: EmailTracker):
        with pytest.raises(SubscriberNotFoundError):
            email_tracker.set_status("missing", SubscriberStatus.PAUSED)


# ---------------------------------------------------------------------------
# Test: Aggregates
# ---------------------------------------------------------------------------


class TestAggregates:
    def test_funnel_counts_active_only(self, email_tracker: EmailTracker):
        a = email_tracker.add_subscriber("A", "a@example.com")
        email_tracker.add_subscriber("B", "b@example.com")
        c = email_tracker.add_subscriber("C", "c@example.com")
        email_tracker.advance_stage(a.id)
        email_tracker.set_status(c.id, SubscriberStatus.PAUSED)

        counts = email_tracker.funnel_counts()
        assert len(counts) == SEQUENCE_LENGTH
        assert counts[0] == 1
        assert counts[1] == 1
        assert sum(counts) == 2

    def test_summary(self, email_tracker: EmailTracker):
        a = email_tracker.add_subscriber("A", "a@example.com")
        email_tracker.add_subscriber("B", "b@example.com")
        _advance_to(email_tracker, a.id, SEQUENCE_LENGTH)

        summary = email_tracker.summary()
        assert summary.total_subscribers == 2
        assert summary.active == 1
        assert summary.completed == 1
        assert summary.total_sent == SEQUENCE_LENGTH - 1

    def test_recent_sends_limit(self, email_tracker: EmailTracker):
        sub = email_tracker.add_subscriber("A", "a@example.com")
        _advance_to(email_tracker, sub.id, 5)
        assert len(email_tracker.recent_sends(limit=3)) == 3
        assert len(email_tracker.recent_sends()) == 4
