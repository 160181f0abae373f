"""Subscriber and email-sequence tracker backed by SQLite.

Subscribers walk an 8-email sequence.  Advancing a subscriber records the
send for the email they were on and moves them to the next one; reaching
the last email marks them completed.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date
from pathlib import Path

from opsboard.core.timeutil import utc_now
from opsboard.models.email import (
    SEQUENCE_LENGTH,
    EmailSend,
    EmailSummary,
    SendStatus,
    Subscriber,
    SubscriberStatus,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_SUBSCRIBERS = f"""
CREATE TABLE IF NOT EXISTS email_subscribers (
    id             TEXT PRIMARY KEY,
    name           TEXT NOT NULL,
    email          TEXT NOT NULL UNIQUE,
    signup_date    TEXT NOT NULL,
    current_stage  INTEGER NOT NULL DEFAULT 1
                   CHECK (current_stage BETWEEN 1 AND {SEQUENCE_LENGTH}),
    status         TEXT NOT NULL DEFAULT 'active'
                   CHECK (status IN ('active', 'paused', 'completed')),
    created_at     TEXT NOT NULL
);
"""

_CREATE_SENDS = f"""
CREATE TABLE IF NOT EXISTS email_sends (
    id             TEXT PRIMARY KEY,
    subscriber_id  TEXT NOT NULL REFERENCES email_subscribers(id) ON DELETE CASCADE,
    email_number   INTEGER NOT NULL CHECK (email_number BETWEEN 1 AND {SEQUENCE_LENGTH}),
    sent_at        TEXT NOT NULL,
    status         TEXT NOT NULL DEFAULT 'sent' CHECK (status IN ('sent', 'failed'))
);
"""

_CREATE_IDX_SENDS = """
CREATE INDEX IF NOT EXISTS idx_sends_subscriber ON email_sends(subscriber_id, sent_at);
"""

_SUBSCRIBER_COLUMNS = (
    "id, name, email, signup_date, current_stage, status, created_at"
)
_SEND_COLUMNS = "id, subscriber_id, email_number, sent_at, status"


class SubscriberNotFoundError(LookupError):
    """Raised when a subscriber id does not exist."""


class DuplicateSubscriberError(ValueError):
    """Raised when an email address is already enrolled."""


class EmailTracker:
    """Reads and mutates subscribers and their sends.

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
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_SUBSCRIBERS)
            conn.execute(_CREATE_SENDS)
            conn.execute(_CREATE_IDX_SENDS)
            conn.commit()

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def add_subscriber(
        self,
        name: str,
        email: str,
        signup_date: date | None = None,
    ) -> Subscriber:
        """Enroll a new subscriber at the first email of the sequence."""
        subscriber = Subscriber(
            name=name,
            email=email,
            signup_date=signup_date or utc_now().date(),
        )
        try:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT INTO email_subscribers ({_SUBSCRIBER_COLUMNS}) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        subscriber.id,
                        subscriber.name,
                        subscriber.email,
                        subscriber.signup_date.isoformat(),
                        subscriber.current_stage,
                        subscriber.status.value,
                        subscriber.created_at.isoformat(),
                    ),
                )
                conn.commit()
        except sqlite3.IntegrityError as exc:
            raise DuplicateSubscriberError(f"{email} is already subscribed") from exc
        logger.info("Subscribed %s", subscriber.email)
        return subscriber

    def get(self, subscriber_id: str) -> Subscriber:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_SUBSCRIBER_COLUMNS} FROM email_subscribers WHERE id = ?",
                (subscriber_id,),
            ).fetchone()
        if row is None:
            raise SubscriberNotFoundError(f"No subscriber {subscriber_id!r}")
        return self._row_to_subscriber(row)

    def list_subscribers(
        self,
        stage: int | None = None,
        status: SubscriberStatus | None = None,
    ) -> list[Subscriber]:
        """Subscribers newest signup first, optionally filtered."""
        query = f"SELECT {_SUBSCRIBER_COLUMNS} FROM email_subscribers"
        clauses: list[str] = []
        params: list[object] = []
        if stage is not None:
            clauses.append("current_stage = ?")
            params.append(stage)
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY signup_date DESC, created_at DESC"
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_subscriber(row) for row in rows]

    def set_status(self, subscriber_id: str, status: SubscriberStatus) -> Subscriber:
        """Pause or resume (or complete) a subscriber."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE email_subscribers SET status = ? WHERE id = ?",
                (status.value, subscriber_id),
            )
            conn.commit()
        if cursor.rowcount == 0:
            raise SubscriberNotFoundError(f"No subscriber {subscriber_id!r}")
        logger.info("Subscriber %s is now %s", subscriber_id, status.value)
        return self.get(subscriber_id)

    def advance_stage(self, subscriber_id: str) -> EmailSend | None:
        """Record the send for the current email and move to the next one.

        Returns the recorded send, or ``None`` when the subscriber is
        already on the last email.
        """
        subscriber = self.get(subscriber_id)
        if subscriber.current_stage >= SEQUENCE_LENGTH:
            logger.info("Subscriber %s has finished the sequence", subscriber_id)
            return None

        new_stage = subscriber.current_stage + 1
        new_status = (
            SubscriberStatus.COMPLETED
            if new_stage >= SEQUENCE_LENGTH
            else subscriber.status
        )
        send = EmailSend(
            subscriber_id=subscriber.id,
            email_number=subscriber.current_stage,
            status=SendStatus.SENT,
        )
        with self._connect() as conn:
            conn.execute(
                "UPDATE email_subscribers SET current_stage = ?, status = ? WHERE id = ?",
                (new_stage, new_status.value, subscriber.id),
            )
            conn.execute(
                f"INSERT INTO email_sends ({_SEND_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                (
                    send.id,
                    send.subscriber_id,
                    send.email_number,
                    send.sent_at.isoformat(),
                    send.status.value,
                ),
            )
            conn.commit()
        logger.info(
            "Subscriber %s advanced to email %d (%s)",
            subscriber.id,
            new_stage,
            new_status.value,
        )
        return send

    # ------------------------------------------------------------------
    # Sends and aggregates (read-only)
    # ------------------------------------------------------------------

    def sends_for(self, subscriber_id: str) -> list[EmailSend]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_SEND_COLUMNS} FROM email_sends "
                "WHERE subscriber_id = ? ORDER BY sent_at DESC",
                (subscriber_id,),
            ).fetchall()
        return [self._row_to_send(row) for row in rows]

    def recent_sends(self, limit: int = 10) -> list[EmailSend]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_SEND_COLUMNS} FROM email_sends ORDER BY sent_at DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [self._row_to_send(row) for row in rows]

    def funnel_counts(self) -> list[int]:
        """Active subscribers on each email, index 0 = email 1."""
        counts = [0] * SEQUENCE_LENGTH
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT current_stage, COUNT(*) FROM email_subscribers "
                "WHERE status = ? GROUP BY current_stage",
                (SubscriberStatus.ACTIVE.value,),
            ).fetchall()
        for stage, count in rows:
            counts[stage - 1] = count
        return counts

    def summary(self) -> EmailSummary:
        with self._connect() as conn:
            status_rows = conn.execute(
                "SELECT status, COUNT(*) FROM email_subscribers GROUP BY status"
            ).fetchall()
            (sent,) = conn.execute(
                "SELECT COUNT(*) FROM email_sends WHERE status = ?",
                (SendStatus.SENT.value,),
            ).fetchone()
        by_status = {status: count for status, count in status_rows}
        return EmailSummary(
            total_subscribers=sum(by_status.values()),
            active=by_status.get(SubscriberStatus.ACTIVE.value, 0),
            completed=by_status.get(SubscriberStatus.COMPLETED.value, 0),
            total_sent=sent,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_subscriber(row: tuple) -> Subscriber:
        sub_id, name, email, signup_date, current_stage, status, created_at = row
        return Subscriber(
            id=sub_id,
            name=name,
            email=email,
            signup_date=signup_date,
            current_stage=current_stage,
            status=SubscriberStatus(status),
            created_at=created_at,
        )

    @staticmethod
    def _row_to_send(row: tuple) -> EmailSend:
        send_id, subscriber_id, email_number, sent_at, status = row
        return EmailSend(
            id=send_id,
            subscriber_id=subscriber_id,
            email_number=email_number,
            sent_at=sent_at,
            status=SendStatus(status),
        )
