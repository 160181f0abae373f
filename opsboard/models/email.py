"""Email sequence models — subscribers moving through an 8-step drip."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# One label per email in the sequence; email N is SEQUENCE_STAGES[N - 1].
SEQUENCE_STAGES: tuple[str, ...] = (
    "Welcome",
    "Pain Point",
    "Solution Intro",
    "Social Proof",
    "Feature Deep Dive",
    "Objection Handling",
    "Urgency/Scarcity",
    "Final CTA",
)

SEQUENCE_LENGTH = len(SEQUENCE_STAGES)


class SubscriberStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class SendStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"


class Subscriber(BaseModel):
    """A person enrolled in the email sequence."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    email: str
    signup_date: date
    current_stage: int = Field(default=1, ge=1, le=SEQUENCE_LENGTH)
    status: SubscriberStatus = SubscriberStatus.ACTIVE
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def stage_label(self) -> str:
        return SEQUENCE_STAGES[self.current_stage - 1]


class EmailSend(BaseModel):
    """One delivered (or failed) email of the sequence."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    subscriber_id: str
    email_number: int = Field(ge=1, le=SEQUENCE_LENGTH)
    sent_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    status: SendStatus = SendStatus.SENT

    @property
    def stage_label(self) -> str:
        return SEQUENCE_STAGES[self.email_number - 1]


class EmailSummary(BaseModel):
    """Headline numbers for the email page."""

    model_config = ConfigDict(frozen=True)

    total_subscribers: int = 0
    active: int = 0
    completed: int = 0
    total_sent: int = 0
