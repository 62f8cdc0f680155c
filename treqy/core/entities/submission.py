"""
Submission domain entity and its status state machine.

A submission is one uploaded specification document moving through
pending -> processing -> ready_for_review -> completed | rejected.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

from treqy.core.exceptions import InvalidStateTransitionError


class SubmissionStatus(str, Enum):
    """Processing status of a submission."""

    PENDING = "pending"
    PROCESSING = "processing"
    READY_FOR_REVIEW = "ready_for_review"
    COMPLETED = "completed"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (SubmissionStatus.COMPLETED, SubmissionStatus.REJECTED)


# Allowed edges. processing -> rejected lets an operator abandon a stuck extraction.
ALLOWED_TRANSITIONS: dict[SubmissionStatus, frozenset[SubmissionStatus]] = {
    SubmissionStatus.PENDING: frozenset(
        {SubmissionStatus.PROCESSING, SubmissionStatus.REJECTED}
    ),
    SubmissionStatus.PROCESSING: frozenset(
        {SubmissionStatus.READY_FOR_REVIEW, SubmissionStatus.REJECTED}
    ),
    SubmissionStatus.READY_FOR_REVIEW: frozenset(
        {SubmissionStatus.COMPLETED, SubmissionStatus.REJECTED}
    ),
    SubmissionStatus.COMPLETED: frozenset(),
    SubmissionStatus.REJECTED: frozenset(),
}


def can_transition(current: SubmissionStatus, target: SubmissionStatus) -> bool:
    """Check whether current -> target is an edge of the state machine."""
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(
    current: SubmissionStatus,
    target: SubmissionStatus,
    submission_id: str | None = None,
) -> None:
    """Raise InvalidStateTransitionError unless current -> target is allowed."""
    if not can_transition(current, target):
        raise InvalidStateTransitionError(submission_id, current.value, target.value)


class Submission(BaseModel):
    """An uploaded document awaiting or having undergone extraction."""

    id: str | None = None
    studio_id: str
    project_id: str | None = None
    client_id: str | None = None
    file_name: str
    file_size: int = 0
    mime_type: str = "application/pdf"
    object_path: str | None = None
    notes: str | None = None
    status: SubmissionStatus = SubmissionStatus.PENDING
    last_error: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    processed_at: datetime | None = None

    def can_transition_to(self, target: SubmissionStatus) -> bool:
        return can_transition(self.status, target)

    def ensure_can_transition_to(self, target: SubmissionStatus) -> None:
        ensure_transition(self.status, target, self.id)
