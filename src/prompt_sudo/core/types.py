"""
Core Type Definitions
=====================

Centralized type definitions shared by the approval pipeline and the
notification channel adapters. Prevents magic strings for decisions and
approval actions.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


class Decision(str, Enum):
    """
    Terminal outcome of an approval request.

    Exactly one Decision is accepted per request. Denied, timed-out and
    cancelled requests are expected outcomes, each with its own exit code.
    """

    APPROVED = "approved"
    DENIED = "denied"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


class ApprovalAction(str, Enum):
    """What an authorized approver asked for."""

    APPROVE = "approve"
    DENY = "deny"

    def __str__(self) -> str:
        return self.value

    def to_decision(self) -> Decision:
        return Decision.APPROVED if self is ApprovalAction.APPROVE else Decision.DENIED


class ArbiterState(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class ApprovalEvent:
    """
    Inbound interaction delivered by a notification channel.

    ``action`` is the raw tag as the platform reports it: a button id for
    button clicks, an emoji for reactions.
    """
    event_id: str
    actor_id: str
    target_id: str
    action: str
    actor_name: str | None = None


@dataclass(frozen=True)
class Resolution:
    """The accepted Decision and, for approver decisions, who made it."""
    decision: Decision
    actor_id: str | None = None
    actor_name: str | None = None


@dataclass
class ApprovalRequest:
    """A posted approval request. Lives for one invocation."""
    request_id: str
    text: str
    command: tuple[str, ...]
    captured_input: bytes | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
