"""Access filter: decides which inbound events may resolve the live request."""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from enum import Enum

from prompt_sudo.core.types import ApprovalAction, ApprovalEvent

BUTTON_APPROVE_ID = "psd_approve"
BUTTON_DENY_ID = "psd_deny"

APPROVE_EMOJI = frozenset({"👍", "👌", "✅", "💯"})
DENY_EMOJI = frozenset({"👎", "❌", "🚫", "🙅"})

_VARIATION_SELECTOR = "\ufe0f"

ACTION_TAGS: dict[str, ApprovalAction] = {
    BUTTON_APPROVE_ID: ApprovalAction.APPROVE,
    BUTTON_DENY_ID: ApprovalAction.DENY,
    **{emoji: ApprovalAction.APPROVE for emoji in APPROVE_EMOJI},
    **{emoji: ApprovalAction.DENY for emoji in DENY_EMOJI},
}


class RejectReason(Enum):
    WRONG_MESSAGE = "wrong_message"
    UNAUTHORIZED = "unauthorized"
    UNRECOGNIZED_ACTION = "unrecognized_action"


@dataclass(frozen=True)
class AuthorizedAction:
    event: ApprovalEvent
    action: ApprovalAction


@dataclass(frozen=True)
class Rejection:
    event: ApprovalEvent
    reason: RejectReason

    @property
    def notify_actor(self) -> bool:
        """True when the actor deserves a private 'not authorized' notice."""
        return self.reason is RejectReason.UNAUTHORIZED


Verdict = AuthorizedAction | Rejection


def is_approver(identity: str, approvers: Collection[str]) -> bool:
    return bool(identity) and identity in approvers


def resolve_action(tag: str) -> ApprovalAction | None:
    """Map a button id or emoji onto approve/deny, or None if unrecognized."""
    if not tag:
        return None
    return ACTION_TAGS.get(tag) or ACTION_TAGS.get(tag.replace(_VARIATION_SELECTOR, ""))


def accept(event: ApprovalEvent, request_id: str, approvers: Collection[str]) -> Verdict:
    """
    Classify an inbound event against the live request.

    Pure function: no state is touched, so evaluating the same event again
    yields the same verdict. Checks run in order: target message, actor,
    action tag.
    """
    if event.target_id != request_id:
        return Rejection(event, RejectReason.WRONG_MESSAGE)
    if not is_approver(event.actor_id, approvers):
        return Rejection(event, RejectReason.UNAUTHORIZED)
    action = resolve_action(event.action)
    if action is None:
        return Rejection(event, RejectReason.UNRECOGNIZED_ACTION)
    return AuthorizedAction(event, action)
