"""Approval pipeline: access filter, decision arbiter, outcome executor."""

from .access_filter import (
    AuthorizedAction,
    RejectReason,
    Rejection,
    accept,
    is_approver,
    resolve_action,
)
from .arbiter import DecisionArbiter, DecisionSlot, resolve_timeout
from .executor import OutcomeExecutor

__all__ = [
    "AuthorizedAction",
    "DecisionArbiter",
    "DecisionSlot",
    "OutcomeExecutor",
    "RejectReason",
    "Rejection",
    "accept",
    "is_approver",
    "resolve_action",
    "resolve_timeout",
]
