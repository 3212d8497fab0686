"""Core types, errors and logging shared across prompt-sudo."""

from .exceptions import (
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    ConfigurationError,
    ConnectivityError,
    ErrorCode,
    ExecutionError,
    PromptSudoError,
    UsageError,
)
from .types import (
    ApprovalAction,
    ApprovalEvent,
    ApprovalRequest,
    ArbiterState,
    Decision,
    Resolution,
)

__all__ = [
    "EXIT_FAILURE",
    "EXIT_INTERRUPTED",
    "ApprovalAction",
    "ApprovalEvent",
    "ApprovalRequest",
    "ArbiterState",
    "ConfigurationError",
    "ConnectivityError",
    "Decision",
    "ErrorCode",
    "ExecutionError",
    "PromptSudoError",
    "Resolution",
    "UsageError",
]
