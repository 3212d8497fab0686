"""
Custom Exceptions for prompt-sudo
=================================

Structured error handling lets the CLI report failures uniformly and map
them to process exit codes without parsing strings.

Error Codes:
- 1xxx: Usage errors (command line)
- 2xxx: Configuration errors (config file, credentials, approvers)
- 3xxx: Connectivity errors (chat platform session, request posting)
- 4xxx: Execution errors (command lookup, spawn, exec)

Denied, timed-out and cancelled approvals are Decisions, not exceptions.
"""

from enum import IntEnum
from typing import Any

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


class ErrorCode(IntEnum):
    """Structured error codes for diagnostics"""

    # 1xxx: Usage Errors
    MISSING_COMMAND = 1001
    MISSING_CHANNEL = 1002
    INVALID_OPTION = 1003

    # 2xxx: Configuration Errors
    CONFIG_UNREADABLE = 2001
    CONFIG_INVALID = 2002

    # 3xxx: Connectivity Errors
    CHANNEL_UNAVAILABLE = 3001
    REQUEST_NOT_SENT = 3002

    # 4xxx: Execution Errors
    COMMAND_NOT_FOUND = 4001
    COMMAND_FAILED_TO_START = 4002


class PromptSudoError(Exception):
    """Base exception for all prompt-sudo errors"""

    exit_code = EXIT_FAILURE

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging"""
        return {
            'error_type': self.__class__.__name__,
            'error_code': int(self.error_code),
            'message': self.message,
            'details': self.details
        }


class UsageError(PromptSudoError):
    """Raised when the command line is incomplete"""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_OPTION):
        super().__init__(message, error_code)


class ConfigurationError(PromptSudoError):
    """Raised when the config file is missing, unreadable or invalid"""

    def __init__(self, message: str, details: dict[str, Any] | None = None,
                 error_code: ErrorCode = ErrorCode.CONFIG_INVALID):
        super().__init__(message, error_code, details)


class ConnectivityError(PromptSudoError):
    """Raised when the notification channel cannot be opened or posted to"""

    def __init__(self, message: str, details: dict[str, Any] | None = None,
                 error_code: ErrorCode = ErrorCode.CHANNEL_UNAVAILABLE):
        super().__init__(message, error_code, details)


class ExecutionError(PromptSudoError):
    """Raised when the approved command cannot be located or started"""

    def __init__(self, command: str, message: str,
                 error_code: ErrorCode = ErrorCode.COMMAND_FAILED_TO_START):
        super().__init__(message, error_code, {'command': command})
        self.command = command
