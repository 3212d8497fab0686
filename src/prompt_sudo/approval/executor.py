"""
Outcome Executor
================

Turns the arbiter's Decision into process-level effects:

    APPROVED   run the command (replace this process, or pipe captured input
               into a child and propagate its exit code)
    DENIED     exit 1
    TIMED_OUT  exit 1
    CANCELLED  exit 130

The status edit on the request message is cosmetic. Its failure is logged
and never changes the exit code.
"""

from __future__ import annotations

import os
import shutil
import signal
import subprocess
import sys
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prompt_sudo.approval.formatter import status_line, with_status
from prompt_sudo.core.exceptions import EXIT_FAILURE, EXIT_INTERRUPTED, ErrorCode, ExecutionError
from prompt_sudo.core.structured_logger import get_logger
from prompt_sudo.core.types import ApprovalRequest, Decision, Resolution

if TYPE_CHECKING:
    from prompt_sudo.interfaces.base import NotificationChannel

logger = get_logger("Executor")

EXIT_CODES = {
    Decision.DENIED: EXIT_FAILURE,
    Decision.TIMED_OUT: EXIT_FAILURE,
    Decision.CANCELLED: EXIT_INTERRUPTED,
}

# Signals relayed to a child we could not exec into. SIGINT is left out: the
# terminal already delivers it to the whole foreground process group.
_FORWARDED_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGHUP") if hasattr(signal, name)
)

# The interpreter starts with these ignored, and ignored dispositions survive exec.
_RESET_ON_EXEC = tuple(
    getattr(signal, name) for name in ("SIGPIPE", "SIGXFSZ", "SIGXFZ") if hasattr(signal, name)
)


class OutcomeExecutor:
    """Applies one Resolution for one ApprovalRequest."""

    def __init__(
        self,
        channel: NotificationChannel,
        request: ApprovalRequest,
        timeout_seconds: int,
    ) -> None:
        self.channel = channel
        self.request = request
        self.timeout_seconds = timeout_seconds

    async def announce(self, resolution: Resolution) -> None:
        """Append the status line to the request message, then release the channel."""
        status = status_line(resolution, self.timeout_seconds)
        try:
            await self.channel.edit_request(
                self.request.request_id, with_status(self.request.text, status)
            )
        except Exception as e:
            logger.warning(
                "Failed to update request status",
                decision=resolution.decision.value,
                error=str(e),
            )
        finally:
            await self.channel.close()

    def execute(self, decision: Decision) -> int:
        """
        Perform the terminal action and return the exit code.

        On the exec path a successful call never returns.

        Raises:
            ExecutionError: if the approved command cannot be located or started
        """
        if decision is not Decision.APPROVED:
            return EXIT_CODES[decision]

        command = self.request.command
        logger.info("Executing approved command", program=command[0])
        if self.request.captured_input is not None:
            return run_with_input(command, self.request.captured_input)
        return replace_process(command)


def exit_status(returncode: int) -> int:
    """Map subprocess return codes to shell-style exit codes (signal deaths -> 128+N)."""
    if returncode < 0:
        return 128 - returncode
    return returncode


@contextmanager
def _forward_signals(proc: subprocess.Popen) -> Iterator[None]:
    def relay(signum, _frame):
        if proc.poll() is None:
            proc.send_signal(signum)

    previous = {signum: signal.signal(signum, relay) for signum in _FORWARDED_SIGNALS}
    # The child receives Ctrl-C itself; keep this process alive to report its status.
    previous[signal.SIGINT] = signal.signal(signal.SIGINT, signal.SIG_IGN)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def _reset_inherited_signals() -> dict:
    """Put exec-surviving ignored signals back to SIG_DFL; return the old handlers."""
    return {signum: signal.signal(signum, signal.SIG_DFL) for signum in _RESET_ON_EXEC}


def _spawn(argv: Sequence[str], **kwargs) -> subprocess.Popen:
    try:
        return subprocess.Popen(list(argv), **kwargs)
    except FileNotFoundError as e:
        raise ExecutionError(
            argv[0], f"Error finding executable: {e}", ErrorCode.COMMAND_NOT_FOUND
        ) from e
    except OSError as e:
        raise ExecutionError(argv[0], f"Error executing command: {e}") from e


def run_with_input(
    command: Sequence[str],
    data: bytes,
    env: Mapping[str, str] | None = None,
) -> int:
    """Run *command* as a child fed *data* on stdin; return its exit code."""
    proc = _spawn(command, stdin=subprocess.PIPE, env=env)
    with _forward_signals(proc):
        proc.communicate(data)
    return exit_status(proc.returncode)


def replace_process(command: Sequence[str], env: Mapping[str, str] | None = None) -> int:
    """
    Become *command*: exec in place with the full environment.

    Where exec is unavailable, run it as a signal-forwarding child and return
    its exit code instead.
    """
    env = dict(os.environ if env is None else env)
    path = shutil.which(command[0], path=env.get("PATH"))
    if path is None:
        raise ExecutionError(
            command[0],
            f"Error finding executable: {command[0]}: executable file not found in $PATH",
            ErrorCode.COMMAND_NOT_FOUND,
        )

    if os.name != "posix":
        proc = _spawn([path, *command[1:]], env=env)
        with _forward_signals(proc):
            proc.wait()
        return exit_status(proc.returncode)

    sys.stdout.flush()
    sys.stderr.flush()
    previous = _reset_inherited_signals()
    try:
        os.execve(path, list(command), env)
    except OSError as e:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
        raise ExecutionError(command[0], f"Error executing command: {e}") from e
    return EXIT_FAILURE  # pragma: no cover
