"""Lifecycle: post the request, wait for the decision, hand off to the executor."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

from prompt_sudo.approval.arbiter import DecisionArbiter, resolve_timeout
from prompt_sudo.approval.executor import OutcomeExecutor
from prompt_sudo.approval.formatter import append_captured_input, build_request_text
from prompt_sudo.config.settings import Settings
from prompt_sudo.core.structured_logger import get_logger
from prompt_sudo.core.types import ApprovalRequest, Decision, Resolution
from prompt_sudo.interfaces import NotificationChannel, create_channel

logger = get_logger("Lifecycle")

Echo = Callable[[str], None]

_OUTCOME_LINES = {
    Decision.APPROVED: "✅ Approved! Executing command...",
    Decision.DENIED: "❌ Denied.",
    Decision.TIMED_OUT: "⏰ Timeout.",
    Decision.CANCELLED: "\nInterrupted",
}


@dataclass(frozen=True)
class Invocation:
    """What the operator asked for on the command line."""
    channel_id: str
    command: tuple[str, ...]
    reply_to: str | None = None
    timeout_override: int | None = None
    captured_input: bytes | None = None


class Runtime:
    """Runs one approval request from post to terminal action."""

    def __init__(
        self,
        settings: Settings,
        channel: NotificationChannel | None = None,
        echo: Echo | None = None,
    ) -> None:
        self.settings = settings
        self.channel = channel or create_channel(settings)
        self.echo = echo or (lambda _line: None)

    async def request_decision(
        self, invocation: Invocation
    ) -> tuple[Resolution, OutcomeExecutor]:
        """
        Post the request and wait for its Decision.

        The outcome line is echoed before the status edit, and the channel is
        closed before this returns, whatever the outcome.

        Raises:
            ConnectivityError: if the channel cannot be opened or posted to
        """
        timeout = resolve_timeout(invocation.timeout_override, self.settings.timeout_seconds)
        text = build_request_text(invocation.command, timeout, hint=self.channel.approval_hint)
        if invocation.captured_input is not None:
            text = append_captured_input(
                text, invocation.captured_input, self.channel.message_limit
            )

        await self.channel.open()
        try:
            request_id = await self.channel.post_request(
                invocation.channel_id, text, invocation.reply_to
            )
            request = ApprovalRequest(
                request_id=request_id,
                text=text,
                command=invocation.command,
                captured_input=invocation.captured_input,
            )
            self.echo(f"Approval request sent (message ID: {request_id})")
            self.echo(f"Waiting for approval (timeout: {timeout}s)...")

            arbiter = DecisionArbiter(self.channel, self.settings.approvers, timeout)
            resolution = await arbiter.wait(request)
        except BaseException:
            await self.channel.close()
            raise

        executor = OutcomeExecutor(self.channel, request, timeout)
        self.echo(_OUTCOME_LINES[resolution.decision])
        await executor.announce(resolution)
        return resolution, executor

    def run(self, invocation: Invocation) -> int:
        """Obtain a decision and act on it; returns the process exit code."""
        resolution, executor = asyncio.run(self.request_decision(invocation))
        logger.info("Applying decision", decision=resolution.decision.value)
        return executor.execute(resolution.decision)
