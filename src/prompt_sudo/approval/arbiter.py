"""
Decision Arbiter
================

Races three sources for the single Decision of an approval request:

    1. authorized approve/deny events from the notification channel
    2. a one-shot timeout timer
    3. SIGINT / SIGTERM

Every source writes into the same DecisionSlot. The slot accepts the first
writer and drops the rest, so exactly one Decision is ever acted upon no
matter how the sources interleave (two approvers clicking in the same
instant, a click landing as the timer fires, and so on).
"""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Callable, Collection, Sequence
from typing import TYPE_CHECKING

from prompt_sudo.approval.access_filter import AuthorizedAction, Verdict, accept
from prompt_sudo.config.settings import DEFAULT_TIMEOUT
from prompt_sudo.core.structured_logger import TraceContext, get_logger
from prompt_sudo.core.types import (
    ApprovalEvent,
    ApprovalRequest,
    ArbiterState,
    Decision,
    Resolution,
)

if TYPE_CHECKING:
    from prompt_sudo.interfaces.base import NotificationChannel

logger = get_logger("Arbiter")

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def resolve_timeout(override: int | None, configured: int | None) -> int:
    """Explicit override, then configured value, then the 300s default."""
    if override is not None and override > 0:
        return override
    if configured is not None and configured > 0:
        return configured
    return DEFAULT_TIMEOUT


class DecisionSlot:
    """Single-assignment cell: the first offer wins, later offers are dropped."""

    def __init__(self) -> None:
        self._resolution: Resolution | None = None
        self._settled = asyncio.Event()

    @property
    def resolution(self) -> Resolution | None:
        return self._resolution

    def is_settled(self) -> bool:
        return self._resolution is not None

    def offer(self, resolution: Resolution) -> bool:
        if self._resolution is not None:
            return False
        self._resolution = resolution
        self._settled.set()
        return True

    async def wait(self) -> Resolution:
        await self._settled.wait()
        return self._resolution


class DecisionArbiter:
    """Pending -> Resolved state machine for one approval request."""

    def __init__(
        self,
        channel: NotificationChannel,
        approvers: Collection[str],
        timeout_seconds: int,
        signals: Sequence[signal.Signals] = DEFAULT_SIGNALS,
    ) -> None:
        self.channel = channel
        self.approvers = frozenset(approvers)
        self.timeout_seconds = timeout_seconds
        self.signals = tuple(signals)
        self.slot = DecisionSlot()

    @property
    def state(self) -> ArbiterState:
        return ArbiterState.RESOLVED if self.slot.is_settled() else ArbiterState.PENDING

    @property
    def decision(self) -> Decision | None:
        resolution = self.slot.resolution
        return resolution.decision if resolution else None

    def cancel(self) -> bool:
        """Resolve as Cancelled unless something else already won."""
        return self._offer(Resolution(Decision.CANCELLED))

    def event_handler(self, request_id: str) -> Callable[[ApprovalEvent], Verdict]:
        """
        Build the channel callback for one request.

        The live request id is captured here, at subscription time, rather
        than looked up from shared state when an event arrives.
        """

        def on_event(event: ApprovalEvent) -> Verdict:
            verdict = accept(event, request_id, self.approvers)
            if isinstance(verdict, AuthorizedAction):
                self._offer(
                    Resolution(verdict.action.to_decision(), event.actor_id, event.actor_name)
                )
            else:
                logger.info(
                    "Ignoring event",
                    reason=verdict.reason.value,
                    actor_id=event.actor_id,
                    event_id=event.event_id,
                )
            return verdict

        return on_event

    async def wait(self, request: ApprovalRequest) -> Resolution:
        """
        Block until the first source resolves the request.

        Timer, signal handlers and the channel subscription are torn down
        before returning, so nothing arriving afterwards is buffered.
        """
        loop = asyncio.get_running_loop()
        with TraceContext(request.request_id):
            unsubscribe = self.channel.subscribe(self.event_handler(request.request_id))
            timer = loop.call_later(self.timeout_seconds, self._on_timeout)
            restore_signals = self._install_signal_handlers(loop)
            logger.info("Waiting for decision", timeout_seconds=self.timeout_seconds)
            try:
                resolution = await self.slot.wait()
            finally:
                timer.cancel()
                restore_signals()
                unsubscribe()
            logger.info("Decision resolved", decision=resolution.decision.value,
                        actor_id=resolution.actor_id)
            return resolution

    def _offer(self, resolution: Resolution) -> bool:
        accepted = self.slot.offer(resolution)
        if not accepted:
            logger.debug(
                "Discarding late decision",
                candidate=resolution.decision.value,
                resolved=self.slot.resolution.decision.value,
            )
        return accepted

    def _on_timeout(self) -> None:
        self._offer(Resolution(Decision.TIMED_OUT))

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> Callable[[], None]:
        """Route interrupts into the slot; return a function undoing it."""
        try:
            for signum in self.signals:
                loop.add_signal_handler(signum, self._on_signal, signum)
        except (NotImplementedError, RuntimeError):
            return self._install_fallback_signal_handlers(loop)

        def restore() -> None:
            for signum in self.signals:
                loop.remove_signal_handler(signum)

        return restore

    def _install_fallback_signal_handlers(
        self, loop: asyncio.AbstractEventLoop
    ) -> Callable[[], None]:
        # Loops without add_signal_handler (Windows); hop back onto the loop.
        previous = {}

        def handler(signum, _frame):
            loop.call_soon_threadsafe(self._on_signal, signum)

        for signum in self.signals:
            previous[signum] = signal.signal(signum, handler)

        def restore() -> None:
            for signum, old in previous.items():
                signal.signal(signum, old)

        return restore

    def _on_signal(self, signum: int) -> None:
        logger.info(f"Received {signal.Signals(signum).name}, cancelling request")
        self.cancel()
