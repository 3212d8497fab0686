"""
Notification Channel Abstract Class
===================================

Defines the contract every chat-platform adapter implements so the approval
pipeline can post a request, watch for approve/deny events and update the
request message without knowing which platform it talks to.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from prompt_sudo.approval.access_filter import Verdict
from prompt_sudo.core.types import ApprovalEvent

EventHandler = Callable[[ApprovalEvent], Verdict]


class NotificationChannel(ABC):
    """
    Abstract base class for chat-platform adapters.

    Adapters deliver inbound interactions (button clicks, reactions) as
    ApprovalEvents to the single subscribed handler. The handler's verdict is
    returned to the adapter so it can answer the interaction, e.g. with a
    private notice to an unauthorized actor. With no subscriber, events are
    dropped.
    """

    #: Maximum length of a message body on the platform.
    message_limit: int = 4096

    #: Optional instruction shown under the request (e.g. which emoji to use).
    approval_hint: str | None = None

    def __init__(self) -> None:
        self._handler: EventHandler | None = None

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """Route inbound events to *handler*; returns an unsubscribe function."""
        self._handler = handler

        def unsubscribe() -> None:
            if self._handler is handler:
                self._handler = None

        return unsubscribe

    def dispatch(self, event: ApprovalEvent) -> Verdict | None:
        handler = self._handler
        if handler is None:
            return None
        return handler(event)

    @abstractmethod
    async def open(self) -> None:
        """Connect to the platform and start receiving events."""

    @abstractmethod
    async def post_request(self, channel_id: str, text: str, reply_to: str | None = None) -> str:
        """Post the request message; returns its opaque request identifier."""

    @abstractmethod
    async def edit_request(self, request_id: str, text: str) -> None:
        """Replace the request's text and remove any interactive controls."""

    @abstractmethod
    async def close(self) -> None:
        """Disconnect. Safe to call more than once."""
