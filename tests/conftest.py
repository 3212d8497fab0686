"""
Pytest configuration for prompt-sudo tests: shared fixtures, a scripted
notification channel, and marker registration.
"""

import asyncio
import json
import logging
import shutil
import sys
import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest
import yaml

from prompt_sudo.config.settings import Settings
from prompt_sudo.core.types import ApprovalEvent
from prompt_sudo.interfaces.base import NotificationChannel

# =============================================================================
# FAKE CHANNEL
# =============================================================================


class FakeChannel(NotificationChannel):
    """
    In-memory NotificationChannel.

    After the request is posted, each scripted event is delivered from the
    event loop ``delay`` seconds apart, the way a polling adapter would.
    """

    message_limit = 2000

    def __init__(
        self,
        events: list[ApprovalEvent] | None = None,
        delay: float = 0.01,
        on_post: Callable[[asyncio.AbstractEventLoop], None] | None = None,
        fail_edit: bool = False,
    ) -> None:
        super().__init__()
        self.events = list(events or [])
        self.delay = delay
        self.on_post = on_post
        self.fail_edit = fail_edit
        self.opened = False
        self.close_calls = 0
        self.posted: list[tuple[str, str, str | None]] = []
        self.edits: list[tuple[str, str]] = []
        self.verdicts = []

    async def open(self) -> None:
        self.opened = True

    async def post_request(self, channel_id: str, text: str, reply_to: str | None = None) -> str:
        self.posted.append((channel_id, text, reply_to))
        loop = asyncio.get_running_loop()
        for i, event in enumerate(self.events, start=1):
            loop.call_later(self.delay * i, self.deliver, event)
        if self.on_post:
            self.on_post(loop)
        return request_id_for(channel_id)

    def deliver(self, event: ApprovalEvent) -> None:
        self.verdicts.append(self.dispatch(event))

    async def edit_request(self, request_id: str, text: str) -> None:
        if self.fail_edit:
            raise RuntimeError("edit failed")
        self.edits.append((request_id, text))

    async def close(self) -> None:
        self.close_calls += 1


def request_id_for(channel_id: str) -> str:
    return f"{channel_id}:1"


def make_event(
    action: str = "psd_approve",
    actor_id: str = "42",
    target_id: str = "chat:1",
    event_id: str = "evt-1",
    actor_name: str | None = None,
) -> ApprovalEvent:
    return ApprovalEvent(
        event_id=event_id,
        actor_id=actor_id,
        target_id=target_id,
        action=action,
        actor_name=actor_name,
    )


# =============================================================================
# SHARED FIXTURES
# =============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmp_dir = tempfile.mkdtemp()
    yield Path(tmp_dir)
    shutil.rmtree(tmp_dir, ignore_errors=True)


@pytest.fixture
def write_config(temp_dir):
    """Write a config mapping to disk (YAML by default) and return its path."""

    def _write(data: dict, name: str = "config.yaml") -> Path:
        path = temp_dir / name
        if name.endswith(".json"):
            path.write_text(json.dumps(data))
        else:
            path.write_text(yaml.safe_dump(data))
        return path

    return _write


@pytest.fixture
def fake_channel():
    """FakeChannel class; call it with scripted events."""
    return FakeChannel


@pytest.fixture
def event_factory():
    return make_event


@pytest.fixture
def settings():
    return Settings(
        bot_token="123456:test-token-abcdefghijklmnopqrstuvwxyz",
        approver_ids=["42"],
        timeout_seconds=5,
    )


@pytest.fixture
def exit_with():
    """argv for a child process that exits with the given code."""

    def _argv(code: int) -> tuple[str, ...]:
        return (sys.executable, "-c", f"import sys; sys.exit({code})")

    return _argv


@pytest.fixture(autouse=True)
def restore_logging():
    """configure_logging() detaches the package logger from the root; undo it."""
    root = logging.getLogger("prompt_sudo")
    saved = (list(root.handlers), root.level, root.propagate)
    yield
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])
    root.propagate = saved[2]


# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Fast unit tests with no external dependencies"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests driving a full approval with a fake channel"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that wait on real timeouts"
    )
