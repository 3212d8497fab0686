"""Request and status message rendering (Telegram HTML)."""

from __future__ import annotations

import html
import os
import shlex
import socket
from collections.abc import Sequence

from prompt_sudo.core.types import Decision, Resolution

# Room kept free for the truncation marker and the status line appended on resolution.
STATUS_RESERVE = 100

_STDIN_SECTION = "\n<b>Stdin:</b>\n<pre>{}</pre>"


def format_command(args: Sequence[str]) -> str:
    return shlex.join(args)


def build_request_text(
    command: Sequence[str],
    timeout_seconds: int,
    host: str | None = None,
    cwd: str | None = None,
    hint: str | None = None,
) -> str:
    if host is None:
        host = socket.gethostname()
    if cwd is None:
        try:
            cwd = os.getcwd()
        except OSError:
            cwd = "?"

    text = (
        "<b>🔐 Sudo Request</b>\n"
        f"<pre>{html.escape(format_command(command))}</pre>\n"
        f"<b>Host:</b> <code>{html.escape(host)}</code>\n"
        f"<b>CWD:</b> <code>{html.escape(cwd)}</code>\n"
        f"<b>Timeout:</b> {timeout_seconds}s"
    )
    if hint:
        text += f"\n<i>{html.escape(hint)}</i>"
    return text


def captured_input_budget(text: str, limit: int) -> int:
    """Bytes of captured input that fit next to ``text`` under ``limit``."""
    return max(0, limit - len(text) - len(_STDIN_SECTION.format("")) - STATUS_RESERVE)


def truncate_captured_input(data: bytes, budget: int) -> str:
    """
    Render captured input for display, cutting it to ``budget`` bytes.

    Overflow is replaced by a ``(N bytes truncated)`` marker. The result
    depends only on ``data`` and ``budget``.
    """
    if len(data) <= budget:
        return data.decode("utf-8", errors="replace")
    shown = data[:budget].decode("utf-8", errors="replace")
    return f"{shown}\n... ({len(data) - budget} bytes truncated)"


def append_captured_input(text: str, data: bytes, limit: int) -> str:
    display = truncate_captured_input(data, captured_input_budget(text, limit))
    return text + _STDIN_SECTION.format(html.escape(display))


def status_line(resolution: Resolution, timeout_seconds: int) -> str:
    who = f" by {html.escape(resolution.actor_name)}" if resolution.actor_name else ""
    decision = resolution.decision
    if decision is Decision.APPROVED:
        return f"✅ <b>Approved</b>{who}. Executing..."
    if decision is Decision.DENIED:
        return f"❌ <b>Denied</b>{who}."
    if decision is Decision.TIMED_OUT:
        return f"⏰ <b>Timed out</b> after {timeout_seconds}s."
    return "⚠️ <b>Cancelled</b> (interrupted)."


def with_status(text: str, status: str) -> str:
    return f"{text}\n\n{status}"
