"""
End-to-end approval runs: post, wait, decide, act, driven through Runtime
with an in-memory channel in place of Telegram.
"""

import os
import signal

import pytest

from prompt_sudo.core.exceptions import ConnectivityError
from prompt_sudo.lifecycle import Invocation, Runtime


def _invocation(command, captured_input=None, timeout_override=None):
    return Invocation(
        channel_id="chat",
        command=tuple(command),
        timeout_override=timeout_override,
        captured_input=captured_input,
    )


@pytest.mark.e2e
class TestApprovalScenarios:
    def test_approved_command_exit_code_propagates(
        self, settings, exit_with, fake_channel, event_factory
    ):
        channel = fake_channel([event_factory(actor_name="@alice")])
        lines = []
        code = Runtime(settings, channel=channel, echo=lines.append).run(
            _invocation(exit_with(3), captured_input=b"")
        )

        assert code == 3
        assert lines == [
            "Approval request sent (message ID: chat:1)",
            "Waiting for approval (timeout: 5s)...",
            "✅ Approved! Executing command...",
        ]
        (_, final_text), = channel.edits
        assert "Approved</b> by @alice" in final_text
        assert channel.close_calls == 1

    def test_captured_input_shown_in_request(
        self, settings, exit_with, fake_channel, event_factory
    ):
        channel = fake_channel([event_factory()])
        Runtime(settings, channel=channel).run(
            _invocation(exit_with(0), captured_input=b"line one\n")
        )
        (_, text, _), = channel.posted
        assert "<b>Stdin:</b>" in text
        assert "line one" in text

    def test_denied(self, settings, exit_with, fake_channel, event_factory):
        channel = fake_channel([event_factory(action="psd_deny")])
        lines = []
        code = Runtime(settings, channel=channel, echo=lines.append).run(
            _invocation(exit_with(0))
        )
        assert code == 1
        assert lines[-1] == "❌ Denied."
        assert "Denied" in channel.edits[-1][1]

    def test_unauthorized_then_authorized(
        self, settings, exit_with, fake_channel, event_factory
    ):
        channel = fake_channel([
            event_factory(action="psd_deny", actor_id="999", event_id="evt-1"),
            event_factory(action="psd_approve", actor_id="42", event_id="evt-2"),
        ])
        code = Runtime(settings, channel=channel).run(
            _invocation(exit_with(4), captured_input=b"")
        )
        assert code == 4
        assert channel.verdicts[0].notify_actor is True

    @pytest.mark.slow
    def test_timeout(self, settings, exit_with, fake_channel):
        channel = fake_channel()
        lines = []
        code = Runtime(settings, channel=channel, echo=lines.append).run(
            _invocation(exit_with(0), timeout_override=2)
        )
        assert code == 1
        assert lines[-1] == "⏰ Timeout."
        assert "Timed out</b> after 2s" in channel.edits[-1][1]

    def test_interrupt_cancels(self, settings, exit_with, fake_channel):
        def interrupt_soon(loop):
            loop.call_later(0.05, os.kill, os.getpid(), signal.SIGINT)

        channel = fake_channel(on_post=interrupt_soon)
        lines = []
        code = Runtime(settings, channel=channel, echo=lines.append).run(
            _invocation(exit_with(0))
        )
        assert code == 130
        assert lines[-1] == "\nInterrupted"
        assert "Cancelled" in channel.edits[-1][1]
        assert channel.close_calls == 1

    def test_post_failure_closes_channel(self, settings, exit_with, fake_channel):
        class UnreachableChannel(fake_channel):
            async def post_request(self, channel_id, text, reply_to=None):
                raise ConnectivityError("failed to send Telegram message: chat not found")

        channel = UnreachableChannel()
        with pytest.raises(ConnectivityError):
            Runtime(settings, channel=channel).run(_invocation(exit_with(0)))
        assert channel.close_calls == 1
        assert channel.edits == []

    def test_outcome_echoed_before_status_edit(
        self, settings, exit_with, fake_channel, event_factory
    ):
        channel = fake_channel([event_factory()])
        seen = []
        Runtime(
            settings, channel=channel, echo=lambda line: seen.append((line, len(channel.edits)))
        ).run(_invocation(exit_with(0), captured_input=b""))

        assert ("✅ Approved! Executing command...", 0) in seen
        assert len(channel.edits) == 1
