"""
prompt-sudo CLI: run a command once a remote approver says yes.

    prompt-sudo --channel CHANNEL_ID [--reply-to MSG_ID] [--timeout SECONDS]
                [--show-stdin] -- COMMAND [ARGS...]

The config file path is fixed (see prompt_sudo.config.settings.CONFIG_PATH)
and cannot be overridden from here.
"""
import sys

import click

from prompt_sudo import __version__
from prompt_sudo.config import settings as config_settings
from prompt_sudo.core.exceptions import (
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    ErrorCode,
    PromptSudoError,
    UsageError,
)
from prompt_sudo.core.structured_logger import configure_logging, get_logger

logger = get_logger("CLI")

USAGE = (
    "Usage: prompt-sudo --channel CHANNEL_ID [--reply-to MSG_ID] "
    "-- COMMAND [ARGS...]"
)


def _echo_err(line: str) -> None:
    click.echo(line, err=True)


def _check_usage(channel_id: str, command: tuple[str, ...]) -> None:
    if not command:
        raise UsageError("No command specified", ErrorCode.MISSING_COMMAND)
    if not channel_id:
        raise UsageError("--channel is required", ErrorCode.MISSING_CHANNEL)


@click.command(
    context_settings={
        "help_option_names": ["-h", "--help"],
        "allow_interspersed_args": False,
    }
)
@click.option("--channel", "channel_id", default="", help="Chat ID to post the approval request to")
@click.option("--reply-to", default="", help="Message ID to reply to (optional)")
@click.option(
    "--timeout",
    type=click.IntRange(min=0),
    default=0,
    help="Timeout in seconds (default: from config or 300)",
)
@click.option("--show-stdin", is_flag=True, help="Read stdin and include it in the approval request")
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
@click.version_option(__version__, prog_name="prompt-sudo")
def cli(channel_id: str, reply_to: str, timeout: int, show_stdin: bool, command: tuple[str, ...]) -> int:
    """Ask for approval over Telegram, then run COMMAND."""
    from prompt_sudo.lifecycle import Invocation, Runtime

    try:
        _check_usage(channel_id, command)
    except UsageError as e:
        _echo_err(f"Error: {e.message}")
        _echo_err(USAGE)
        return e.exit_code

    # Read stdin fully before anything touches the network.
    captured_input = None
    if show_stdin:
        try:
            captured_input = sys.stdin.buffer.read()
        except OSError as e:
            _echo_err(f"Error reading stdin: {e}")
            return EXIT_FAILURE

    try:
        settings = config_settings.load_settings(config_settings.CONFIG_PATH)
    except PromptSudoError as e:
        _echo_err(f"Error loading config: {e.message}")
        return e.exit_code

    configure_logging(settings.logging.level, settings.logging.format)

    invocation = Invocation(
        channel_id=channel_id,
        command=tuple(command),
        reply_to=reply_to or None,
        timeout_override=timeout or None,
        captured_input=captured_input,
    )

    try:
        return Runtime(settings, echo=_echo_err).run(invocation)
    except PromptSudoError as e:
        logger.error("Aborting", error=e.to_dict())
        _echo_err(f"Error: {e.message}")
        return e.exit_code
    except KeyboardInterrupt:
        _echo_err("\nInterrupted")
        return EXIT_INTERRUPTED


def main(argv: list[str] | None = None) -> None:
    """Console-script entry point; usage errors exit 1 like every other setup error."""
    try:
        rv = cli.main(args=argv, prog_name="prompt-sudo", standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(EXIT_FAILURE)
    except click.Abort:
        _echo_err("\nInterrupted")
        sys.exit(EXIT_INTERRUPTED)
    sys.exit(rv if isinstance(rv, int) else 0)


if __name__ == "__main__":
    main()
