"""
Structured Logging with Trace IDs
=================================

Component loggers attach structured fields and the current trace id to each
record; the handler installed by configure_logging() renders them either as
one JSON object per line or as plain text with ``key=value`` pairs.

While an approval request is pending its request id is the trace id, so a
single invocation can be followed through the logs. Bot tokens are redacted
from everything written.
"""

import json
import logging
import re
import sys
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime

_trace_id_var: ContextVar[str | None] = ContextVar('trace_id', default=None)

_SECRET_PATTERNS = re.compile(
    r"(\d{6,}:[A-Za-z0-9_-]{30,}|bot\d+:[A-Za-z0-9_-]+|"
    r"xoxb-[A-Za-z0-9-]+|Bearer\s+[A-Za-z0-9._~+/=-]+)",
    re.IGNORECASE,
)

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _redact_secrets(text: str) -> str:
    return _SECRET_PATTERNS.sub("[REDACTED]", text)


class StructuredLogger:
    """
    Logger bound to one component name.

    Keyword arguments become structured fields on the record:

        logger.info("Decision resolved", decision="approved", actor_id="42")
    """

    def __init__(self, component: str, logger: logging.Logger | None = None) -> None:
        self.component = component
        self.logger = logger or logging.getLogger(f"prompt_sudo.{component}")

    def _log(self, level: int, message: str, exc_info: bool = False, **fields) -> None:
        if not self.logger.isEnabledFor(level):
            return
        self.logger.log(
            level,
            message,
            exc_info=exc_info,
            extra={
                "component": self.component,
                "trace_id": _trace_id_var.get(),
                "fields": fields,
            },
        )

    def debug(self, message: str, **fields) -> None:
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields) -> None:
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields) -> None:
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, exc_info: bool = False, **fields) -> None:
        self._log(logging.ERROR, message, exc_info=exc_info, **fields)


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record:

        {"timestamp": "2026-10-18T10:30:45.123+00:00", "level": "INFO",
         "component": "Arbiter", "trace_id": "-100123:42",
         "message": "Decision resolved", "decision": "approved"}

    Records from plain stdlib loggers use the logger name as the component.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            'level': record.levelname,
            'component': getattr(record, 'component', record.name),
            'message': record.getMessage(),
        }
        trace_id = getattr(record, 'trace_id', None)
        if trace_id:
            entry['trace_id'] = trace_id
        entry.update(getattr(record, 'fields', {}))
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        return _redact_secrets(json.dumps(entry, default=str))


class TextFormatter(logging.Formatter):
    """Human-readable lines; structured fields trail the message as key=value."""

    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT)

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        pairs = dict(getattr(record, 'fields', {}))
        trace_id = getattr(record, 'trace_id', None)
        if trace_id:
            pairs['trace_id'] = trace_id
        if pairs:
            line += " " + " ".join(f"{k}={v}" for k, v in pairs.items())
        return line

    def format(self, record: logging.LogRecord) -> str:
        return _redact_secrets(super().format(record))


class TraceContext:
    """
    Bind a trace id for the duration of a block.

        with TraceContext(request.request_id):
            logger.info("Waiting for decision")   # carries the request id

    Without an explicit id a short random one is generated.
    """

    def __init__(self, trace_id: str | None = None) -> None:
        self.trace_id = trace_id or uuid.uuid4().hex[:8]
        self._token = None

    def __enter__(self) -> str:
        self._token = _trace_id_var.set(self.trace_id)
        return self.trace_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _trace_id_var.reset(self._token)


def get_logger(component: str) -> StructuredLogger:
    return StructuredLogger(component)


def configure_logging(level: str = "WARNING", fmt: str = "json") -> None:
    """
    Attach a single stderr handler to the ``prompt_sudo`` logger hierarchy.

    Third-party loggers (httpx, telegram) are held at WARNING; at INFO httpx
    would log every polling request URL.
    """
    root = logging.getLogger("prompt_sudo")
    root.setLevel(level)
    root.propagate = False
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if fmt == "json" else TextFormatter())
    root.addHandler(handler)

    for noisy in ("httpx", "telegram", "telegram.ext"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
