"""Excel Bridge — structlog setup for a process whose stdout is the protocol.

Records are rendered by a stdlib ``ProcessorFormatter`` attached to a
handler on **stderr** (plus an optional file).  Nothing here may ever write
to stdout: a stray line there corrupts the JSON-RPC stream.

Each record carries ``timestamp``, ``level`` and ``logger``, and, while a
request is being served, the ``request_id`` / ``method`` / ``tool`` bound by
the dispatcher.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_REQUEST_KEYS = ("request_id", "method", "tool")

_request_context: ContextVar[dict[str, Any]] = ContextVar("request_context", default={})

# Third-party loggers that are chatty at debug level.
_QUIET_LOGGERS = ("asyncio", "PIL")


def bind_request_context(
    request_id: Any = None,
    method: str | None = None,
    tool: str | None = None,
) -> None:
    """Attach request fields to every record logged from this task.

    Fields left as None keep their current value, so the dispatcher can add
    ``tool`` after ``request_id`` and ``method`` are known.
    """
    updates = {"request_id": request_id, "method": method, "tool": tool}
    merged = dict(_request_context.get())
    merged.update({k: v for k, v in updates.items() if v is not None})
    _request_context.set(merged)


def clear_request_context() -> None:
    _request_context.set({})


def _add_request_context(
    _logger: WrappedLogger, _name: str, event_dict: EventDict
) -> EventDict:
    context = _request_context.get()
    for key in _REQUEST_KEYS:
        if key in context:
            event_dict.setdefault(key, context[key])
    return event_dict


def _pre_chain() -> list[Processor]:
    """Processors shared by structlog records and foreign stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        _add_request_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def _renderer(format: str) -> Processor:
    if format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def _handlers(formatter: logging.Formatter, log_file: str | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_logging(
    level: str = "info",
    format: str = "console",
    log_file: str | None = None,
) -> None:
    """Route structlog and stdlib logging to stderr (and *log_file*).

    Args:
        level:    debug, info, warning, error or critical.
        format:   ``"console"`` (human-readable) or ``"json"`` (one object
                  per line).
        log_file: Optional extra destination.
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            _renderer(format),
        ],
    )

    root = logging.getLogger()
    root.handlers = _handlers(formatter, log_file)
    root.setLevel(level.upper())
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Usage: ``log = get_logger(__name__)`` then ``log.info("event_name", key=value)``."""
    return structlog.get_logger(name)
