"""structlog rendering for the stdlib logging tree.

Modules keep using ``logging.getLogger(__name__)``; records are rendered by a
structlog ``ProcessorFormatter`` on the root handler. The request's trace id
and, once decoded, the event id are bound as contextvars and appear on every
line logged while the request is handled.
"""

import logging
import os
import sys

import structlog

from adohook.config import Settings

# Per-request access lines and outbound request lines drown the hook log
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


def json_logs_enabled(config: Settings) -> bool:
    """JSON everywhere except local development (``ADOHOOK_LOCAL=1`` or local mode)."""
    return os.environ.get("ADOHOOK_LOCAL", "0") != "1" and not config.local_mode


def _pre_chain() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]


def configure_logging(log_level: str = "info", json_output: bool = False) -> None:
    """Install a single stdout handler rendering through structlog.

    Args:
        log_level: debug/info/warning/error; unknown names fall back to info.
        json_output: JSON lines when True, coloured console otherwise.
    """
    pre_chain = _pre_chain()
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            # ExtraAdder carries ``extra=`` fields (error code, path) onto the line.
            foreign_pre_chain=pre_chain + [structlog.stdlib.ExtraAdder()],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_request_context(trace_id: str, event_id: str | None = None) -> None:
    """Attach the trace id (and the event id, once known) to subsequent log lines."""
    if event_id:
        structlog.contextvars.bind_contextvars(trace_id=trace_id, event_id=event_id)
    else:
        structlog.contextvars.bind_contextvars(trace_id=trace_id)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
