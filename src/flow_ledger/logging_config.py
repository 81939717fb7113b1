"""Structured logging setup for Flow Ledger.

Services log snake_case events with key-value context through structlog:

    logger = get_logger(__name__)
    logger.info("bill_marked_paid", subscription_id=str(subscription.id))

``configure_logging`` picks a pretty console renderer for development and
JSON lines for production. Nothing here is required for the engine to run;
without configuration structlog falls back to its own defaults.
"""

import logging
import sys
from pathlib import Path
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from flow_ledger.config import Settings, get_settings

FILE_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _uppercase_level(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict["level"] = "WARNING" if method_name == "warn" else method_name.upper()
    return event_dict


def _add_deployment(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    settings = get_settings()
    event_dict.setdefault("app", settings.app_name)
    event_dict.setdefault("version", settings.app_version)
    event_dict.setdefault("environment", settings.environment.value)
    return event_dict


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def get_console_processors() -> list[Processor]:
    """Processor chain for human-readable development output."""
    return [
        structlog.stdlib.add_log_level,
        *_pre_chain(),
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        ),
    ]


def get_json_processors() -> list[Processor]:
    """Processor chain emitting one JSON object per event."""
    return [
        _uppercase_level,
        _add_deployment,
        *_pre_chain(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(sort_keys=True),
    ]


def configure_logging(settings: Settings | None = None) -> None:
    """Install the processor chain chosen by ``settings.log_format``.

    Call once at process start, before the first event is logged; loggers are
    cached on first use.
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.value)
    processors = (
        get_json_processors() if settings.log_format == "json" else get_console_processors()
    )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    if settings.log_file is not None:
        _attach_file_handler(settings.log_file, level)


def _attach_file_handler(log_file: Path, level: int) -> None:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    logging.getLogger().addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.stdlib.get_logger(name)


def bind_context(**values: Any) -> None:
    """Attach ``values`` to every event logged from the current context."""
    structlog.contextvars.bind_contextvars(**values)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind context for the duration of a ``with`` block.

        with LogContext(invoice_id=str(invoice.id)):
            service.update_status(invoice.id, InvoiceStatus.PAID)
    """

    def __init__(self, **values: Any) -> None:
        self.values = values

    def __enter__(self) -> "LogContext":
        bind_context(**self.values)
        return self

    def __exit__(self, *exc_info: object) -> None:
        unbind_context(*self.values)
