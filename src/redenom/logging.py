"""Structured logging for the converter, built on structlog's stdlib bridge.

Event names are snake_case (``rates_refreshed``, ``rate_feed_failed``) with
key/value context. Decimal values in the event dict are rendered as plain
strings so rates and amounts read the same in console and JSON output.
"""

import logging
import os
from decimal import Decimal

import structlog

LOG_FORMATS = ("console", "json")

# Third-party loggers that are too chatty at INFO for a converter service
_NOISY_LOGGERS = ("uvicorn.access", "urllib3")


def _stringify_decimals(
    logger: object, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = format(value, "f")
    return event_dict


def _resolve_format(log_format: str | None) -> str:
    fmt = (log_format or os.environ.get("LOG_FORMAT") or "console").lower()
    return fmt if fmt in LOG_FORMATS else "console"


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_level: str = "INFO", log_format: str | None = None) -> None:
    """Route structlog and stdlib logging (uvicorn included) through one renderer.

    Args:
        log_level: Root level name ("DEBUG", "INFO", ...). Unknown names fall back to INFO.
        log_format: "json" or "console". When None the LOG_FORMAT environment
            variable is used; anything unrecognized renders as console.
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _stringify_decimals,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(_resolve_format(log_format)),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
