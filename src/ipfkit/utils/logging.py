from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator, Optional, TextIO, cast

import structlog
from structlog.dev import ConsoleRenderer
from structlog.stdlib import BoundLogger
from structlog.types import Processor

try:
    from ipfkit import __version__ as IPFKIT_VERSION
except Exception:
    IPFKIT_VERSION = os.getenv("APP_VERSION", "unknown")


def _coerce_level(level: str | int) -> int:
    """Translate a string/int level into the numeric logging level."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if isinstance(resolved, str):
            raise ValueError(f"Invalid log level: {level}")
        return int(resolved)
    return int(level)


def configure_logging(
    level: str | int = "INFO",
    json_output: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Route ipfkit events (archive opened, entry corrupt, row truncated, ...)
    through the stdlib root logger, rendered as JSON lines or console text.

    The library never calls this itself; applications embedding the readers
    do. ``stream`` defaults to stderr.
    """
    numeric_level = _coerce_level(level)
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer() if json_output else ConsoleRenderer(),
            foreign_pre_chain=shared_processors,
        )
    )
    logging.basicConfig(level=numeric_level, handlers=[handler], force=True)


def get_logger(name: str) -> BoundLogger:
    """
    Module logger carrying ``service_name`` and ``version``.

    The logger is resolved on first use, so module-level loggers pick up a
    ``configure_logging`` call made after import.
    """
    return cast(
        BoundLogger,
        structlog.get_logger(
            name,
            service_name=os.getenv("SERVICE_NAME", "ipfkit"),
            version=os.getenv("APP_VERSION", IPFKIT_VERSION),
        ),
    )


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Bind context (e.g. the archive part being parsed) for the duration of a block."""
    if not kwargs:
        yield
        return

    previous = structlog.contextvars.get_contextvars()
    structlog.contextvars.bind_contextvars(**kwargs)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*kwargs)
        restore = {key: previous[key] for key in kwargs if key in previous}
        if restore:
            structlog.contextvars.bind_contextvars(**restore)
