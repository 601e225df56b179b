"""Structured logging using structlog.

Library modules only create loggers; the CLI decides where output goes by
calling :func:`setup_logging` once per process.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog


def _processors(json_output: bool) -> list[Any]:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


def setup_logging(*, debug: bool = False, json_output: bool = False) -> None:
    """Route deploybundle logs to stderr.

    Args:
        debug: Enable DEBUG level logging (per-directory walk events,
            rule loading, manifest writes).
        json_output: One JSON object per event instead of console lines.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.INFO,
        force=True,
    )
    structlog.configure(
        processors=_processors(json_output),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """Attach ``values`` to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(**values):
        yield


def get_logger(name: str = "deploybundle", **kwargs: Any) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name, **kwargs)
