"""Structured logging setup using structlog.

Two renderers share one processor chain: a coloured ConsoleRenderer for
local work and a JSONRenderer for production (``APP_ENV=production`` or
``json_output=True``).  Standard-library ``logging`` is routed through the
same chain so chromadb, httpx, botocore and openai records look identical.

Per-ingestion context (filename, session id) is bound through
:func:`bind_ingestion_context` and merged into every event emitted while
that ingestion runs, including events from helpers that never see the
filename themselves.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog with environment-appropriate rendering.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON output regardless of ``APP_ENV``.

    Returns:
        A configured structlog BoundLogger.
    """
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"

    # contextvars first so bound ingestion context lands in every event.
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    return structlog.get_logger()


@contextmanager
def bind_ingestion_context(**values: Any) -> Iterator[None]:
    """Bind *values* to the structlog context for the duration of the block.

    Uses contextvars, so concurrent ingestions running as separate asyncio
    tasks each see only their own bindings.
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield
