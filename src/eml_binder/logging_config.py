"""
Structured logging configuration using structlog.

Log records go to stderr so the CLI can stream JSONL on stdout. Per-file and
per-request context is carried in structlog context variables.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog

from .config import settings
from .version import API_VERSION

SERVICE_NAME = "eml-binder"


def add_service_info(logger, method_name: str, event_dict: dict) -> dict:
    """Stamp every record with the service name and version."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", API_VERSION)
    return event_dict


def setup_logging(log_level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """
    Configure structlog.

    Args:
        log_level: Level name; defaults to ``settings.log_level``
        json_output: JSON lines instead of console output; defaults to ``settings.log_json``
    """
    level = (log_level or settings.log_level).upper()
    use_json = settings.log_json if json_output is None else json_output

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            add_service_info,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer() if use_json else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


@contextmanager
def file_log_context(file_name: str, **extra) -> Iterator[None]:
    """Bind ``file_name`` (and any extra keys) to every record logged inside the block."""
    with structlog.contextvars.bound_contextvars(file_name=file_name, **extra):
        yield
