"""
Logging setup for processes embedding the StateDB agent.

The agent is a library; the embedding process owns the root logger.
Call setup_logging() once at startup, before ensure_server().
"""

from __future__ import annotations

import logging
from typing import Iterable

import json_log_formatter

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# pymongo logs every heartbeat and server selection at DEBUG
QUIET_LOGGERS = ("pymongo",)


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    quiet_loggers: Iterable[str] = QUIET_LOGGERS,
) -> logging.Handler:
    """Install a single stderr handler on the root logger.

    Args:
        level: Level name, case-insensitive; unknown names fall back to INFO
        log_format: "json" for one JSON object per record, anything else for text
        quiet_loggers: Loggers held at WARNING whatever the root level

    Returns:
        The installed handler
    """
    if log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = [handler]

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handler
