"""
Structured logging helpers for harvest runs.
"""

from __future__ import annotations

import json
import logging
from typing import Any

_LOG_FORMAT = "%(asctime)s %(levelname)s %(threadName)s %(name)s %(message)s"


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging for command-line runs.
    """

    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(level=resolved, format=_LOG_FORMAT)
