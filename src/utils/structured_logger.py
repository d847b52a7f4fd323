"""
Structured JSON events on top of the category loggers.

Signal emissions and monitor lifecycle events are written as one JSON
document each, so they can be pulled out of the log files with ``jq``.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Dict

from .timezone import now_utc


class LogCategory(Enum):
    SYSTEM = "SYSTEM"  # Startup, shutdown, monitor start/stop
    SIGNAL = "SIGNAL"  # Emitted trading signals


class StructuredLogger:
    """
    Writes events as single-line JSON:

        {"timestamp": "2024-03-15T10:30:45.123+00:00", "level": "INFO",
         "category": "SIGNAL", "message": "SIGNAL DETECTED -> ...", "data": {...}}

    JSONFormatter recognises these lines and shortens the keys.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def log(
        self,
        level: int,
        category: LogCategory,
        message: str,
        data: Dict[str, Any] | None = None,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return

        event: Dict[str, Any] = {
            "timestamp": now_utc().isoformat(),
            "level": logging.getLevelName(level),
            "category": category.value,
            "message": message,
        }
        if data:
            event["data"] = data
        self.logger.log(level, json.dumps(event, default=str))

    def info(self, category: LogCategory, message: str, data: Dict[str, Any] | None = None) -> None:
        self.log(logging.INFO, category, message, data)
