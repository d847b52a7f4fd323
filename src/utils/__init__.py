"""Utility modules."""

from .logging_setup import (
    flush_all_loggers,
    get_logger,
    setup_category_logging,
    setup_logging_from_config,
    shutdown_logging,
)
from .structured_logger import LogCategory, StructuredLogger
from .trace_context import get_cycle_id, new_cycle

__all__ = [
    # Logging setup
    "StructuredLogger",
    "LogCategory",
    "setup_category_logging",
    "setup_logging_from_config",
    "flush_all_loggers",
    "shutdown_logging",
    "get_logger",
    # Trace context
    "get_cycle_id",
    "new_cycle",
]
