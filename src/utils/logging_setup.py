"""
Category logging for the signal monitor.

Every module logs through ``get_logger(__name__)``, which maps the module
to one of three category loggers under the ``sigmon`` namespace:

- system: startup, shutdown, monitor lifecycle
- data: candle sources and history streams
- signal: indicator calculation and signal emission

``setup_category_logging`` gives each category its own JSON-lines file,
written by a background QueueListener so a slow disk never stalls the event
loop. Every line carries the cycle id of the monitor pass that produced it.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from queue import Queue
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from .trace_context import get_cycle_id

if TYPE_CHECKING:
    from config.models import LoggingConfig

LOGGER_NAMESPACE = "sigmon"

CATEGORIES = ("system", "data", "signal")

# Short category tags used in log file names
FILE_TAGS = {"system": "sys", "data": "dat", "signal": "sig"}

# Module prefix -> category; modules matching none of these log as system
MODULE_ROUTES = (
    ("src.infrastructure", "data"),
    ("src.models", "data"),
    ("src.domain.indicators", "signal"),
    ("src.domain.signals", "signal"),
)

# Zone for plain-record timestamps (None = local time)
_log_timezone: Optional[ZoneInfo] = None

_listeners: List[QueueListener] = []


def get_category_for_module(module_name: str) -> str:
    """Category (system, data or signal) a module's records are routed to."""
    for prefix, category in MODULE_ROUTES:
        if module_name == prefix or module_name.startswith(prefix + "."):
            return category
    return "system"


def _category_logger(category: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{category}")


def get_logger(module_name: str) -> logging.Logger:
    """
    Category logger for a module.

    Example:
        logger = get_logger(__name__)
        logger.info("Seeded EURUSD_OTC with 100 candles")
    """
    logger = _category_logger(get_category_for_module(module_name))
    # Unconfigured loggers pass everything on to the root logger's handlers
    if not logger.handlers:
        logger.setLevel(logging.DEBUG)
    return logger


def set_log_timezone(tz: Optional[str] = None) -> None:
    """Use ``tz`` (e.g. "UTC") for log timestamps; None or "local" for local time."""
    global _log_timezone
    _log_timezone = None if tz in (None, "local") else ZoneInfo(tz)


def get_current_timestamp() -> str:
    return datetime.now(_log_timezone).isoformat()


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Plain records become ``{"ts", "level", "cat", "cycle", "msg"}``.
    Events already serialised by StructuredLogger keep their fields, with
    ``timestamp``/``category``/``message`` shortened to ``ts``/``cat``/``msg``.
    """

    SHORT_KEYS = (("timestamp", "ts"), ("category", "cat"), ("message", "msg"))

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        entry = self._structured_event(message)
        if entry is None:
            entry = {
                "ts": get_current_timestamp(),
                "level": record.levelname,
                "cat": self._category(record.name),
                "msg": message,
            }
            data = getattr(record, "data", None)
            if data:
                entry["data"] = data

        entry.setdefault("cycle", get_cycle_id())
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)

    def _structured_event(self, message: str) -> Optional[Dict[str, Any]]:
        if not (message.startswith("{") and message.endswith("}")):
            return None
        try:
            entry = json.loads(message)
        except json.JSONDecodeError:
            return None

        for long_key, short_key in self.SHORT_KEYS:
            if long_key in entry:
                entry[short_key] = entry.pop(long_key)
        if "cat" in entry:
            entry["cat"] = str(entry["cat"]).lower()
        return entry

    @staticmethod
    def _category(logger_name: str) -> str:
        namespace, _, category = logger_name.partition(".")
        if namespace == LOGGER_NAMESPACE and category in CATEGORIES:
            return category
        return "system"


class ConsoleFormatter(logging.Formatter):
    """``[LEVEL  ] [cycle] message`` lines, level tag coloured on a terminal."""

    # ANSI colour codes
    LEVEL_COLORS = {
        "DEBUG": "36",
        "INFO": "32",
        "WARNING": "33",
        "ERROR": "31",
        "CRITICAL": "35",
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        tag = f"[{record.levelname:7}]"
        color = self.LEVEL_COLORS.get(record.levelname)
        if self.use_colors and color:
            tag = f"\033[{color}m{tag}\033[0m"

        line = f"{tag} [{get_cycle_id()}] {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_category_logging(
    env: str,
    log_dir: str = "./logs",
    level: str = "INFO",
    console: bool = False,
    verbose: bool = False,
) -> Dict[str, logging.Logger]:
    """
    Give every category its own log file and (optionally) console output.

    Files go to ``{log_dir}/{date}/sigmon_{env}_{tag}_{date}.log`` with tag
    sys, dat or sig. A previous setup is torn down first.

    Args:
        env: Environment name used in file names.
        log_dir: Base directory for log files.
        level: Level name applied to every category.
        console: Also write to stderr.
        verbose: Force DEBUG regardless of ``level``.

    Returns:
        Category name -> logger.
    """
    shutdown_logging()

    threshold = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)
    date_str = datetime.now().strftime("%Y-%m-%d")
    day_dir = Path(log_dir) / date_str
    day_dir.mkdir(parents=True, exist_ok=True)

    loggers: Dict[str, logging.Logger] = {}
    for category in CATEGORIES:
        logger = _category_logger(category)
        logger.setLevel(threshold)
        logger.propagate = False

        file_handler = logging.FileHandler(
            day_dir / f"sigmon_{env}_{FILE_TAGS[category]}_{date_str}.log", encoding="utf-8"
        )
        file_handler.setFormatter(JSONFormatter())

        records: Queue = Queue()
        logger.addHandler(QueueHandler(records))
        listener = QueueListener(records, file_handler)
        listener.start()
        _listeners.append(listener)

        if console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(ConsoleFormatter(use_colors=sys.stderr.isatty()))
            logger.addHandler(console_handler)

        loggers[category] = logger

    return loggers


def setup_logging_from_config(
    config: "LoggingConfig", env: str, verbose: bool = False, console: Optional[bool] = None
) -> Dict[str, logging.Logger]:
    """Apply a LoggingConfig; ``console`` overrides ``config.console`` when given."""
    set_log_timezone(config.timezone)
    return setup_category_logging(
        env=env,
        log_dir=config.log_dir,
        level=config.level,
        console=config.console if console is None else console,
        verbose=verbose,
    )


def flush_all_loggers() -> None:
    """Flush category handlers and the file handlers behind the queues."""
    for category in CATEGORIES:
        for handler in _category_logger(category).handlers:
            handler.flush()
    for listener in _listeners:
        for handler in listener.handlers:
            handler.flush()


def shutdown_logging() -> None:
    """Drain the queues, close the log files and return the loggers to their unconfigured state."""
    for listener in _listeners:
        listener.stop()
        for handler in listener.handlers:
            handler.close()
    _listeners.clear()

    for category in CATEGORIES:
        logger = _category_logger(category)
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)
        logger.setLevel(logging.DEBUG)
        logger.propagate = True
