"""Application layer - monitor loops and the administrative facade."""

from .monitor_loop import MonitorLoop
from .signal_monitor import SignalMonitor

__all__ = [
    "MonitorLoop",
    "SignalMonitor",
]
