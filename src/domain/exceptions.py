"""
Domain exceptions for the signal monitor.

Distinguishes recoverable runtime errors (a quote API hiccup, a malformed
payload) from fatal errors (bad configuration) that must stop
the process at startup.
"""


class SignalMonitorError(Exception):
    """Base class for all signal monitor exceptions."""
    pass


class RecoverableError(SignalMonitorError):
    """
    Errors a monitor loop recovers from by skipping the current cycle.

    Examples:
    - Quote API unavailable or rate limited
    - Malformed candle payload
    """
    pass


class FatalError(SignalMonitorError):
    """
    Errors requiring operator intervention.

    Examples:
    - Missing or invalid configuration
    - Unknown instrument names
    """
    pass


class MarketDataError(RecoverableError):
    """Issues fetching or parsing candle data."""
    pass


class ConfigurationError(FatalError):
    """Invalid system configuration."""
    pass
