"""Domain interfaces for dependency injection."""

from .candle_source import CandleSource

__all__ = [
    "CandleSource",
]
