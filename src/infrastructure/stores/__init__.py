"""In-memory candle history stores."""

from .candle_history import CandleHistoryStore, InstrumentStream

__all__ = [
    "CandleHistoryStore",
    "InstrumentStream",
]
