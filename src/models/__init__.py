"""Data models for the signal monitor."""

from .candle import Candle
from .instrument import Instrument
from .signal import MarketCondition, SignalType, TechnicalIndicators, TradingSignal
from .pair_status import PairStatus

__all__ = [
    "Candle",
    "Instrument",
    "MarketCondition",
    "SignalType",
    "TechnicalIndicators",
    "TradingSignal",
    "PairStatus",
]
