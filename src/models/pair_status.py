"""Per-instrument monitoring status snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .candle import Candle
from .instrument import Instrument
from .signal import TechnicalIndicators, TradingSignal


@dataclass(frozen=True)
class PairStatus:
    """Point-in-time view of one instrument's monitor."""

    instrument: Instrument
    is_monitoring: bool = False
    history_size: int = 0
    last_candle: Optional[Candle] = None
    last_indicators: Optional[TechnicalIndicators] = None
    last_signal: Optional[TradingSignal] = None
