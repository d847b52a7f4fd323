"""
Signal domain models.

Defines:
- TechnicalIndicators: Snapshot of indicator values for one evaluation
- SignalType: BUY / SELL / NONE
- MarketCondition: Assessed regime of the market
- TradingSignal: Scored, justified signal record
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional

from ..utils.timezone import now_utc
from .instrument import Instrument

# Signals older than this are stale for display/consumption
SIGNAL_FRESHNESS = timedelta(minutes=5)


class SignalType(Enum):
    """Direction of a trading signal."""

    BUY = "BUY"
    SELL = "SELL"
    NONE = "NONE"


class MarketCondition(Enum):
    """Market regime assessed before filtering."""

    EXTREME = "EXTREME"  # RSI beyond 80/20
    RANGING = "RANGING"  # Flat EMA or no trend strength
    CHOPPY = "CHOPPY"  # Small bodies relative to ranges
    TRENDING = "TRENDING"  # ADX above 25


@dataclass(frozen=True)
class TechnicalIndicators:
    """Indicator values derived from the current candle history."""

    ema9: float
    ema20: float
    rsi: float
    adx: float
    ema_slope: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "ema9": self.ema9,
            "ema20": self.ema20,
            "rsi": self.rsi,
            "adx": self.adx,
            "ema_slope": self.ema_slope,
        }


@dataclass(frozen=True)
class TradingSignal:
    """
    Generated trading signal with full context.

    ``confidence`` is 0 for NONE signals and within [0, 100] otherwise.
    ``expiry_minutes`` is the intended holding horizon on the M1 timeframe.
    """

    instrument: Instrument
    type: SignalType
    confidence: int
    price: float
    indicators: TechnicalIndicators
    market_condition: MarketCondition
    reason: str
    timestamp: datetime = field(default_factory=now_utc)
    expiry_minutes: int = 1

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """Actionable iff directional and created less than 5 minutes ago."""
        now = now or now_utc()
        return self.timestamp + SIGNAL_FRESHNESS > now and self.type != SignalType.NONE

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for logging."""
        return {
            "instrument": self.instrument.name,
            "type": self.type.value,
            "confidence": self.confidence,
            "price": self.price,
            "timestamp": self.timestamp.isoformat(),
            "indicators": self.indicators.to_dict(),
            "market_condition": self.market_condition.value,
            "reason": self.reason,
            "expiry_minutes": self.expiry_minutes,
        }

    def __str__(self) -> str:
        arrow = {"BUY": "▲", "SELL": "▼"}.get(self.type.value, "●")
        return (
            f"{arrow} {self.instrument.display_name} {self.type.value} "
            f"({self.confidence}%) @ {self.price:.5f} - {self.reason}"
        )
