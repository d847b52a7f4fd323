"""Candle (OHLCV bar) model with derived geometry and quality check."""

from __future__ import annotations

from dataclasses import dataclass

# Quality band for the candle body as a percentage of its range (inclusive)
MIN_QUALITY_BODY_PCT = 25.0
MAX_QUALITY_BODY_PCT = 85.0
# Each wick must stay strictly below this percentage of the range
MAX_QUALITY_WICK_PCT = 40.0


@dataclass(frozen=True)
class Candle:
    """
    One-minute price bar.

    ``timestamp`` is epoch milliseconds of the bar. High/low are assumed to
    bracket open/close; this is not enforced.
    """

    open: float
    high: float
    low: float
    close: float
    timestamp: int
    volume: float = 0.0

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def upper_wick(self) -> float:
        return self.high - max(self.open, self.close)

    @property
    def lower_wick(self) -> float:
        return min(self.open, self.close) - self.low

    @property
    def total_range(self) -> float:
        return self.high - self.low

    @property
    def body_pct(self) -> float:
        """Body as a percentage of the full range, 0 for a zero-range bar."""
        rng = self.total_range
        return (self.body / rng) * 100 if rng > 0 else 0.0

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    def has_good_quality(self) -> bool:
        """
        Noise filter on candle shape.

        A quality candle has a body between 25% and 85% of its range and
        neither wick reaching 40% of the range. Zero-range bars never qualify.
        """
        rng = self.total_range
        if rng == 0.0:
            return False
        upper_wick_pct = (self.upper_wick / rng) * 100
        lower_wick_pct = (self.lower_wick / rng) * 100
        return (
            MIN_QUALITY_BODY_PCT <= self.body_pct <= MAX_QUALITY_BODY_PCT
            and upper_wick_pct < MAX_QUALITY_WICK_PCT
            and lower_wick_pct < MAX_QUALITY_WICK_PCT
        )

    def to_dict(self) -> dict:
        return {
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "timestamp": self.timestamp,
            "volume": self.volume,
        }
