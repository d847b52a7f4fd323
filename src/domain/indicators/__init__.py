"""Technical indicators for candle history analysis."""

from .calculator import (
    IndicatorCalculator,
    adx,
    ema,
    ema_series,
    ema_slope,
    rsi,
)

__all__ = [
    "IndicatorCalculator",
    "adx",
    "ema",
    "ema_series",
    "ema_slope",
    "rsi",
]
