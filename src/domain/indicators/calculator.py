"""
Technical indicator calculations over candle history.

All functions are pure and deterministic:
- ema: Exponential moving average, seeded with the simple average of the first period
- ema_series: EMA of every prefix of a price series
- rsi: Relative Strength Index with Wilder smoothing
- adx: Directional index from Wilder-smoothed TR, +DM and -DM
- ema_slope: Least-squares slope over the last few EMA values

Degenerate inputs never raise: each function has an explicit fallback
(last price, neutral 50, 0) when the series is too short or flat.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from ...models.candle import Candle
from ...models.signal import TechnicalIndicators
from ...utils.logging_setup import get_logger

logger = get_logger(__name__)

EMA_FAST_PERIOD = 9
EMA_SLOW_PERIOD = 20
RSI_PERIOD = 14
ADX_PERIOD = 14
SLOPE_WINDOW = 5
SLOPE_SERIES_LENGTH = 20
MIN_CANDLES = 30

RSI_NEUTRAL = 50.0


def sequential_mean(values: Sequence[float]) -> float:
    # Plain left-to-right accumulation (builtin sum() compensates on 3.12+)
    total = 0.0
    for v in values:
        total += v
    return total / len(values)


def ema(prices: Sequence[float], period: int) -> float:
    """
    Exponential moving average of ``prices``.

    Seeds with the SMA of the first ``period`` prices, then applies
    ``ema = (price - ema) * 2/(period+1) + ema`` for each later price.

    Returns:
        EMA value; the last price when fewer than ``period`` prices are
        available, 0.0 for an empty series.
    """
    if len(prices) < period:
        return prices[-1] if len(prices) > 0 else 0.0

    multiplier = 2.0 / (period + 1)
    value = sequential_mean(prices[:period])
    for price in prices[period:]:
        value = (price - value) * multiplier + value
    return value


def ema_series(prices: Sequence[float], period: int) -> List[float]:
    """
    EMA of every prefix of ``prices``.

    Element ``j`` equals ``ema(prices[:j + 1], period)`` exactly: the running
    value performs the same floating point operations in the same order as
    a fresh computation over that prefix.
    """
    out: List[float] = []
    multiplier = 2.0 / (period + 1)
    value = 0.0
    for j, price in enumerate(prices):
        if j < period - 1:
            out.append(price)
        elif j == period - 1:
            value = sequential_mean(prices[:period])
            out.append(value)
        else:
            value = (price - value) * multiplier + value
            out.append(value)
    return out


def rsi(prices: Sequence[float], period: int = RSI_PERIOD) -> float:
    """
    Relative Strength Index (Wilder).

    The first ``period`` changes are averaged, later changes are
    Wilder-smoothed with the opposite side decaying by a zero contribution.

    Returns:
        RSI in [0, 100]; 50 when fewer than ``period + 1`` prices, 100 when
        the average loss is zero.
    """
    if len(prices) < period + 1:
        return RSI_NEUTRAL

    changes = [prices[i] - prices[i - 1] for i in range(1, len(prices))]

    avg_gain = 0.0
    avg_loss = 0.0
    for change in changes[:period]:
        if change > 0:
            avg_gain += change
        else:
            avg_loss += abs(change)
    avg_gain /= period
    avg_loss /= period

    for change in changes[period:]:
        if change > 0:
            avg_gain = (avg_gain * (period - 1) + change) / period
            avg_loss = (avg_loss * (period - 1)) / period
        else:
            avg_gain = (avg_gain * (period - 1)) / period
            avg_loss = (avg_loss * (period - 1) + abs(change)) / period

    if avg_loss == 0.0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def adx(candles: Sequence[Candle], period: int = ADX_PERIOD) -> float:
    """
    Directional index of the candle series.

    True range and directional movement are computed per consecutive pair,
    seeded with the mean of the first ``period`` values and Wilder-smoothed
    over the rest. The result is ``|+DI - -DI| / (+DI + -DI) * 100`` at the
    last bar.

    Returns:
        Value in [0, 100]; 0 when fewer than ``period + 1`` candles, when the
        smoothed true range is zero, or when both DIs are zero.
    """
    if len(candles) < period + 1:
        return 0.0

    tr_list: List[float] = []
    plus_dm_list: List[float] = []
    minus_dm_list: List[float] = []

    for previous, current in zip(candles, candles[1:]):
        tr = max(
            current.high - current.low,
            max(abs(current.high - previous.close), abs(current.low - previous.close)),
        )
        tr_list.append(tr)

        high_diff = current.high - previous.high
        low_diff = previous.low - current.low
        plus_dm_list.append(high_diff if high_diff > low_diff and high_diff > 0 else 0.0)
        minus_dm_list.append(low_diff if low_diff > high_diff and low_diff > 0 else 0.0)

    atr = sequential_mean(tr_list[:period])
    smooth_plus_dm = sequential_mean(plus_dm_list[:period])
    smooth_minus_dm = sequential_mean(minus_dm_list[:period])

    for i in range(period, len(tr_list)):
        atr = (atr * (period - 1) + tr_list[i]) / period
        smooth_plus_dm = (smooth_plus_dm * (period - 1) + plus_dm_list[i]) / period
        smooth_minus_dm = (smooth_minus_dm * (period - 1) + minus_dm_list[i]) / period

    if atr == 0.0:
        return 0.0

    plus_di = (smooth_plus_dm / atr) * 100
    minus_di = (smooth_minus_dm / atr) * 100
    di_sum = plus_di + minus_di
    return (abs(plus_di - minus_di) / di_sum) * 100 if di_sum > 0 else 0.0


def ema_slope(ema_values: Sequence[float], window: int = SLOPE_WINDOW) -> float:
    """
    Ordinary least-squares slope of the last ``window`` EMA values vs index.

    Returns 0.0 for fewer than two points or a zero denominator.
    """
    if len(ema_values) < 2:
        return 0.0

    y = np.asarray(ema_values[-window:], dtype=np.float64)
    n = len(y)
    if n < 2:
        return 0.0

    x = np.arange(n, dtype=np.float64)
    dx = x - x.mean()
    dy = y - y.mean()

    denominator = float(np.sum(dx * dx))
    if denominator == 0.0:
        return 0.0
    return float(np.sum(dx * dy)) / denominator


class IndicatorCalculator:
    """
    Computes the full indicator snapshot for a candle history.

    Usage:
        calculator = IndicatorCalculator()
        indicators = calculator.calculate(stream.snapshot())
        if indicators is not None:
            print(indicators.rsi)
    """

    min_candles = MIN_CANDLES

    def calculate(self, candles: Sequence[Candle]) -> Optional[TechnicalIndicators]:
        """
        Compute EMA9, EMA20, RSI14, ADX14 and the EMA9 slope.

        The slope input is the trailing series of EMA9 values taken over
        every prefix ending at each of the last 20 closes.

        Returns:
            TechnicalIndicators, or None with fewer than 30 candles.
        """
        if len(candles) < self.min_candles:
            logger.debug(f"Indicators skipped: {len(candles)}/{self.min_candles} candles")
            return None

        closes = [c.close for c in candles]

        trailing_ema9 = ema_series(closes, EMA_FAST_PERIOD)[-SLOPE_SERIES_LENGTH:]

        return TechnicalIndicators(
            ema9=ema(closes, EMA_FAST_PERIOD),
            ema20=ema(closes, EMA_SLOW_PERIOD),
            rsi=rsi(closes, RSI_PERIOD),
            adx=adx(candles, ADX_PERIOD),
            ema_slope=ema_slope(trailing_ema9),
        )
