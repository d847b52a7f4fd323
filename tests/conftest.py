"""Pytest configuration and fixtures."""

from typing import Callable, List, Optional

import pytest

from src.models.candle import Candle
from src.models.instrument import Instrument
from src.models.signal import TechnicalIndicators
from src.utils.timezone import ONE_MINUTE_MS

T0 = 1_700_000_000_000

CandleFactory = Callable[..., Candle]


def build_candle(
    close: float,
    index: int = 0,
    open_: Optional[float] = None,
    wick: float = 0.0,
    volume: float = 0.0,
) -> Candle:
    """Candle at minute ``index`` after T0 with symmetric wicks."""
    open_ = close if open_ is None else open_
    return Candle(
        open=open_,
        high=max(open_, close) + wick,
        low=min(open_, close) - wick,
        close=close,
        timestamp=T0 + index * ONE_MINUTE_MS,
        volume=volume,
    )


@pytest.fixture
def candle_factory() -> CandleFactory:
    """Factory for single candles (see build_candle)."""
    return build_candle


@pytest.fixture
def instrument() -> Instrument:
    return Instrument.EURUSD_OTC


@pytest.fixture
def flat_candles() -> List[Candle]:
    """30 identical zero-range candles at 1.0."""
    return [build_candle(1.0, index=i) for i in range(30)]


@pytest.fixture
def rising_candles() -> List[Candle]:
    """35 bullish candles, closes +0.0002 per bar, body 60% of range."""
    step = 0.0002
    wick = step / 3  # body / (body + 2 * wick) = 0.6
    candles = []
    for i in range(35):
        close = 1.0 + step * (i + 1)
        candles.append(build_candle(close, index=i, open_=close - step, wick=wick))
    return candles


@pytest.fixture
def zigzag_uptrend() -> List[Candle]:
    """
    40 candles climbing two up, one down, ending on a bullish bar.

    Up bars: body 2, wicks 0.5. Down bars: body 1, wicks 0.5. Every bar
    passes the quality check and RSI settles in the high 60s.
    """
    candles = []
    close = 100.0
    for i in range(40):
        open_ = close
        close = open_ + 2.0 if i % 2 == 1 else open_ - 1.0
        if i == 0:
            open_, close = 99.0, 100.0
        candles.append(build_candle(close, index=i, open_=open_, wick=0.5))
    return candles


@pytest.fixture
def good_candle() -> Candle:
    """Bullish candle with body 60% of range and 20% wicks."""
    return build_candle(1.0006, open_=1.0, wick=0.0002)


@pytest.fixture
def tradable_indicators() -> TechnicalIndicators:
    """Indicators that pass every filter."""
    return TechnicalIndicators(ema9=1.0004, ema20=1.0002, rsi=55.0, adx=40.0, ema_slope=0.0002)
