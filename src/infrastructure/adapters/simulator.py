"""
Synthetic candle source for running the monitor without a quote API.

Generates one-minute FX candles as a random walk around per-pair base
prices with a slow sine-wave trend, so signals of both directions show up.
"""

from __future__ import annotations

import math
import random
from typing import Callable, Dict, List, Optional

from ...models.candle import Candle
from ...models.instrument import Instrument
from ...utils.logging_setup import get_logger
from ...utils.timezone import ONE_MINUTE_MS, now_ms

logger = get_logger(__name__)

DEFAULT_VOLATILITY = 0.0005  # 0.05% per candle

BASE_PRICES: Dict[Instrument, float] = {
    Instrument.EURUSD_OTC: 1.0850,
    Instrument.GBPUSD_OTC: 1.2650,
    Instrument.USDJPY_OTC: 148.50,
    Instrument.AUDUSD_OTC: 0.6650,
    Instrument.USDCAD_OTC: 1.3550,
    Instrument.USDCHF_OTC: 0.8750,
    Instrument.NZDUSD_OTC: 0.6150,
    Instrument.EURJPY_OTC: 161.50,
}


class MarketDataSimulator:
    """
    Synthetic CandleSource.

    Pass a seeded ``random.Random`` and a fixed ``clock`` for reproducible
    sequences in tests.
    """

    def __init__(
        self,
        volatility: float = DEFAULT_VOLATILITY,
        rng: Optional[random.Random] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """
        Args:
            volatility: Maximum relative move per candle from the random walk.
            rng: Random source (default: unseeded ``random.Random``).
            clock: Epoch-millisecond clock for candle timestamps.
        """
        self.volatility = volatility
        self._rng = rng or random.Random()
        self._clock = clock
        self._candle_counter = 0

    async def fetch_historical(self, instrument: Instrument, count: int) -> List[Candle]:
        candles = self.generate_historical_candles(instrument, count)
        logger.debug(f"Simulator generated {len(candles)} historical candles for {instrument.name}")
        return candles

    async def fetch_next(
        self, instrument: Instrument, previous: Optional[Candle]
    ) -> List[Candle]:
        if previous is None:
            return []
        return [self.generate_next_candle(instrument, previous)]

    def generate_historical_candles(self, instrument: Instrument, count: int) -> List[Candle]:
        """
        Generate ``count`` consecutive candles ending one minute before now.

        Each candle opens one random-walk step away from the previous close.
        """
        candles: List[Candle] = []
        price = BASE_PRICES.get(instrument, 1.0)
        now = self._clock()

        for i in range(count):
            timestamp = now - (count - i) * ONE_MINUTE_MS

            trend = math.sin(i * 0.1) * self.volatility * 2
            change = self._rng.uniform(-1.0, 1.0) * self.volatility + trend
            price *= 1 + change

            open_ = price
            close = price * (1 + self._rng.uniform(-self.volatility, self.volatility))
            candles.append(self._make_candle(open_, close, timestamp))
            price = close

        return candles

    def generate_next_candle(self, instrument: Instrument, previous: Candle) -> Candle:
        """Continue the series from ``previous``, timestamped now."""
        self._candle_counter += 1

        trend = math.sin(self._candle_counter * 0.1) * self.volatility * 2
        change = self._rng.uniform(-1.0, 1.0) * self.volatility + trend

        open_ = previous.close
        close = open_ * (1 + change)
        timestamp = max(self._clock(), previous.timestamp + 1)
        return self._make_candle(open_, close, timestamp)

    def _make_candle(self, open_: float, close: float, timestamp: int) -> Candle:
        body = abs(close - open_)
        if close > open_:
            high = close + body * self._rng.uniform(0.1, 0.3)
            low = open_ - body * self._rng.uniform(0.05, 0.15)
        else:
            high = open_ + body * self._rng.uniform(0.1, 0.3)
            low = close - body * self._rng.uniform(0.05, 0.15)

        return Candle(
            open=open_,
            high=high,
            low=low,
            close=close,
            timestamp=timestamp,
            volume=self._rng.uniform(100.0, 1000.0),
        )
