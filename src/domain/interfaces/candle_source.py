"""Candle source protocol for seed history and incremental updates."""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from ...models.candle import Candle
from ...models.instrument import Instrument


@runtime_checkable
class CandleSource(Protocol):
    """
    Protocol for one-minute candle suppliers.

    Implementations:
    - MarketDataSimulator (synthetic, one new candle per call)
    - AlphaVantageAdapter (live, a refreshed batch per call)

    Contract: candles are returned sorted ascending by timestamp. Failures
    are reported as an empty list, never raised into the monitor loop.

    Usage:
        source: CandleSource = MarketDataSimulator()
        seed = await source.fetch_historical(Instrument.EURUSD_OTC, 100)
        update = await source.fetch_next(Instrument.EURUSD_OTC, seed[-1])
    """

    async def fetch_historical(self, instrument: Instrument, count: int) -> List[Candle]:
        """
        Fetch a seed batch of the most recent candles.

        Args:
            instrument: Instrument to fetch.
            count: Number of candles wanted (sources may return fewer).

        Returns:
            Candles sorted by timestamp ascending; empty on failure.
        """
        ...

    async def fetch_next(
        self, instrument: Instrument, previous: Optional[Candle]
    ) -> List[Candle]:
        """
        Fetch candles newer than ``previous``.

        Synthetic sources return exactly one candle continuing from
        ``previous``; live sources return their full refreshed window and
        rely on the history store to drop what it already has.

        Returns:
            Candles sorted by timestamp ascending; empty on failure.
        """
        ...
