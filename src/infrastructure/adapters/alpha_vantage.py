"""
Alpha Vantage FX intraday adapter.

Live CandleSource backed by the FX_INTRADAY endpoint:
    GET https://www.alphavantage.co/query
        ?function=FX_INTRADAY&from_symbol=EUR&to_symbol=USD
        &interval=1min&outputsize=compact&apikey=...

Response shape:
    {"Time Series FX (1min)": {"2024-03-15 10:30:00": {"1. open": "1.0850", ...}}}

Timestamps are US/Eastern wall-clock times. FX carries no volume.
"""

from __future__ import annotations

import asyncio
import os
from datetime import datetime
from typing import Any, List, Optional

import requests

from ...domain.exceptions import MarketDataError
from ...models.candle import Candle
from ...models.instrument import Instrument
from ...utils.logging_setup import get_logger
from ...utils.timezone import US_EASTERN, to_epoch_ms

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://www.alphavantage.co/query"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Keys Alpha Vantage uses to report throttling and request errors
_ERROR_KEYS = ("Error Message", "Note", "Information")


class AlphaVantageAdapter:
    """
    Live CandleSource for FX pairs.

    HTTP calls are blocking (requests) and run in a worker thread so the
    event loop keeps serving other monitor loops.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        interval: str = "1min",
        output_size: str = "compact",
        timeout_sec: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Args:
            api_key: API key; falls back to the ALPHAVANTAGE_API_KEY env var.
            base_url: Query endpoint.
            interval: Intraday interval ("1min", "5min", ...).
            output_size: "compact" (latest 100 points) or "full".
            timeout_sec: HTTP timeout per request.
            session: requests session (injectable for tests).
        """
        self._api_key = api_key or os.environ.get("ALPHAVANTAGE_API_KEY", "")
        if not self._api_key:
            raise ValueError(
                "Alpha Vantage API key required. Set ALPHAVANTAGE_API_KEY or "
                "alpha_vantage.api_key in config/secrets.yaml"
            )
        self.base_url = base_url
        self.interval = interval
        self.output_size = output_size
        self.timeout_sec = timeout_sec
        self._session = session or requests.Session()

    async def fetch_historical(self, instrument: Instrument, count: int) -> List[Candle]:
        candles = await self.fetch_series(instrument, self.interval)
        return candles[-count:] if count > 0 else []

    async def fetch_next(
        self, instrument: Instrument, previous: Optional[Candle]
    ) -> List[Candle]:
        # The API has no "since" filter: return the whole window, the store dedups
        return await self.fetch_series(instrument, self.interval)

    async def fetch_series(self, instrument: Instrument, interval: str) -> List[Candle]:
        """
        Fetch the intraday series for ``instrument``.

        Returns:
            Candles sorted ascending; empty on any transport or payload error.
        """
        try:
            payload = await asyncio.to_thread(self._get, instrument, interval)
            candles = self.parse_time_series(payload, interval)
        except (requests.RequestException, ValueError, MarketDataError) as e:
            logger.warning(f"Alpha Vantage fetch failed for {instrument.name}: {e}")
            return []

        logger.debug(f"Fetched {len(candles)} {interval} candles for {instrument.name}")
        return candles

    def _get(self, instrument: Instrument, interval: str) -> Any:
        """Blocking HTTP GET; runs in a worker thread."""
        params = {
            "function": "FX_INTRADAY",
            "from_symbol": instrument.base_currency,
            "to_symbol": instrument.quote_currency,
            "interval": interval,
            "outputsize": self.output_size,
            "apikey": self._api_key,
        }
        response = self._session.get(self.base_url, params=params, timeout=self.timeout_sec)
        response.raise_for_status()
        return response.json()

    @staticmethod
    def parse_time_series(payload: Any, interval: str = "1min") -> List[Candle]:
        """
        Convert an FX_INTRADAY payload into candles.

        Entries with unparseable timestamps or prices are skipped.

        Raises:
            MarketDataError: If the payload is an API error/throttle notice or
                carries no time series.
        """
        if not isinstance(payload, dict):
            raise MarketDataError(f"Expected a JSON object, got {type(payload).__name__}")

        for key in _ERROR_KEYS:
            if key in payload:
                raise MarketDataError(f"{key}: {payload[key]}")

        series = payload.get(f"Time Series FX ({interval})")
        if not isinstance(series, dict):
            raise MarketDataError(f"No 'Time Series FX ({interval})' in response")

        candles: List[Candle] = []
        for ts_str, bar in series.items():
            try:
                ts = datetime.strptime(ts_str, TIMESTAMP_FORMAT)
                candles.append(
                    Candle(
                        open=float(bar["1. open"]),
                        high=float(bar["2. high"]),
                        low=float(bar["3. low"]),
                        close=float(bar["4. close"]),
                        timestamp=to_epoch_ms(ts, assume_tz=US_EASTERN),
                        volume=0.0,
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed bar {ts_str!r}: {e}")

        candles.sort(key=lambda c: c.timestamp)
        return candles
