"""
Application Bootstrap - Composition root for the signal monitor.

Builds the candle source and the SignalMonitor from an AppConfig so that
main.py and tests share one wiring path.

Usage:
    config = ConfigManager("config", env="dev").load()
    monitor = build_monitor(config, on_signal=console_printer)
    for instrument in resolve_instruments(config.instruments):
        await monitor.start(instrument)
"""

from __future__ import annotations

import random
from typing import Iterable, List, Optional

from config.models import AppConfig

from ..domain.exceptions import ConfigurationError
from ..domain.interfaces.candle_source import CandleSource
from ..domain.signals.signal_engine import SignalEngine
from ..infrastructure.adapters.alpha_vantage import AlphaVantageAdapter
from ..infrastructure.adapters.simulator import MarketDataSimulator
from ..models.instrument import Instrument
from ..utils.logging_setup import get_logger
from .signal_monitor import SignalCallback, SignalMonitor

logger = get_logger(__name__)


def build_candle_source(config: AppConfig, live: Optional[bool] = None) -> CandleSource:
    """
    Create the candle source selected by config (or the ``live`` override).

    Raises:
        ConfigurationError: If live mode is selected without an API key.
    """
    use_live = (not config.monitor.use_simulator) if live is None else live

    if not use_live:
        rng = random.Random(config.simulator.seed) if config.simulator.seed is not None else None
        logger.info("Using synthetic candle source")
        return MarketDataSimulator(volatility=config.simulator.volatility, rng=rng)

    av = config.alpha_vantage
    try:
        source = AlphaVantageAdapter(
            api_key=av.api_key or None,
            base_url=av.base_url,
            interval=config.monitor.live_interval,
            output_size=av.output_size,
            timeout_sec=av.timeout_sec,
        )
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    logger.info(f"Using Alpha Vantage candle source ({config.monitor.live_interval})")
    return source


def build_monitor(
    config: AppConfig,
    on_signal: Optional[SignalCallback] = None,
    live: Optional[bool] = None,
    source: Optional[CandleSource] = None,
) -> SignalMonitor:
    """Wire a SignalMonitor with its source and engine."""
    return SignalMonitor(
        source=source or build_candle_source(config, live),
        config=config.monitor,
        engine=SignalEngine(),
        on_signal=on_signal,
    )


def resolve_instruments(names: Iterable[str]) -> List[Instrument]:
    """
    Parse instrument names, dropping duplicates while keeping order.

    Raises:
        ConfigurationError: On an unknown name.
    """
    instruments: List[Instrument] = []
    for name in names:
        try:
            instrument = Instrument.parse(name)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        if instrument not in instruments:
            instruments.append(instrument)
    return instruments
