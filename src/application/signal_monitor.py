"""
SignalMonitor - Administrative facade over the per-instrument monitor loops.

Owns:
- The CandleHistoryStore (one InstrumentStream per instrument)
- One MonitorLoop task per monitored instrument
- One signal queue per instrument, drained by a dispatcher task that keeps
  the recent-signal history and forwards to the optional ``on_signal`` callback

All methods must be called from the event loop thread running the monitors.
"""

from __future__ import annotations

import asyncio
import inspect
import random
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Tuple, Union

from config.models import MonitorConfig

from ..domain.interfaces.candle_source import CandleSource
from ..domain.signals.signal_engine import SignalEngine
from ..infrastructure.stores.candle_history import CandleHistoryStore
from ..models.candle import Candle
from ..models.instrument import Instrument
from ..models.pair_status import PairStatus
from ..models.signal import TechnicalIndicators, TradingSignal
from ..utils.logging_setup import get_logger
from .monitor_loop import MonitorLoop

logger = get_logger(__name__)

SignalCallback = Callable[[TradingSignal], Union[None, Awaitable[None]]]


@dataclass
class _Worker:
    loop: MonitorLoop
    queue: "asyncio.Queue[TradingSignal]"
    dispatcher: asyncio.Task


class SignalMonitor:
    """
    Start/stop monitoring of instruments and query their state.

    Usage:
        monitor = SignalMonitor(MarketDataSimulator(), MonitorConfig(), on_signal=print)
        await monitor.start(Instrument.EURUSD_OTC)
        ...
        indicators = monitor.get_latest_indicators(Instrument.EURUSD_OTC)
        await monitor.stop_all()
    """

    def __init__(
        self,
        source: CandleSource,
        config: Optional[MonitorConfig] = None,
        engine: Optional[SignalEngine] = None,
        store: Optional[CandleHistoryStore] = None,
        on_signal: Optional[SignalCallback] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Args:
            source: Candle source shared by all loops (must be stateless per instrument).
            config: Monitor configuration (default: MonitorConfig()).
            engine: Signal pipeline (default: SignalEngine()).
            store: History store (default: sized from config).
            on_signal: Called with every emitted signal, in order, per instrument.
            rng: Jitter source handed to every loop.
        """
        self.source = source
        self.config = config or MonitorConfig()
        self.engine = engine or SignalEngine()
        self.store = store or CandleHistoryStore(self.config.max_history_size)
        self._on_signal = on_signal
        self._rng = rng

        self._workers: Dict[Instrument, _Worker] = {}
        self._last_signals: Dict[Instrument, TradingSignal] = {}
        self._signal_history: Deque[TradingSignal] = deque(maxlen=self.config.max_signal_history)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self, instrument: Instrument) -> "asyncio.Queue[TradingSignal]":
        """
        Start monitoring ``instrument``.

        Seeds the stream before the loop is launched. A no-op when the
        instrument is already monitored.

        Returns:
            The instrument's signal queue (drained by the internal dispatcher).
        """
        worker = self._workers.get(instrument)
        if worker is not None:
            if worker.loop.is_running:
                return worker.queue
            await self.stop(instrument)

        stream = self.store.get_or_create(instrument)
        queue: "asyncio.Queue[TradingSignal]" = asyncio.Queue()
        loop = MonitorLoop(stream, self.source, self.engine, queue, self.config, rng=self._rng)

        try:
            await loop.initialize()
        except Exception:
            # The loop retries seeding on every cycle while the stream is empty
            logger.exception(f"Seeding failed for {instrument.name}")

        dispatcher = asyncio.create_task(
            self._dispatch(queue), name=f"dispatch-{instrument.name}"
        )
        self._workers[instrument] = _Worker(loop=loop, queue=queue, dispatcher=dispatcher)
        await loop.start()
        return queue

    async def stop(self, instrument: Instrument) -> None:
        """Stop monitoring ``instrument``; its history is kept."""
        worker = self._workers.pop(instrument, None)
        if worker is None:
            return

        await worker.loop.stop()

        # The dispatcher delivers whatever the loop emitted before it was cancelled
        if worker.dispatcher.done():
            while not worker.queue.empty():
                await self._deliver(worker.queue.get_nowait())
        else:
            await worker.queue.join()

        worker.dispatcher.cancel()
        try:
            await worker.dispatcher
        except asyncio.CancelledError:
            pass

    async def stop_all(self) -> None:
        for instrument in list(self._workers):
            await self.stop(instrument)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def is_monitoring(self, instrument: Instrument) -> bool:
        worker = self._workers.get(instrument)
        return worker is not None and worker.loop.is_running

    @property
    def monitored(self) -> List[Instrument]:
        return [i for i in self._workers if self.is_monitoring(i)]

    def get_history(self, instrument: Instrument) -> Tuple[Candle, ...]:
        return self.store.history(instrument)

    def get_latest_indicators(self, instrument: Instrument) -> Optional[TechnicalIndicators]:
        """Indicators over the current history; None below the signal threshold."""
        candles = self.get_history(instrument)
        if len(candles) < self.config.min_candles_for_signal:
            return None
        return self.engine.calculator.calculate(candles)

    def status(self, instrument: Instrument) -> PairStatus:
        candles = self.get_history(instrument)
        return PairStatus(
            instrument=instrument,
            is_monitoring=self.is_monitoring(instrument),
            history_size=len(candles),
            last_candle=candles[-1] if candles else None,
            last_indicators=self.get_latest_indicators(instrument),
            last_signal=self._last_signals.get(instrument),
        )

    def signal_history(self) -> List[TradingSignal]:
        """Recent signals, most recent first."""
        return list(reversed(self._signal_history))

    def stats(self) -> Dict[str, Any]:
        return {
            worker.loop.instrument.name: {
                "cycles": worker.loop.cycles,
                "errors": worker.loop.errors,
                "signals_emitted": worker.loop.signals_emitted,
                "history_size": len(worker.loop.stream),
            }
            for worker in self._workers.values()
        }

    # -------------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------------

    def clear_history(self) -> None:
        """
        Drop all candle history and the recent-signal list.

        Streams owned by a running loop are emptied in place; the loop
        re-seeds from the source on its next cycle.
        """
        self.store.clear(keep=self._workers)
        self._signal_history.clear()
        self._last_signals.clear()

    # -------------------------------------------------------------------------
    # Signal delivery
    # -------------------------------------------------------------------------

    async def _dispatch(self, queue: "asyncio.Queue[TradingSignal]") -> None:
        while True:
            signal = await queue.get()
            try:
                await self._deliver(signal)
            finally:
                queue.task_done()

    async def _deliver(self, signal: TradingSignal) -> None:
        self._last_signals[signal.instrument] = signal
        self._signal_history.append(signal)

        if self._on_signal is None:
            return
        try:
            result = self._on_signal(signal)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(f"Signal callback failed for {signal.instrument.name}")
