"""
MonitorLoop - Per-instrument fetch/evaluate loop.

Each cycle:
    SEED (if empty) -> FETCH -> APPEND (dedup/trim) -> EVALUATE -> EMIT -> SLEEP

One loop owns one InstrumentStream. Loops for different instruments share
no mutable state and run as independent asyncio tasks. Cancellation can
land at the fetch or at the inter-cycle sleep; appends happen between
awaits, so a cancelled cycle never leaves a partial batch in the stream.
"""

from __future__ import annotations

import asyncio
import random
from typing import Optional

from config.models import MonitorConfig

from ..domain.interfaces.candle_source import CandleSource
from ..domain.signals.signal_engine import SignalEngine
from ..infrastructure.stores.candle_history import InstrumentStream
from ..models.signal import SignalType, TradingSignal
from ..utils.logging_setup import get_logger
from ..utils.structured_logger import LogCategory, StructuredLogger
from ..utils.trace_context import new_cycle

logger = get_logger(__name__)
structured = StructuredLogger(logger)


class MonitorLoop:
    """
    Cancellable monitoring worker for one instrument.

    Usage:
        signals: asyncio.Queue[TradingSignal] = asyncio.Queue()
        loop = MonitorLoop(stream, source, SignalEngine(), signals, MonitorConfig())
        await loop.start()
        signal = await signals.get()
        await loop.stop()
    """

    def __init__(
        self,
        stream: InstrumentStream,
        source: CandleSource,
        engine: SignalEngine,
        sink: "asyncio.Queue[TradingSignal]",
        config: MonitorConfig,
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Args:
            stream: History owned exclusively by this loop.
            source: Candle source for seeding and updates.
            engine: Signal pipeline.
            sink: Unbounded queue receiving non-NONE signals in order.
            config: Cadence and sizing.
            rng: Jitter source (inject a seeded Random for deterministic delays).
        """
        self.stream = stream
        self.instrument = stream.instrument
        self.source = source
        self.engine = engine
        self.sink = sink
        self.config = config
        self._rng = rng or random.Random()

        self._running = False
        self._task: Optional[asyncio.Task] = None

        # Statistics
        self.cycles = 0
        self.errors = 0
        self.signals_emitted = 0

    @property
    def is_running(self) -> bool:
        return self._running and self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the loop as a background task."""
        if self.is_running:
            logger.warning(f"Monitor for {self.instrument.name} already running")
            return

        self._running = True
        self._task = asyncio.create_task(
            self.run(), name=f"monitor-{self.instrument.name}"
        )
        structured.info(
            LogCategory.SYSTEM, "Monitor started", {"instrument": self.instrument.name}
        )

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        structured.info(
            LogCategory.SYSTEM,
            "Monitor stopped",
            {
                "instrument": self.instrument.name,
                "cycles": self.cycles,
                "errors": self.errors,
                "signals_emitted": self.signals_emitted,
            },
        )

    async def run(self) -> None:
        """Run cycles until cancelled. Never exits on its own."""
        while True:
            await self.run_cycle()
            await asyncio.sleep(self.next_delay_ms() / 1000)

    async def run_cycle(self) -> Optional[TradingSignal]:
        """
        One seed/fetch/append/evaluate pass.

        Every error except cancellation is logged and swallowed so the
        loop keeps going.

        Returns:
            The emitted signal, or None when nothing was emitted.
        """
        self.cycles += 1
        with new_cycle():
            try:
                return await self._cycle()
            except Exception:
                self.errors += 1
                logger.exception(f"Monitoring error for {self.instrument.name}")
                return None

    async def initialize(self) -> int:
        """
        Seed the stream from the source when it is empty.

        Returns:
            Number of candles in the stream after seeding.
        """
        if not self.stream.is_empty:
            return len(self.stream)

        candles = await self.source.fetch_historical(self.instrument, self.config.seed_count)
        if not candles:
            logger.warning(f"No seed candles for {self.instrument.name}")
            return 0

        self.stream.seed(candles)
        logger.info(f"Initialized {self.instrument.name} with {len(self.stream)} candles")
        return len(self.stream)

    def next_delay_ms(self) -> int:
        """Base interval plus jitter drawn from [jitter_min, jitter_max), floored at 0."""
        low, high = self.config.jitter_min_ms, self.config.jitter_max_ms
        jitter = self._rng.randrange(low, high) if high > low else low
        return self.config.update_interval_ms + max(jitter, 0)

    async def _cycle(self) -> Optional[TradingSignal]:
        if self.stream.is_empty:
            await self.initialize()
            if self.stream.is_empty:
                return None

        new_candles = await self.source.fetch_next(self.instrument, self.stream.last)
        if not new_candles:
            logger.debug(f"{self.instrument.name}: no new candles")
            return None

        added = self.stream.append(new_candles)
        if added == 0:
            return None

        size = len(self.stream)
        logger.debug(f"{self.instrument.name} -> +{added} candles (total now {size})")

        if size < self.config.min_candles_for_signal:
            logger.debug(
                f"{self.instrument.name} waiting: {size}/{self.config.min_candles_for_signal}"
            )
            return None

        signal = self.engine.generate(self.instrument, self.stream.snapshot())
        if signal is None or signal.type == SignalType.NONE:
            logger.debug(f"{self.instrument.name} - signal was NONE")
            return None

        self.sink.put_nowait(signal)
        self.signals_emitted += 1
        structured.info(
            LogCategory.SIGNAL,
            f"SIGNAL DETECTED -> {self.instrument.name} {signal.type.value} ({signal.confidence}%)",
            signal.to_dict(),
        )
        return signal
