"""
Unit tests for MonitorLoop.

Tests:
- Seed, fetch, append, evaluate and emit in one cycle
- Threshold and NONE suppression
- Error isolation per cycle
- Jittered delay with an injected random source
- Start/stop and cancellation while fetching
"""

import asyncio
import random
from unittest.mock import AsyncMock, MagicMock

import pytest

from config.models import MonitorConfig
from src.application.monitor_loop import MonitorLoop
from src.domain.signals import SignalEngine
from src.infrastructure.stores import InstrumentStream
from src.models.instrument import Instrument
from src.models.signal import SignalType


def make_loop(source, config=None, engine=None, rng=None):
    stream = InstrumentStream(Instrument.EURUSD_OTC)
    queue = asyncio.Queue()
    loop = MonitorLoop(
        stream, source, engine or SignalEngine(), queue, config or MonitorConfig(), rng=rng
    )
    return loop, stream, queue


def make_source(historical=None, next_batches=None):
    source = MagicMock()
    source.fetch_historical = AsyncMock(return_value=historical or [])
    source.fetch_next = AsyncMock(side_effect=next_batches or [[]])
    return source


class TestRunCycle:
    """Tests for a single monitoring cycle."""

    @pytest.mark.asyncio
    async def test_seeds_then_emits_buy(self, zigzag_uptrend):
        source = make_source(zigzag_uptrend[:39], [[zigzag_uptrend[39]]])
        loop, stream, queue = make_loop(source)

        signal = await loop.run_cycle()

        source.fetch_historical.assert_awaited_once_with(Instrument.EURUSD_OTC, 100)
        source.fetch_next.assert_awaited_once_with(Instrument.EURUSD_OTC, zigzag_uptrend[38])
        assert len(stream) == 40
        assert signal.type == SignalType.BUY
        assert queue.get_nowait() is signal
        assert loop.signals_emitted == 1
        assert loop.cycles == 1

    @pytest.mark.asyncio
    async def test_waits_for_minimum_history(self, zigzag_uptrend):
        engine = MagicMock()
        source = make_source(zigzag_uptrend[:10], [[zigzag_uptrend[10]]])
        loop, stream, queue = make_loop(source, engine=engine)

        assert await loop.run_cycle() is None
        assert len(stream) == 11
        engine.generate.assert_not_called()
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_none_signal_not_emitted(self, candle_factory):
        flat = [candle_factory(1.0, index=i) for i in range(31)]
        source = make_source(flat[:30], [[flat[30]]])
        loop, _, queue = make_loop(source)

        assert await loop.run_cycle() is None
        assert queue.empty()
        assert loop.signals_emitted == 0

    @pytest.mark.asyncio
    async def test_duplicate_candle_skips_evaluation(self, zigzag_uptrend):
        engine = MagicMock()
        source = make_source(zigzag_uptrend, [[zigzag_uptrend[-1]]])
        loop, stream, _ = make_loop(source, engine=engine)

        await loop.run_cycle()

        assert len(stream) == 40
        engine.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_seed_skips_cycle(self):
        source = make_source([], [[]])
        loop, stream, _ = make_loop(source)

        assert await loop.run_cycle() is None
        assert stream.is_empty
        source.fetch_next.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_errors_are_contained(self, zigzag_uptrend):
        source = make_source(
            zigzag_uptrend[:39],
            [RuntimeError("quote API down"), [zigzag_uptrend[39]]],
        )
        loop, stream, queue = make_loop(source)

        assert await loop.run_cycle() is None
        assert loop.errors == 1
        assert len(stream) == 39

        signal = await loop.run_cycle()
        assert signal is not None
        assert loop.cycles == 2
        assert queue.qsize() == 1

    @pytest.mark.asyncio
    async def test_engine_error_is_contained(self, zigzag_uptrend):
        engine = MagicMock()
        engine.generate.side_effect = ZeroDivisionError()
        source = make_source(zigzag_uptrend[:39], [[zigzag_uptrend[39]]])
        loop, _, queue = make_loop(source, engine=engine)

        assert await loop.run_cycle() is None
        assert loop.errors == 1
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_initialize_keeps_existing_history(self, zigzag_uptrend):
        source = make_source(zigzag_uptrend)
        loop, stream, _ = make_loop(source)
        stream.seed(zigzag_uptrend[:5])

        assert await loop.initialize() == 5
        source.fetch_historical.assert_not_awaited()


class TestNextDelay:
    """Tests for the jittered inter-cycle delay."""

    def test_deterministic_with_seeded_rng(self):
        source = make_source()
        first, _, _ = make_loop(source, rng=random.Random(7))
        second, _, _ = make_loop(source, rng=random.Random(7))

        assert [first.next_delay_ms() for _ in range(20)] == [
            second.next_delay_ms() for _ in range(20)
        ]

    def test_matches_formula(self):
        expected_rng = random.Random(3)
        loop, _, _ = make_loop(make_source(), rng=random.Random(3))

        for _ in range(50):
            jitter = expected_rng.randrange(-10_000, 15_000)
            assert loop.next_delay_ms() == 60_000 + max(0, jitter)

    def test_bounds(self):
        loop, _, _ = make_loop(make_source(), rng=random.Random(11))
        delays = [loop.next_delay_ms() for _ in range(500)]

        assert min(delays) == 60_000
        assert max(delays) < 75_000

    def test_negative_jitter_range_floors_at_interval(self):
        config = MonitorConfig(update_interval_ms=1_000, jitter_min_ms=-50, jitter_max_ms=-10)
        loop, _, _ = make_loop(make_source(), config=config, rng=random.Random(1))
        assert loop.next_delay_ms() == 1_000

    def test_empty_jitter_range(self):
        config = MonitorConfig(update_interval_ms=1_000, jitter_min_ms=250, jitter_max_ms=250)
        loop, _, _ = make_loop(make_source(), config=config)
        assert loop.next_delay_ms() == 1_250


class TestLifecycle:
    """Tests for start/stop of the background task."""

    @pytest.fixture
    def fast_config(self) -> MonitorConfig:
        return MonitorConfig(update_interval_ms=0, jitter_min_ms=0, jitter_max_ms=0)

    @pytest.mark.asyncio
    async def test_start_and_stop(self, zigzag_uptrend, fast_config):
        source = MagicMock()
        source.fetch_historical = AsyncMock(return_value=zigzag_uptrend)
        source.fetch_next = AsyncMock(return_value=[])
        loop, _, _ = make_loop(source, config=fast_config)

        await loop.start()
        assert loop.is_running
        await asyncio.sleep(0.05)
        await loop.stop()

        assert not loop.is_running
        assert loop.cycles > 1
        assert loop.errors == 0

    @pytest.mark.asyncio
    async def test_double_start_is_noop(self, fast_config):
        source = MagicMock()
        source.fetch_historical = AsyncMock(return_value=[])
        source.fetch_next = AsyncMock(return_value=[])
        loop, _, _ = make_loop(source, config=fast_config)

        await loop.start()
        task = loop._task
        await loop.start()

        assert loop._task is task
        await loop.stop()

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_fetch(self, zigzag_uptrend):
        never = asyncio.Event()

        async def hang(instrument, previous):
            await never.wait()
            return []

        source = MagicMock()
        source.fetch_historical = AsyncMock(return_value=zigzag_uptrend)
        source.fetch_next = hang
        loop, stream, queue = make_loop(source)

        await loop.start()
        await asyncio.sleep(0.01)
        await loop.stop()

        assert not loop.is_running
        assert len(stream) == 40
        assert queue.empty()
        assert loop.errors == 0

    @pytest.mark.asyncio
    async def test_stop_during_sleep(self, zigzag_uptrend):
        source = MagicMock()
        source.fetch_historical = AsyncMock(return_value=zigzag_uptrend)
        source.fetch_next = AsyncMock(return_value=[])
        loop, _, _ = make_loop(source)  # default 60s interval

        await loop.start()
        await asyncio.sleep(0.01)
        await asyncio.wait_for(loop.stop(), timeout=1.0)

        assert loop.cycles == 1

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        loop, _, _ = make_loop(make_source())
        await loop.stop()
        assert not loop.is_running
