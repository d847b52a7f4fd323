"""
Per-instrument candle history.

InstrumentStream keeps an ordered, deduplicated, size-capped window of
candles for one instrument. CandleHistoryStore maps each instrument to its
own stream. Streams are owned by the monitor loop of their instrument and
are never shared, so no locking is done here.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ...models.candle import Candle
from ...models.instrument import Instrument
from ...utils.logging_setup import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_HISTORY = 150


class InstrumentStream:
    """
    Bounded candle history for one instrument.

    Invariants:
    - Candles are sorted ascending by timestamp
    - Timestamps are unique
    - Size never exceeds ``max_size``
    """

    def __init__(self, instrument: Instrument, max_size: int = DEFAULT_MAX_HISTORY) -> None:
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.instrument = instrument
        self.max_size = max_size
        self._candles: List[Candle] = []

    def __len__(self) -> int:
        return len(self._candles)

    def __iter__(self) -> Iterator[Candle]:
        return iter(self.snapshot())

    @property
    def is_empty(self) -> bool:
        return not self._candles

    @property
    def last(self) -> Optional[Candle]:
        return self._candles[-1] if self._candles else None

    def seed(self, candles: Iterable[Candle]) -> bool:
        """
        Set the initial history.

        Ignored when the stream already holds candles. The batch is sorted,
        deduplicated by timestamp and trimmed to the newest ``max_size``.

        Returns:
            True if the stream was seeded.
        """
        if self._candles:
            return False

        by_ts: Dict[int, Candle] = {}
        for candle in candles:
            by_ts.setdefault(candle.timestamp, candle)
        ordered = [by_ts[ts] for ts in sorted(by_ts)]
        self._candles = ordered[-self.max_size:]
        return True

    def append(self, new_candles: Iterable[Candle]) -> int:
        """
        Append candles newer than the current history.

        A candle is accepted only if its timestamp is strictly greater than
        the last stored timestamp and no stored candle shares it. The last
        timestamp used for the comparison is the one before this call, so a
        batch is checked against the history as it was. Accepted candles are
        committed together, then the oldest are trimmed down to ``max_size``.

        Returns:
            Number of candles accepted.
        """
        last_ts = self._candles[-1].timestamp if self._candles else 0
        known = {c.timestamp for c in self._candles}

        accepted: List[Candle] = []
        for candle in new_candles:
            if candle.timestamp > last_ts and candle.timestamp not in known:
                accepted.append(candle)
                known.add(candle.timestamp)

        if not accepted:
            return 0

        # Arrival order is kept; restore timestamp order for out-of-order batches
        merged = self._candles + accepted
        if any(a.timestamp > b.timestamp for a, b in zip(accepted, accepted[1:])):
            merged.sort(key=lambda c: c.timestamp)

        overflow = len(merged) - self.max_size
        if overflow > 0:
            merged = merged[overflow:]

        self._candles = merged
        return len(accepted)

    def snapshot(self) -> Tuple[Candle, ...]:
        """Immutable ordered copy of the current history."""
        return tuple(self._candles)

    def clear(self) -> None:
        self._candles = []


class CandleHistoryStore:
    """
    Instrument -> InstrumentStream map.

    Streams are created lazily on first access and dropped by ``clear``.
    """

    def __init__(self, max_history: int = DEFAULT_MAX_HISTORY) -> None:
        self._max_history = max_history
        self._streams: Dict[Instrument, InstrumentStream] = {}

    def __contains__(self, instrument: Instrument) -> bool:
        return instrument in self._streams

    def __len__(self) -> int:
        return len(self._streams)

    def get_or_create(self, instrument: Instrument) -> InstrumentStream:
        stream = self._streams.get(instrument)
        if stream is None:
            stream = InstrumentStream(instrument, self._max_history)
            self._streams[instrument] = stream
        return stream

    def get(self, instrument: Instrument) -> Optional[InstrumentStream]:
        return self._streams.get(instrument)

    def history(self, instrument: Instrument) -> Tuple[Candle, ...]:
        """Snapshot of an instrument's history; empty if it has no stream."""
        stream = self._streams.get(instrument)
        return stream.snapshot() if stream else ()

    def clear(self, keep: Iterable[Instrument] = ()) -> None:
        """
        Drop every stream.

        Streams of the ``keep`` instruments are emptied in place instead, so
        a loop holding one keeps writing to the stream the store serves.
        """
        kept: Dict[Instrument, InstrumentStream] = {}
        for instrument in keep:
            stream = self._streams.get(instrument)
            if stream is not None:
                stream.clear()
                kept[instrument] = stream
        self._streams = kept
        logger.info("History cleared")
