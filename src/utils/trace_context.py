"""
Trace context for correlating log lines of one monitoring cycle.

Every fetch/append/evaluate pass of a monitor loop runs inside ``new_cycle()``
so that log records emitted by the stream, the indicator engine and the
signal engine share a short cycle id.

Usage:
    with new_cycle() as cycle_id:
        candles = await source.fetch_next(instrument, last)
        stream.append(candles)
"""

from __future__ import annotations

import secrets
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Generator, Optional

# Current cycle id; each asyncio task sees its own value
_cycle_id: ContextVar[Optional[str]] = ContextVar("cycle_id", default=None)

NO_CYCLE = "------"


def generate_cycle_id() -> str:
    """Return a fresh 6-character hex cycle id (e.g. ``"a7f3b2"``)."""
    return secrets.token_hex(3)


def get_cycle_id() -> str:
    """Current cycle id, or ``"------"`` outside of any cycle."""
    return _cycle_id.get() or NO_CYCLE


@contextmanager
def new_cycle() -> Generator[str, None, None]:
    """
    Open a new cycle scope.

    The previous cycle id (if any) is restored when the block exits, so
    nested cycles are safe.

    Yields:
        The new cycle id.
    """
    cycle_id = generate_cycle_id()
    token = _cycle_id.set(cycle_id)
    try:
        yield cycle_id
    finally:
        _cycle_id.reset(token)
