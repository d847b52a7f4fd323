"""
Signal generation - turns indicator snapshots into scored trading signals.

Usage:
    from src.domain.signals import SignalEngine

    engine = SignalEngine()
    signal = engine.generate(instrument, candles)
"""

from .signal_engine import (
    SignalEngine,
    assess_market_condition,
    build_reason,
    calculate_confidence,
    filter_reasons,
    should_filter,
    vote,
)

__all__ = [
    "SignalEngine",
    "assess_market_condition",
    "build_reason",
    "calculate_confidence",
    "filter_reasons",
    "should_filter",
    "vote",
]
