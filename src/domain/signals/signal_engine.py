"""
Signal Engine - Rule-based decision pipeline over indicator snapshots.

Pipeline (stateless, one pass per evaluation):
    CONDITION -> FILTER -> VOTE -> CONFIDENCE -> REASON -> TradingSignal

The condition assessment and the filter deliberately evaluate their
thresholds independently of each other; the filter does not consult the
assessed condition.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional, Sequence

from ...models.candle import Candle
from ...models.instrument import Instrument
from ...models.signal import MarketCondition, SignalType, TechnicalIndicators, TradingSignal
from ...utils.logging_setup import get_logger
from ...utils.timezone import now_utc
from ..indicators.calculator import IndicatorCalculator, sequential_mean

logger = get_logger(__name__)

# Thresholds
RSI_OVERBOUGHT = 80.0
RSI_OVERSOLD = 20.0
FLAT_SLOPE = 0.0001
ADX_TRENDING = 25.0
ADX_MINIMUM = 15.0
CHOPPY_BODY_RATIO = 0.3
CHOPPY_LOOKBACK = 10

# Voting
VOTES_REQUIRED = 3
BUY_RSI_BAND = (40.0, 70.0)
SELL_RSI_BAND = (30.0, 60.0)

# Confidence scoring
BASE_CONFIDENCE = 50
MAX_ADX_BONUS = 20
MAX_ALIGNMENT_BONUS = 15
RSI_OPTIMAL_BONUS = 10
STRONG_BODY_BONUS = 5
STRONG_BODY_PCT = 50.0
BUY_RSI_OPTIMAL = (50.0, 60.0)
SELL_RSI_OPTIMAL = (40.0, 50.0)

NO_SIGNAL_REASON = "No clear signal"


def _in_band(value: float, band: tuple[float, float]) -> bool:
    return band[0] <= value <= band[1]


def assess_market_condition(
    candles: Sequence[Candle], indicators: TechnicalIndicators
) -> MarketCondition:
    """
    Classify the market; the first matching rule wins.

    1. RSI beyond 80/20 -> EXTREME
    2. |slope| < 1e-4 -> RANGING
    3. avg body / avg range of the last 10 candles < 0.3 -> CHOPPY
    4. ADX > 25 -> TRENDING
    5. otherwise RANGING
    """
    if indicators.rsi > RSI_OVERBOUGHT or indicators.rsi < RSI_OVERSOLD:
        return MarketCondition.EXTREME

    if abs(indicators.ema_slope) < FLAT_SLOPE:
        return MarketCondition.RANGING

    recent = candles[-CHOPPY_LOOKBACK:]
    if recent:
        avg_body = sequential_mean([c.body for c in recent])
        avg_range = sequential_mean([c.total_range for c in recent])
        if avg_range > 0 and (avg_body / avg_range) < CHOPPY_BODY_RATIO:
            return MarketCondition.CHOPPY

    if indicators.adx > ADX_TRENDING:
        return MarketCondition.TRENDING

    return MarketCondition.RANGING


def filter_reasons(indicators: TechnicalIndicators, candle: Candle) -> List[str]:
    """Every reason the evaluation must be rejected, in check order."""
    reasons: List[str] = []
    if indicators.rsi > RSI_OVERBOUGHT:
        reasons.append(f"RSI overbought ({int(indicators.rsi)})")
    if indicators.rsi < RSI_OVERSOLD:
        reasons.append(f"RSI oversold ({int(indicators.rsi)})")
    if abs(indicators.ema_slope) < FLAT_SLOPE:
        reasons.append("Flat EMA")
    if indicators.adx < ADX_MINIMUM:
        reasons.append(f"Low ADX ({int(indicators.adx)})")
    if not candle.has_good_quality():
        reasons.append("Poor candle quality")
    return reasons


def should_filter(indicators: TechnicalIndicators, candle: Candle) -> bool:
    if indicators.rsi > RSI_OVERBOUGHT or indicators.rsi < RSI_OVERSOLD:
        return True
    if abs(indicators.ema_slope) < FLAT_SLOPE:
        return True
    if indicators.adx < ADX_MINIMUM:
        return True
    if not candle.has_good_quality():
        return True
    return False


def vote(indicators: TechnicalIndicators, candle: Candle) -> SignalType:
    """
    Count five conditions per direction; BUY is checked first.

    BUY: price > EMA9, EMA9 > EMA20, RSI in [40, 70], quality, bullish.
    SELL: price < EMA9, EMA9 < EMA20, RSI in [30, 60], quality, not bullish.
    """
    price = candle.close
    quality = candle.has_good_quality()

    buy_score = sum([
        price > indicators.ema9,
        indicators.ema9 > indicators.ema20,
        _in_band(indicators.rsi, BUY_RSI_BAND),
        quality,
        candle.is_bullish,
    ])
    sell_score = sum([
        price < indicators.ema9,
        indicators.ema9 < indicators.ema20,
        _in_band(indicators.rsi, SELL_RSI_BAND),
        quality,
        not candle.is_bullish,
    ])

    if buy_score >= VOTES_REQUIRED:
        return SignalType.BUY
    if sell_score >= VOTES_REQUIRED:
        return SignalType.SELL
    return SignalType.NONE


def calculate_confidence(
    indicators: TechnicalIndicators, candle: Candle, signal_type: SignalType
) -> int:
    """Score a directional signal from 50 plus bounded bonuses, clamped to [0, 100]."""
    confidence = BASE_CONFIDENCE

    confidence += min(MAX_ADX_BONUS, int((indicators.adx / 50.0) * 20))

    alignment = abs(indicators.ema9 - indicators.ema20)
    confidence += min(MAX_ALIGNMENT_BONUS, int(alignment * 10))

    if signal_type == SignalType.BUY:
        rsi_optimal = _in_band(indicators.rsi, BUY_RSI_OPTIMAL)
    elif signal_type == SignalType.SELL:
        rsi_optimal = _in_band(indicators.rsi, SELL_RSI_OPTIMAL)
    else:
        rsi_optimal = False
    if rsi_optimal:
        confidence += RSI_OPTIMAL_BONUS

    if candle.body_pct > STRONG_BODY_PCT:
        confidence += STRONG_BODY_BONUS

    return max(0, min(100, confidence))


def build_reason(signal_type: SignalType, indicators: TechnicalIndicators) -> str:
    """Human-readable justification of a directional signal."""
    ema9 = f"{indicators.ema9:.5f}"
    ema20 = f"{indicators.ema20:.5f}"
    rsi_adx = f"RSI: {int(indicators.rsi)}, ADX: {int(indicators.adx)}"

    if signal_type == SignalType.BUY:
        return (
            f"BUY: Price above EMA9({ema9}), EMA9 > EMA20({ema20}), "
            f"{rsi_adx}, Bullish candle with good quality"
        )
    if signal_type == SignalType.SELL:
        return (
            f"SELL: Price below EMA9({ema9}), EMA9 < EMA20({ema20}), "
            f"{rsi_adx}, Bearish candle with good quality"
        )
    return NO_SIGNAL_REASON


class SignalEngine:
    """
    Turns a candle history into a scored TradingSignal.

    Usage:
        engine = SignalEngine()
        signal = engine.generate(Instrument.EURUSD_OTC, stream.snapshot())
        if signal is not None and signal.type != SignalType.NONE:
            queue.put_nowait(signal)
    """

    def __init__(
        self,
        calculator: Optional[IndicatorCalculator] = None,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        """
        Args:
            calculator: Indicator calculator (default: IndicatorCalculator()).
            clock: Timestamp source for generated signals.
        """
        self.calculator = calculator or IndicatorCalculator()
        self._clock = clock

    def generate(
        self, instrument: Instrument, candles: Sequence[Candle]
    ) -> Optional[TradingSignal]:
        """
        Run the full pipeline on ``candles``.

        Returns:
            A TradingSignal (possibly of type NONE), or None when the history
            is too short for indicators.
        """
        if len(candles) < self.calculator.min_candles:
            return None

        indicators = self.calculator.calculate(candles)
        if indicators is None:
            return None

        last = candles[-1]
        condition = assess_market_condition(candles, indicators)

        if should_filter(indicators, last):
            reasons = ", ".join(filter_reasons(indicators, last))
            logger.debug(f"{instrument.name} filtered ({condition.value}): {reasons}")
            return self._signal(
                instrument, SignalType.NONE, 0, last, indicators, condition,
                f"Market conditions not favorable: {reasons}",
            )

        signal_type = vote(indicators, last)
        if signal_type == SignalType.NONE:
            return self._signal(
                instrument, SignalType.NONE, 0, last, indicators, condition, NO_SIGNAL_REASON
            )

        return self._signal(
            instrument,
            signal_type,
            calculate_confidence(indicators, last, signal_type),
            last,
            indicators,
            condition,
            build_reason(signal_type, indicators),
        )

    def _signal(
        self,
        instrument: Instrument,
        signal_type: SignalType,
        confidence: int,
        candle: Candle,
        indicators: TechnicalIndicators,
        condition: MarketCondition,
        reason: str,
    ) -> TradingSignal:
        return TradingSignal(
            instrument=instrument,
            type=signal_type,
            confidence=confidence,
            price=candle.close,
            indicators=indicators,
            market_condition=condition,
            reason=reason,
            timestamp=self._clock(),
            expiry_minutes=1,
        )
