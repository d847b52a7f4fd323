"""
Unit tests for candle, instrument and signal models.

Tests:
- Candle geometry and quality band edges
- Instrument name parsing
- TradingSignal freshness and serialization
"""

from datetime import timedelta

import pytest

from src.models.candle import Candle
from src.models.instrument import Instrument
from src.models.pair_status import PairStatus
from src.models.signal import (
    MarketCondition,
    SignalType,
    TechnicalIndicators,
    TradingSignal,
)
from src.utils.timezone import now_utc


def candle(open_: float, high: float, low: float, close: float) -> Candle:
    return Candle(open=open_, high=high, low=low, close=close, timestamp=0)


class TestCandleGeometry:
    """Tests for derived candle properties."""

    def test_bullish_parts(self):
        c = candle(10.0, 16.0, 8.0, 14.0)
        assert c.body == 4.0
        assert c.upper_wick == 2.0
        assert c.lower_wick == 2.0
        assert c.total_range == 8.0
        assert c.body_pct == 50.0
        assert c.is_bullish

    def test_bearish_parts(self):
        c = candle(14.0, 16.0, 8.0, 10.0)
        assert c.body == 4.0
        assert c.upper_wick == 2.0
        assert c.lower_wick == 2.0
        assert not c.is_bullish

    def test_doji_is_not_bullish(self):
        assert not candle(10.0, 11.0, 9.0, 10.0).is_bullish

    def test_zero_range_body_pct(self):
        assert candle(1.0, 1.0, 1.0, 1.0).body_pct == 0.0

    def test_to_dict(self):
        c = Candle(open=1.0, high=2.0, low=0.5, close=1.5, timestamp=123, volume=7.0)
        assert c.to_dict() == {
            "open": 1.0, "high": 2.0, "low": 0.5, "close": 1.5,
            "timestamp": 123, "volume": 7.0,
        }

    def test_frozen(self):
        c = candle(1.0, 2.0, 0.5, 1.5)
        with pytest.raises(AttributeError):
            c.close = 3.0


class TestCandleQuality:
    """Tests for the candle quality band."""

    def test_zero_range_never_qualifies(self):
        assert not candle(1.0, 1.0, 1.0, 1.0).has_good_quality()

    def test_balanced_candle_qualifies(self):
        # body 60%, wicks 20% each
        assert candle(2.0, 10.0, 0.0, 8.0).has_good_quality()

    def test_body_band_is_inclusive(self):
        # body 25%, wicks 37.5% each
        lower_edge = candle(3.0, 8.0, 0.0, 5.0)
        assert lower_edge.body_pct == 25.0
        assert lower_edge.has_good_quality()

        # body 85%, wicks 7.5% each
        upper_edge = candle(0.75, 10.0, 0.0, 9.25)
        assert upper_edge.body_pct == 85.0
        assert upper_edge.has_good_quality()

    def test_body_too_small(self):
        # body 20%, wicks 40% each
        assert not candle(4.0, 10.0, 0.0, 6.0).has_good_quality()

    def test_body_too_large(self):
        # body 90%, wicks 5% each
        assert not candle(0.5, 10.0, 0.0, 9.5).has_good_quality()

    def test_wick_at_forty_percent_fails(self):
        # body 60%, upper wick 40%, lower wick 0%
        assert not candle(0.0, 10.0, 0.0, 6.0).has_good_quality()

    def test_wick_just_below_forty_percent_passes(self):
        # body 62%, upper wick 38%
        assert candle(0.0, 100.0, 0.0, 62.0).has_good_quality()


class TestInstrument:
    """Tests for Instrument parsing and currency codes."""

    @pytest.mark.parametrize(
        "name", ["EURUSD_OTC", "eurusd_otc", "EURUSD", "eur/usd", " EURUSD "]
    )
    def test_parse_variants(self, name):
        assert Instrument.parse(name) is Instrument.EURUSD_OTC

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown instrument"):
            Instrument.parse("XAUUSD")

    def test_currency_codes(self):
        assert Instrument.USDJPY_OTC.base_currency == "USD"
        assert Instrument.USDJPY_OTC.quote_currency == "JPY"

    def test_display_name(self):
        assert Instrument.GBPUSD_OTC.display_name == "GBP/USD (OTC)"
        assert str(Instrument.GBPUSD_OTC) == "GBPUSD_OTC"


class TestTradingSignal:
    """Tests for TradingSignal validity and serialization."""

    @pytest.fixture
    def indicators(self) -> TechnicalIndicators:
        return TechnicalIndicators(ema9=1.1, ema20=1.0, rsi=55.0, adx=30.0, ema_slope=0.001)

    def make_signal(self, indicators, signal_type=SignalType.BUY, age=timedelta(0)):
        return TradingSignal(
            instrument=Instrument.EURUSD_OTC,
            type=signal_type,
            confidence=70,
            price=1.2,
            indicators=indicators,
            market_condition=MarketCondition.TRENDING,
            reason="test",
            timestamp=now_utc() - age,
        )

    def test_fresh_signal_is_valid(self, indicators):
        assert self.make_signal(indicators).is_valid()

    def test_stale_signal_is_invalid(self, indicators):
        assert not self.make_signal(indicators, age=timedelta(minutes=6)).is_valid()

    def test_none_signal_is_never_valid(self, indicators):
        assert not self.make_signal(indicators, SignalType.NONE).is_valid()

    def test_validity_against_explicit_now(self, indicators):
        sig = self.make_signal(indicators)
        assert sig.is_valid(now=sig.timestamp + timedelta(minutes=4, seconds=59))
        assert not sig.is_valid(now=sig.timestamp + timedelta(minutes=5))

    def test_defaults(self, indicators):
        assert self.make_signal(indicators).expiry_minutes == 1

    def test_to_dict(self, indicators):
        data = self.make_signal(indicators).to_dict()
        assert data["instrument"] == "EURUSD_OTC"
        assert data["type"] == "BUY"
        assert data["market_condition"] == "TRENDING"
        assert data["indicators"]["rsi"] == 55.0

    def test_str(self, indicators):
        text = str(self.make_signal(indicators))
        assert "EUR/USD (OTC) BUY (70%)" in text


class TestPairStatus:
    def test_defaults(self):
        status = PairStatus(instrument=Instrument.EURUSD_OTC)
        assert not status.is_monitoring
        assert status.history_size == 0
        assert status.last_signal is None
