"""Candle source adapters (synthetic and live)."""

from .alpha_vantage import AlphaVantageAdapter
from .simulator import MarketDataSimulator

__all__ = ["AlphaVantageAdapter", "MarketDataSimulator"]
