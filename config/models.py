"""Configuration data models."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class MonitorConfig:
    """Monitor loop cadence and history sizing."""
    max_history_size: int = 150  # Candles kept per instrument
    min_candles_for_signal: int = 30  # History needed before evaluating
    seed_count: int = 100  # Historical candles fetched to seed a stream
    update_interval_ms: int = 60_000  # Base delay between cycles
    jitter_min_ms: int = -10_000  # Jitter drawn from [min, max), negative part clamped to 0
    jitter_max_ms: int = 15_000
    use_simulator: bool = True  # Synthetic candles instead of the live API
    live_interval: str = "1min"  # Intraday interval requested from the live API
    max_signal_history: int = 20  # Recent signals kept by the monitor facade


@dataclass
class SimulatorConfig:
    """Synthetic candle generator settings."""
    volatility: float = 0.0005
    seed: Optional[int] = None  # Fixed seed for reproducible runs


@dataclass
class AlphaVantageConfig:
    """Alpha Vantage FX intraday client settings."""
    base_url: str = "https://www.alphavantage.co/query"
    api_key: str = ""  # Usually supplied by secrets.yaml or ALPHAVANTAGE_API_KEY
    timeout_sec: float = 10.0
    output_size: str = "compact"


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_dir: str = "./logs"
    console: bool = True
    timezone: str = "local"  # Timezone for log timestamps (e.g., "UTC", "America/New_York", or "local")


@dataclass
class AppConfig:
    """Complete application configuration."""
    monitor: MonitorConfig
    simulator: SimulatorConfig
    alpha_vantage: AlphaVantageConfig
    logging: LoggingConfig
    instruments: List[str] = field(default_factory=list)  # Instrument names monitored by default
    raw: Dict[str, Any] = field(default_factory=dict)  # Raw merged config dict
