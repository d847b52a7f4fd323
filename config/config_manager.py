"""
Configuration manager with environment-based loading.

Supports:
- Base configuration (base.yaml)
- Environment-specific overrides (dev.yaml, prod.yaml)
- Secrets loading (secrets.yaml - gitignored)
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Any
import yaml
import logging

from src.domain.exceptions import ConfigurationError
from src.models.instrument import Instrument

from .models import (
    AppConfig,
    MonitorConfig,
    SimulatorConfig,
    AlphaVantageConfig,
    LoggingConfig,
)


logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Configuration manager with environment support.

    Loads configuration in this order:
    1. base.yaml (default config)
    2. {env}.yaml (environment-specific, e.g., dev.yaml)
    3. secrets.yaml (if exists, gitignored)

    Later configs override earlier ones.
    """

    def __init__(self, config_dir: str | Path = "config", env: str = "dev"):
        """
        Initialize config manager.

        Args:
            config_dir: Directory containing config files.
            env: Environment name (dev, prod, etc).
        """
        self.config_dir = Path(config_dir)
        self.env = env
        self.config: Dict[str, Any] = {}

    def load(self) -> AppConfig:
        """
        Load configuration from YAML files.

        Returns:
            AppConfig object.

        Raises:
            ConfigurationError: If base config is missing or a value is invalid.
        """
        base_path = self.config_dir / "base.yaml"
        if not base_path.exists():
            raise ConfigurationError(f"Base config not found: {base_path}")

        self.config = self._load_yaml(base_path)
        logger.info(f"Loaded base config from {base_path}")

        env_path = self.config_dir / f"{self.env}.yaml"
        if env_path.exists():
            self.config = self._merge_dicts(self.config, self._load_yaml(env_path))
            logger.info(f"Loaded {self.env} config from {env_path}")

        secrets_path = self.config_dir / "secrets.yaml"
        if secrets_path.exists():
            self.config = self._merge_dicts(self.config, self._load_yaml(secrets_path))
            logger.info("Loaded secrets")

        return self._parse_config()

    def _load_yaml(self, path: Path) -> Dict[str, Any]:
        """Load YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Top level of {path} must be a mapping")
        return data

    def _merge_dicts(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts (override wins)."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    @staticmethod
    def _get_bool(section: Dict[str, Any], path: str, default: bool) -> bool:
        """YAML booleans only; quoted values such as "false" are rejected."""
        value = section.get(path.rsplit(".", 1)[-1], default)
        if not isinstance(value, bool):
            raise ConfigurationError(f"{path} must be true or false, got {value!r}")
        return value

    def _parse_config(self) -> AppConfig:
        """Parse raw dict into AppConfig."""
        try:
            monitor_raw = self.config.get("monitor", {})
            monitor = MonitorConfig(
                max_history_size=int(monitor_raw.get("max_history_size", 150)),
                min_candles_for_signal=int(monitor_raw.get("min_candles_for_signal", 30)),
                seed_count=int(monitor_raw.get("seed_count", 100)),
                update_interval_ms=int(monitor_raw.get("update_interval_ms", 60_000)),
                jitter_min_ms=int(monitor_raw.get("jitter_min_ms", -10_000)),
                jitter_max_ms=int(monitor_raw.get("jitter_max_ms", 15_000)),
                use_simulator=self._get_bool(monitor_raw, "monitor.use_simulator", True),
                live_interval=str(monitor_raw.get("live_interval", "1min")),
                max_signal_history=int(monitor_raw.get("max_signal_history", 20)),
            )

            sim_raw = self.config.get("simulator", {})
            seed = sim_raw.get("seed")
            simulator = SimulatorConfig(
                volatility=float(sim_raw.get("volatility", 0.0005)),
                seed=int(seed) if seed is not None else None,
            )

            av_raw = self.config.get("alpha_vantage", {})
            alpha_vantage = AlphaVantageConfig(
                base_url=av_raw.get("base_url", "https://www.alphavantage.co/query"),
                api_key=av_raw.get("api_key", "") or "",
                timeout_sec=float(av_raw.get("timeout_sec", 10.0)),
                output_size=av_raw.get("output_size", "compact"),
            )

            logging_raw = self.config.get("logging", {})
            logging_config = LoggingConfig(
                level=str(logging_raw.get("level", "INFO")).upper(),
                log_dir=logging_raw.get("log_dir", "./logs"),
                console=self._get_bool(logging_raw, "logging.console", True),
                timezone=logging_raw.get("timezone", "local"),
            )

            instruments = [str(i) for i in self.config.get("instruments", [])]
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(f"Invalid configuration value: {e}") from e

        config = AppConfig(
            monitor=monitor,
            simulator=simulator,
            alpha_vantage=alpha_vantage,
            logging=logging_config,
            instruments=instruments,
            raw=self.config,
        )
        self._validate(config)
        return config

    def _validate(self, config: AppConfig) -> None:
        """Reject values the monitor cannot run with."""
        monitor = config.monitor
        if monitor.max_history_size <= 0:
            raise ConfigurationError("monitor.max_history_size must be positive")
        if monitor.min_candles_for_signal <= 0:
            raise ConfigurationError("monitor.min_candles_for_signal must be positive")
        if monitor.min_candles_for_signal > monitor.max_history_size:
            raise ConfigurationError(
                "monitor.min_candles_for_signal cannot exceed monitor.max_history_size"
            )
        if monitor.seed_count < 0:
            raise ConfigurationError("monitor.seed_count cannot be negative")
        if monitor.update_interval_ms < 0:
            raise ConfigurationError("monitor.update_interval_ms cannot be negative")
        if monitor.jitter_max_ms < monitor.jitter_min_ms:
            raise ConfigurationError("monitor.jitter_max_ms must be >= monitor.jitter_min_ms")
        if monitor.max_signal_history <= 0:
            raise ConfigurationError("monitor.max_signal_history must be positive")
        if config.simulator.volatility <= 0:
            raise ConfigurationError("simulator.volatility must be positive")

        for name in config.instruments:
            try:
                Instrument.parse(name)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
