"""Configuration management."""

from .config_manager import ConfigManager
from .models import AppConfig, MonitorConfig

__all__ = ["ConfigManager", "AppConfig", "MonitorConfig"]
