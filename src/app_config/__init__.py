"""Application configuration management for the brokerage trade engine."""

from .models import (
    AppConfig,
    SchwabConfig,
    TradierConfig,
    LoggingConfig,
    RedisConfig,
)
from .loader import load_config, get_config, apply_env_overrides

__all__ = [
    "AppConfig",
    "SchwabConfig",
    "TradierConfig",
    "LoggingConfig",
    "RedisConfig",
    "load_config",
    "get_config",
    "apply_env_overrides",
]
