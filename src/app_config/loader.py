"""Configuration loader with validation and singleton access."""

import logging
import os
import yaml
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .models import AppConfig

logger = logging.getLogger(__name__)

# Global config singleton
_config: Optional[AppConfig] = None

# Environment variables that take precedence over config.yaml: (section, field)
ENV_OVERRIDES = {
    "SCHWAB_CLIENT_ID": ("schwab", "client_id"),
    "SCHWAB_CLIENT_SECRET": ("schwab", "client_secret"),
    "SCHWAB_ENABLE_TRADING": ("schwab", "trading_enabled"),
    "TRADIER_ENABLE_TRADING": ("tradier", "trading_enabled"),
    "REDIS_HOST": ("redis", "host"),
    "REDIS_PORT": ("redis", "port"),
    "LOG_LEVEL": ("logging", "level"),
}


def apply_env_overrides(raw_config: Dict[str, Any], environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Overlay secrets and deployment switches from the environment."""
    environ = os.environ if environ is None else environ

    for env_name, (section, field) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or value == "":
            continue
        section_data = raw_config.get(section) or {}
        section_data[field] = value
        raw_config[section] = section_data

    return raw_config


def load_config(config_path: str | Path, environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """
    Load and validate configuration from YAML file.

    Args:
        config_path: Path to config.yaml file
        environ: Environment mapping for overrides (defaults to os.environ)

    Returns:
        Validated AppConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config validation fails
        yaml.YAMLError: If YAML parsing fails
    """
    global _config

    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from: {config_path}")

    with open(config_path, 'r') as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        raw_config = {}

    raw_config = apply_env_overrides(raw_config, environ)

    try:
        _config = AppConfig(**raw_config)
    except Exception as e:
        logger.error(f"Configuration validation failed: {e}")
        raise ValueError(f"Invalid configuration: {e}") from e

    # Log loaded configuration for audit trail (secrets omitted)
    logger.info("Configuration loaded successfully:")
    logger.info(f"  Schwab trading enabled: {_config.schwab.trading_enabled}")
    logger.info(f"  Schwab order type: {_config.schwab.order_type}")
    logger.info(f"  Schwab API: {_config.schwab.api_base_url}")
    logger.info(f"  Schwab client id configured: {bool(_config.schwab.client_id)}")
    logger.info(f"  Tradier trading enabled: {_config.tradier.trading_enabled}")
    logger.info(f"  Tradier order type: {_config.tradier.order_type}")
    logger.info(f"  Tradier API: {_config.tradier.api_base_url} (sandbox {_config.tradier.sandbox_base_url})")
    logger.info(f"  Credential store: {_config.redis.url}")

    return _config


def get_config() -> AppConfig:
    """
    Get the current loaded configuration.

    Returns:
        Current AppConfig instance

    Raises:
        RuntimeError: If config hasn't been loaded yet
    """
    if _config is None:
        raise RuntimeError(
            "Configuration not loaded. Call load_config() first."
        )
    return _config
