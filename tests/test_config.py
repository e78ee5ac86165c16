import pytest

from app_config import AppConfig, apply_env_overrides, get_config, load_config
from app_config import loader

CONFIG_YAML = """
schwab:
  trading_enabled: false
  order_type: limit
  api_base_url: https://api.schwabapi.com/
tradier:
  trading_enabled: true
  order_type: LIMIT
logging:
  level: debug
  format: json
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML)
    return path


def test_load_config(config_file):
    config = load_config(config_file, environ={})

    assert config.schwab.order_type == "LIMIT"
    assert config.schwab.api_base_url == "https://api.schwabapi.com"
    assert config.schwab.token_url == "https://api.schwabapi.com/v1/oauth/token"
    assert config.schwab.client_id is None
    assert config.tradier.trading_enabled is True
    assert config.tradier.order_type == "limit"
    assert config.tradier.base_url(sandbox=True) == "https://sandbox.tradier.com"
    assert config.logging.level == "DEBUG"
    assert config.redis.url == "redis://localhost:6379/0"
    assert get_config() is config


def test_environment_overrides(config_file):
    config = load_config(config_file, environ={
        "SCHWAB_CLIENT_ID": "app-key",
        "SCHWAB_CLIENT_SECRET": "app-secret",
        "SCHWAB_ENABLE_TRADING": "true",
        "REDIS_HOST": "redis",
        "REDIS_PORT": "6380",
        "LOG_LEVEL": "",
    })

    assert config.schwab.client_id == "app-key"
    assert config.schwab.client_secret == "app-secret"
    assert config.schwab.trading_enabled is True
    assert config.schwab.order_type == "LIMIT"
    assert config.redis.url == "redis://redis:6380/0"
    assert config.logging.level == "DEBUG"


def test_overrides_create_missing_sections():
    raw = apply_env_overrides({}, environ={"TRADIER_ENABLE_TRADING": "1"})
    assert raw == {"tradier": {"trading_enabled": "1"}}
    assert AppConfig(**raw).tradier.trading_enabled is True


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")

    config = load_config(path, environ={})

    assert config.schwab.trading_enabled is False
    assert config.schwab.order_type == "MARKET"
    assert config.tradier.order_type == "market"


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_invalid_order_type(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("tradier:\n  order_type: stop\n")
    with pytest.raises(ValueError, match="Invalid configuration"):
        load_config(path, environ={})


def test_get_config_before_load(monkeypatch):
    monkeypatch.setattr(loader, "_config", None)
    with pytest.raises(RuntimeError):
        get_config()
