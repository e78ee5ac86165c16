"""Pydantic models for application configuration with validation."""

from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator


class SchwabConfig(BaseModel):
    """Schwab brokerage settings."""

    trading_enabled: bool = Field(
        default=False,
        description="Submit orders to Schwab. When false, order placement is skipped"
    )
    order_type: Literal["MARKET", "LIMIT"] = Field(
        default="MARKET",
        description="Order type for every Schwab order. LIMIT orders use the signal price"
    )
    api_base_url: str = Field(
        default="https://api.schwabapi.com",
        description="Base URL of the Schwab trader and OAuth APIs"
    )
    client_id: Optional[str] = Field(
        default=None,
        description="OAuth app key; SCHWAB_CLIENT_ID overrides"
    )
    client_secret: Optional[str] = Field(
        default=None,
        description="OAuth app secret; SCHWAB_CLIENT_SECRET overrides"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=120.0,
        description="Timeout for Schwab API requests"
    )

    @field_validator("order_type", mode="before")
    @classmethod
    def normalize_order_type(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def token_url(self) -> str:
        return f"{self.api_base_url}/v1/oauth/token"


class TradierConfig(BaseModel):
    """Tradier brokerage settings."""

    trading_enabled: bool = Field(
        default=False,
        description="Submit orders to Tradier. When false, order placement is skipped"
    )
    order_type: Literal["market", "limit"] = Field(
        default="market",
        description="Order type for every Tradier order. limit orders use the signal price"
    )
    api_base_url: str = Field(
        default="https://api.tradier.com",
        description="Base URL for live Tradier accounts"
    )
    sandbox_base_url: str = Field(
        default="https://sandbox.tradier.com",
        description="Base URL for Tradier sandbox accounts"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=120.0,
        description="Timeout for Tradier API requests"
    )

    @field_validator("order_type", mode="before")
    @classmethod
    def normalize_order_type(cls, v):
        return v.lower() if isinstance(v, str) else v

    @field_validator("api_base_url", "sandbox_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def base_url(self, sandbox: bool) -> str:
        return self.sandbox_base_url if sandbox else self.api_base_url


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level"
    )
    format: Literal["text", "json"] = Field(
        default="text",
        description="text for human-readable lines, json for structured output"
    )
    log_dir: Optional[str] = Field(
        default=None,
        description="Directory for daily rotated log files. Console only when unset"
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        return v.upper() if isinstance(v, str) else v


class RedisConfig(BaseModel):
    """Redis connection used by the credential store."""

    host: str = Field(default="localhost", description="Redis host; REDIS_HOST overrides")
    port: int = Field(default=6379, ge=1, le=65535, description="Redis port; REDIS_PORT overrides")
    db: int = Field(default=0, ge=0, le=15, description="Redis database index")

    @property
    def url(self) -> str:
        return f"redis://{self.host}:{self.port}/{self.db}"


class AppConfig(BaseModel):
    """Root application configuration."""

    schwab: SchwabConfig = Field(
        default_factory=SchwabConfig,
        description="Schwab brokerage settings"
    )
    tradier: TradierConfig = Field(
        default_factory=TradierConfig,
        description="Tradier brokerage settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration"
    )
    redis: RedisConfig = Field(
        default_factory=RedisConfig,
        description="Credential store connection"
    )
