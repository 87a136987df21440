"""Configuration schema using Pydantic."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewayConfig(BaseModel):
    """HTTP gateway configuration."""
    host: str = "0.0.0.0"
    port: int = 8787
    cors_allow_origin: str = "*"


class RateLimitConfig(BaseModel):
    """Per-client token bucket settings.

    The defaults grant one token every two seconds (30 requests per minute)
    with a burst capacity of 10.
    """
    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    tokens_per_interval: float = Field(default=1, gt=0)  # Tokens granted per interval
    interval_ms: float = Field(default=2000, gt=0)
    bucket_size: int = Field(default=10, ge=1)  # Burst capacity, also the initial capacity
    cleanup_interval_ms: float = Field(default=60_000, gt=0)
    stale_after_ms: float = Field(default=5 * 60 * 1000, gt=0)
    # Keep progress toward the next token across checks instead of discarding it
    carry_partial_interval: bool = False


class UpstreamConfig(BaseModel):
    """AlAdhan upstream configuration."""
    base_urls: list[str] = Field(default_factory=lambda: [
        "https://api.aladhan.com/v1/timingsByAddress",
        "https://aladhan.api.islamic.network/v1/timingsByAddress",
        "https://aladhan.api.alislam.ru/v1/timingsByAddress",
    ])
    timeout_seconds: float = 15.0


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file_enabled: bool = False
    file_path: str = "~/.soluna/logs/soluna.log"
    rotation: str = "10 MB"
    retention: str = "7 days"


class Config(BaseSettings):
    """Root configuration for soluna."""
    model_config = SettingsConfigDict(env_prefix="SOLUNA_", env_nested_delimiter="__")

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
