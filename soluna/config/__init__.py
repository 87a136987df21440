"""Configuration module for soluna."""

from soluna.config.loader import get_config_path, load_config, save_config
from soluna.config.schema import Config, RateLimitConfig

__all__ = ["Config", "RateLimitConfig", "load_config", "save_config", "get_config_path"]
