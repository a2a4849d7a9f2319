"""Configuration utilities for bridgesend."""

from .loader import (
    ApiUrlsConfig,
    ChainConfig,
    ConfigError,
    DefaultsConfig,
    ExplorerConfig,
    SenderConfig,
    TokenConfig,
    load_config,
)

__all__ = [
    "ApiUrlsConfig",
    "ChainConfig",
    "ConfigError",
    "DefaultsConfig",
    "ExplorerConfig",
    "SenderConfig",
    "TokenConfig",
    "load_config",
]
