"""
Runtime Configuration Module

Provides configuration loading and management for the pass service.
"""

from .runtime import (
    RuntimeConfig,
    PassConfig,
    SigningConfig,
    AssetConfig,
    HttpConfig,
    StoreConfig,
    default_config_paths,
    get_default_config,
    load_config,
    load_config_file,
    set_default_config,
)

__all__ = [
    "RuntimeConfig",
    "PassConfig",
    "SigningConfig",
    "AssetConfig",
    "HttpConfig",
    "StoreConfig",
    "default_config_paths",
    "get_default_config",
    "load_config",
    "load_config_file",
    "set_default_config",
]
