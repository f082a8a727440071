"""Configuration module for Filter Sync."""

from .settings import config, SyncConfig, MappingConfig, AppConfig, Config
from .config_loader import (
    ConfigurationError,
    MappingRows,
    load_mapping_file,
    clear_config_cache,
)
from .logging_config import setup_logging, get_logger

__all__ = [
    # Settings
    "config",
    "SyncConfig",
    "MappingConfig",
    "AppConfig",
    "Config",
    # Loader
    "ConfigurationError",
    "MappingRows",
    "load_mapping_file",
    "clear_config_cache",
    # Logging
    "setup_logging",
    "get_logger",
]
