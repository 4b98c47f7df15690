"""Configuration models and loader."""

from docstorefs.kernel.config.loader import ConfigLoader, clear_config_cache, load_config
from docstorefs.kernel.config.models import DocStoreFSConfig, LoggingConfig, StoreConfig

__all__ = [
    "ConfigLoader",
    "DocStoreFSConfig",
    "LoggingConfig",
    "StoreConfig",
    "clear_config_cache",
    "load_config",
]
