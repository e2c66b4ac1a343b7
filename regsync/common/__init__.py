"""Common utilities for regsync."""

from .logger import setup_logger, get_logger
from .config import load_config, load_typed_config, SyncConfig, RegistryConfig

__all__ = [
    "get_logger",
    "load_config",
    "load_typed_config",
    "setup_logger",
    "SyncConfig",
    "RegistryConfig",
]
