"""regsync: copy package versions between two registries."""

from .common.config import SyncConfig, RegistryConfig
from .common.errors import SyncError
from .sync import SyncOrchestrator, SyncResult, copy_package_versions

__version__ = "0.1.0"

__all__ = [
    "SyncConfig",
    "RegistryConfig",
    "SyncError",
    "SyncOrchestrator",
    "SyncResult",
    "copy_package_versions",
]
