"""Package version sync between two registries.

The differ decides which versions must move, the pipeline moves one
version at a time, and the orchestrator runs the whole sequence for a
single package.
"""

from .base import (
    SyncEvent,
    SyncEventType,
    SyncResult,
    SyncStatus,
    SkippedVersion,
    TransferWorkItem,
)
from .differ import VersionSetDiffer
from .pipeline import VersionTransferPipeline, archive_filename, build_publish_payload
from .orchestrator import SyncOrchestrator, copy_package_versions

__all__ = [
    "SyncEvent",
    "SyncEventType",
    "SyncResult",
    "SyncStatus",
    "SkippedVersion",
    "TransferWorkItem",
    "VersionSetDiffer",
    "VersionTransferPipeline",
    "archive_filename",
    "build_publish_payload",
    "SyncOrchestrator",
    "copy_package_versions",
]
