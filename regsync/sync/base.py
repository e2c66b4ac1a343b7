"""Data structures shared by the sync components.

Defines the work items produced by the differ, the progress events
emitted while transferring, and the summary returned by a sync run.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Callable, List, Optional

from ..registry.metadata import VersionRecord


class SyncStatus(Enum):
    """Status of a completed sync run."""

    SUCCESS = auto()
    NO_CHANGES = auto()


class SyncEventType(Enum):
    """Per-version progress notifications."""

    DOWNLOAD_STARTED = auto()
    DOWNLOAD_COMPLETED = auto()
    UPLOAD_STARTED = auto()
    UPLOAD_COMPLETED = auto()
    SKIPPED = auto()


@dataclass(frozen=True)
class SyncEvent:
    """Progress notification for one version."""

    event_type: SyncEventType
    package: str
    version: str
    reason: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.package}@{self.version}"


ProgressCallback = Callable[[SyncEvent], None]


@dataclass(frozen=True)
class TransferWorkItem:
    """A version that exists upstream but not downstream."""

    version: str
    record: VersionRecord
    published_at: Optional[datetime] = None


@dataclass
class SkippedVersion:
    """A work item that was not transferred, with the reason."""

    version: str
    reason: str


@dataclass
class SyncResult:
    """Result of a package sync run."""

    status: SyncStatus
    package_name: str
    sync_date: str
    versions_copied: List[str] = field(default_factory=list)
    versions_skipped: List[SkippedVersion] = field(default_factory=list)
    target_existed: bool = True
    duration_seconds: float = 0.0

    @property
    def is_success(self) -> bool:
        """Check if sync was successful."""
        return self.status in (SyncStatus.SUCCESS, SyncStatus.NO_CHANGES)

    @property
    def has_changes(self) -> bool:
        return len(self.versions_copied) > 0
