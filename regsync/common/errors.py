"""Error kinds raised by a package sync run.

Every fatal condition derives from SyncError and records which side
(source/target) and which stage of the run failed. A target package
that does not exist yet is not an error and has no exception here.
"""

from typing import Optional

SOURCE = "source"
TARGET = "target"


class SyncError(Exception):
    """Base class for all fatal sync errors."""

    def __init__(
        self,
        message: str,
        *,
        side: Optional[str] = None,
        stage: Optional[str] = None,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        version: Optional[str] = None,
    ):
        super().__init__(message)
        self.side = side
        self.stage = stage
        self.url = url
        self.status_code = status_code
        self.version = version


class ConfigurationError(SyncError):
    """Raised when registry URL or credential options are missing or contradictory."""


class SourceFetchError(SyncError):
    """Raised when the source package metadata cannot be retrieved."""


class TargetFetchError(SyncError):
    """Raised when target metadata fails with anything other than not-found."""


class TransferError(SyncError):
    """Raised when a single version cannot be moved to the target registry."""


class ArchiveFetchError(TransferError, SourceFetchError):
    """Raised when a version's archive cannot be downloaded from the source."""


class PublishError(TransferError):
    """Raised when the target registry rejects or fails a publish request."""
