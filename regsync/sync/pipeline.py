"""Per-version transfer from the source registry to the target registry.

For every work item the archive is downloaded from the source, encoded
as a base64 attachment, wrapped in a publish document whose tarball
reference points at the target registry, and uploaded.
"""

import base64
from typing import Any, Dict, Optional

import httpx

from ..common.errors import SOURCE, TARGET, ArchiveFetchError, PublishError
from ..common.logger import get_logger
from ..registry.client import RegistryClient, describe_http_error, status_code_of
from ..registry.endpoint import RegistryEndpoint
from ..registry.metadata import VersionRecord
from .base import ProgressCallback, SyncEvent, SyncEventType, TransferWorkItem

logger = get_logger("regsync.pipeline")

ARCHIVE_EXTENSION = ".tgz"
ATTACHMENT_CONTENT_TYPE = "application/octet-stream"


def archive_filename(package_name: str, version: str) -> str:
    """Derive the attachment filename for a version.

    Strips every '/' and '@' from the package name, so ``@scope/name``
    at ``1.2.3`` gives ``scopename-1.2.3.tgz``.
    """
    stripped = package_name.replace("/", "").replace("@", "")
    return f"{stripped}-{version}{ARCHIVE_EXTENSION}"


def build_publish_payload(
    record: VersionRecord,
    target: RegistryEndpoint,
    archive: bytes,
) -> Dict[str, Any]:
    """Build the publish document for one version.

    All fields of the version document are carried over; only the
    tarball reference is rewritten to the target registry. The integrity
    and shasum values are kept as they describe the archive bytes.

    Args:
        record: Version record from the source registry
        target: Target registry endpoint
        archive: Raw archive bytes

    Returns:
        JSON-serializable publish document
    """
    filename = archive_filename(record.name, record.version)

    dist = dict(record.raw.get("dist") or {})
    dist["tarball"] = f"{target.package_url(record.name)}/-/{filename}"

    version_doc = dict(record.raw)
    version_doc["name"] = record.name
    version_doc["version"] = record.version
    version_doc["dist"] = dist

    return {
        "_id": record.name,
        "name": record.name,
        "description": record.description,
        "dist-tags": {"latest": record.version},
        "versions": {record.version: version_doc},
        "_attachments": {
            filename: {
                "content_type": ATTACHMENT_CONTENT_TYPE,
                "data": base64.b64encode(archive).decode("ascii"),
                "length": len(archive),
            }
        },
    }


class VersionTransferPipeline:
    """Moves single versions from a source registry to a target registry."""

    def __init__(
        self,
        source: RegistryClient,
        target: RegistryClient,
        package_name: str,
        progress: Optional[ProgressCallback] = None,
    ):
        """Initialize the pipeline.

        Args:
            source: Client for the registry the archives come from
            target: Client for the registry receiving the publishes
            package_name: Package being synced, as requested by the caller
            progress: Callback receiving per-version SyncEvents
        """
        self.source = source
        self.target = target
        self.package_name = package_name
        self.progress = progress or log_progress

    def _emit(self, event_type: SyncEventType, version: str, reason: Optional[str] = None) -> None:
        self.progress(SyncEvent(event_type, self.package_name, version, reason))

    def skip(self, item: TransferWorkItem, reason: str) -> None:
        """Report a work item as skipped."""
        self._emit(SyncEventType.SKIPPED, item.version, reason)

    def download(self, item: TransferWorkItem) -> bytes:
        """Download the archive of a work item from the source registry.

        Raises:
            ArchiveFetchError: If the archive cannot be retrieved
        """
        url = item.record.dist.tarball
        if not url:
            raise ArchiveFetchError(
                f"{self.source.endpoint.name}: {self.package_name}@{item.version} "
                f"has no tarball reference",
                side=SOURCE,
                stage="archive",
                version=item.version,
            )

        self._emit(SyncEventType.DOWNLOAD_STARTED, item.version)
        try:
            archive = self.source.download_archive(url)
        except httpx.HTTPError as e:
            raise ArchiveFetchError(
                f"{self.source.endpoint.name}: failed to download "
                f"{self.package_name}@{item.version} from {url} ({describe_http_error(e)})",
                side=SOURCE,
                stage="archive",
                url=url,
                status_code=status_code_of(e),
                version=item.version,
            ) from e
        self._emit(SyncEventType.DOWNLOAD_COMPLETED, item.version)

        return archive

    def upload(self, item: TransferWorkItem, archive: bytes) -> None:
        """Publish a downloaded archive to the target registry.

        Raises:
            PublishError: If the target registry rejects the publish
        """
        payload = build_publish_payload(item.record, self.target.endpoint, archive)

        self._emit(SyncEventType.UPLOAD_STARTED, item.version)
        try:
            self.target.publish(self.package_name, payload)
        except httpx.HTTPError as e:
            raise PublishError(
                f"{self.target.endpoint.name}: failed to publish "
                f"{self.package_name}@{item.version} ({describe_http_error(e)})",
                side=TARGET,
                stage="publish",
                url=self.target.endpoint.package_url(self.package_name),
                status_code=status_code_of(e),
                version=item.version,
            ) from e
        self._emit(SyncEventType.UPLOAD_COMPLETED, item.version)

    def transfer(self, item: TransferWorkItem) -> None:
        """Download and republish one version.

        Args:
            item: Work item to transfer

        Raises:
            ArchiveFetchError: If the archive download fails
            PublishError: If the upload fails
        """
        archive = self.download(item)
        self.upload(item, archive)


def log_progress(event: SyncEvent) -> None:
    """Default progress callback, writes each event to the log."""
    if event.event_type == SyncEventType.DOWNLOAD_STARTED:
        logger.info(f"Downloading {event.key}...")
    elif event.event_type == SyncEventType.DOWNLOAD_COMPLETED:
        logger.info(f"Downloaded {event.key}.")
    elif event.event_type == SyncEventType.UPLOAD_STARTED:
        logger.info(f"Uploading {event.key}...")
    elif event.event_type == SyncEventType.UPLOAD_COMPLETED:
        logger.info(f"Uploaded {event.key}.")
    elif event.event_type == SyncEventType.SKIPPED:
        logger.info(f"Skipping {event.key}. {event.reason}")
