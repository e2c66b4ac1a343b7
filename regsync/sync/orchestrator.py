"""Top-level package sync run.

Wires the source and target endpoints, fetches both metadata documents,
diffs them and drives the transfer pipeline one version at a time in
ascending version order.
"""

import time
from datetime import datetime
from typing import Optional

import httpx

from ..common.config import SyncConfig
from ..common.errors import (
    SOURCE,
    TARGET,
    ConfigurationError,
    SourceFetchError,
    TargetFetchError,
)
from ..common.logger import get_logger
from ..registry.client import (
    MetadataDecodeError,
    RegistryClient,
    create_http_client,
    describe_http_error,
    status_code_of,
)
from ..registry.endpoint import RegistryEndpoint
from ..registry.metadata import PackageMetadata
from .base import ProgressCallback, SkippedVersion, SyncResult, SyncStatus
from .differ import VersionSetDiffer
from .pipeline import VersionTransferPipeline

logger = get_logger("regsync.orchestrator")

SOURCE_REGISTRY = "Source registry"
TARGET_REGISTRY = "Target registry"


class SyncOrchestrator:
    """Copies the versions of one package missing from the target registry.

    Versions are processed strictly sequentially. A registry may reject
    a version whose dependency range cannot resolve yet, so publishes
    must happen oldest first.
    """

    def __init__(
        self,
        config: SyncConfig,
        progress: Optional[ProgressCallback] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize orchestrator.

        Args:
            config: Options bundle for this run
            progress: Callback receiving per-version SyncEvents
            transport: Optional HTTP transport override

        Raises:
            ConfigurationError: If package, URLs or credentials are invalid
        """
        if not config.package:
            raise ConfigurationError("Must provide a package name", stage="configure")

        self.config = config
        self.progress = progress
        self.transport = transport

        self.source_endpoint = RegistryEndpoint.from_config(SOURCE_REGISTRY, config.source)
        self.target_endpoint = RegistryEndpoint.from_config(TARGET_REGISTRY, config.target)
        self.differ = VersionSetDiffer(
            after=config.after,
            only_latest_from_each_major=config.only_latest_from_each_major,
        )

    @property
    def package_name(self) -> str:
        return self.config.package

    def fetch_source(self, client: RegistryClient) -> PackageMetadata:
        """Fetch the source package document; the package must exist.

        Raises:
            SourceFetchError: On any failure, including not-found
        """
        url = self.source_endpoint.package_url(self.package_name)
        try:
            metadata = client.get_package(self.package_name)
        except httpx.HTTPError as e:
            raise SourceFetchError(
                f"{SOURCE_REGISTRY}: failed to fetch metadata for "
                f"{self.package_name} ({describe_http_error(e)})",
                side=SOURCE,
                stage="metadata",
                url=url,
                status_code=status_code_of(e),
            ) from e
        except MetadataDecodeError as e:
            raise SourceFetchError(
                f"{SOURCE_REGISTRY}: invalid metadata for {self.package_name} ({e})",
                side=SOURCE,
                stage="metadata",
                url=url,
            ) from e

        if metadata is None:
            raise SourceFetchError(
                f"{SOURCE_REGISTRY}: package {self.package_name} not found",
                side=SOURCE,
                stage="metadata",
                url=url,
                status_code=404,
            )
        return metadata

    def fetch_target(self, client: RegistryClient) -> Optional[PackageMetadata]:
        """Fetch the target package document.

        Returns:
            PackageMetadata, or None if the package does not exist there yet

        Raises:
            TargetFetchError: On any failure other than not-found
        """
        url = self.target_endpoint.package_url(self.package_name)
        try:
            metadata = client.get_package(self.package_name)
        except httpx.HTTPError as e:
            raise TargetFetchError(
                f"{TARGET_REGISTRY}: failed to fetch metadata for "
                f"{self.package_name} ({describe_http_error(e)})",
                side=TARGET,
                stage="metadata",
                url=url,
                status_code=status_code_of(e),
            ) from e
        except MetadataDecodeError as e:
            raise TargetFetchError(
                f"{TARGET_REGISTRY}: invalid metadata for {self.package_name} ({e})",
                side=TARGET,
                stage="metadata",
                url=url,
            ) from e

        if metadata is None:
            logger.info(
                f"Package {self.package_name} does not exist in the target registry."
            )
        return metadata

    def run(self) -> SyncResult:
        """Run the sync.

        Returns:
            SyncResult describing copied and skipped versions

        Raises:
            SourceFetchError: If source metadata or an archive cannot be fetched
            TargetFetchError: If target metadata fails with other than not-found
            PublishError: If a publish is rejected; earlier versions stay published
        """
        start = time.monotonic()
        logger.info(f"Copying {self.package_name}...")

        with create_http_client(self.config.timeout, self.transport) as http:
            source = RegistryClient(self.source_endpoint, http)
            target = RegistryClient(self.target_endpoint, http)

            source_metadata = self.fetch_source(source)
            target_metadata = self.fetch_target(target)

            result = SyncResult(
                status=SyncStatus.NO_CHANGES,
                package_name=self.package_name,
                sync_date=datetime.now().isoformat(),
                target_existed=target_metadata is not None,
            )

            work = self.differ.diff(source_metadata, target_metadata)
            if not work:
                logger.info("No new versions to copy.")
                result.duration_seconds = time.monotonic() - start
                return result

            logger.info(
                f"Package versions to be copied: {', '.join(item.version for item in work)}"
            )

            pipeline = VersionTransferPipeline(
                source, target, self.package_name, progress=self.progress
            )
            for item in work:
                reason = self.differ.skip_reason(item)
                if reason is not None:
                    pipeline.skip(item, reason)
                    result.versions_skipped.append(SkippedVersion(item.version, reason))
                    continue

                pipeline.transfer(item)
                result.versions_copied.append(item.version)

        if result.versions_copied:
            result.status = SyncStatus.SUCCESS
        result.duration_seconds = time.monotonic() - start

        logger.info(
            f"Copying {self.package_name} finished. "
            f"{len(result.versions_copied)} copied, {len(result.versions_skipped)} skipped."
        )
        return result


def copy_package_versions(
    config: SyncConfig,
    progress: Optional[ProgressCallback] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> SyncResult:
    """Copy the versions of a package missing from the target registry.

    Args:
        config: Options bundle for this run
        progress: Callback receiving per-version SyncEvents
        transport: Optional HTTP transport override

    Returns:
        SyncResult for the run
    """
    return SyncOrchestrator(config, progress=progress, transport=transport).run()
