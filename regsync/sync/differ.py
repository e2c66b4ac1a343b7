"""Version set diffing between a source and a target registry.

Reduces two package metadata documents to the ordered list of versions
that must be copied, applying the optional "latest per major" filter.
The recency cutoff is evaluated per item while the list is consumed.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

import semver

from ..common.config import EPOCH
from ..common.logger import get_logger
from ..registry.metadata import PackageMetadata
from .base import TransferWorkItem

logger = get_logger("regsync.differ")


def parse_version(value: str) -> Optional[semver.Version]:
    """Parse a version string, or return None if it is not valid semver.

    Surrounding whitespace and a single leading ``v`` or ``=`` are
    ignored, as npm does for strict versions.
    """
    text = value.strip()
    if text[:1] in ("v", "="):
        text = text[1:]
    try:
        return semver.Version.parse(text)
    except (TypeError, ValueError):
        return None


def latest_per_major(versions: Iterable[str]) -> Dict[int, str]:
    """Find the highest version for every major version number.

    Strings that are not valid semver are ignored.

    Args:
        versions: Version strings

    Returns:
        Mapping of major number to the highest version string
    """
    latest: Dict[int, str] = {}
    parsed_latest: Dict[int, semver.Version] = {}

    for version in versions:
        parsed = parse_version(version)
        if parsed is None:
            continue
        current = parsed_latest.get(parsed.major)
        if current is None or parsed > current:
            parsed_latest[parsed.major] = parsed
            latest[parsed.major] = version

    return latest


def sort_versions(versions: Iterable[str]) -> List[str]:
    """Sort version strings ascending by semantic version precedence.

    Invalid version strings are placed after all valid ones, in
    lexicographic order.
    """
    valid = []
    invalid = []
    for version in versions:
        parsed = parse_version(version)
        if parsed is None:
            invalid.append(version)
        else:
            valid.append((parsed, version))

    if invalid:
        logger.warning(
            f"Not valid semantic versions, ordering last: {', '.join(sorted(invalid))}"
        )

    valid.sort(key=lambda pair: (pair[0], pair[1]))
    return [version for _, version in valid] + sorted(invalid)


class VersionSetDiffer:
    """Decides which versions must move from source to target."""

    def __init__(
        self,
        after: datetime = EPOCH,
        only_latest_from_each_major: bool = False,
    ):
        """Initialize differ.

        Args:
            after: Versions published strictly before this time are skipped
            only_latest_from_each_major: Keep only the highest version of each major
        """
        self.after = after
        self.only_latest_from_each_major = only_latest_from_each_major

    def candidate_versions(
        self,
        source: PackageMetadata,
        target: Optional[PackageMetadata],
    ) -> List[str]:
        """Compute the ordered versions missing from the target.

        Args:
            source: Source package metadata
            target: Target package metadata, or None if the package is absent

        Returns:
            Version strings in ascending semantic version order
        """
        existing = target.version_keys if target is not None else set()
        candidates = [v for v in source.versions if v not in existing]

        if self.only_latest_from_each_major:
            # Computed over every source version, not just the candidates
            latest = latest_per_major(source.versions)
            selected = set(latest.values())
            candidates = [v for v in candidates if v in selected]

        return sort_versions(candidates)

    def diff(
        self,
        source: PackageMetadata,
        target: Optional[PackageMetadata],
    ) -> List[TransferWorkItem]:
        """Build the ordered work list for a sync run.

        Args:
            source: Source package metadata
            target: Target package metadata, or None if the package is absent

        Returns:
            TransferWorkItem list (empty when there is nothing to copy)
        """
        return [
            TransferWorkItem(
                version=version,
                record=source.versions[version],
                published_at=source.published_at(version),
            )
            for version in self.candidate_versions(source, target)
        ]

    def skip_reason(self, item: TransferWorkItem) -> Optional[str]:
        """Check the recency cutoff for a work item.

        Args:
            item: Work item about to be transferred

        Returns:
            Reason string if the item must be skipped, otherwise None
        """
        if item.published_at is None or item.published_at >= self.after:
            return None

        return (
            f"It was published on {item.published_at.date().isoformat()} "
            f"which is before {self.after.date().isoformat()}"
        )
