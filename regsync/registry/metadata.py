"""Package metadata documents served by a registry.

These records mirror the JSON shapes returned by a registry for
``GET <base>/<package>``. They are read-only snapshots: the raw
version document is kept so every field can be passed through to
the target registry unchanged.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..common.logger import get_logger

logger = get_logger("regsync.metadata")


@dataclass(frozen=True)
class DistInfo:
    """Archive location and content-integrity descriptors of a version."""

    tarball: str
    integrity: Optional[str] = None
    shasum: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DistInfo":
        return cls(
            tarball=data.get("tarball", ""),
            integrity=data.get("integrity"),
            shasum=data.get("shasum"),
        )


@dataclass(frozen=True)
class VersionRecord:
    """A single published version of a package."""

    name: str
    version: str
    description: str
    dist: DistInfo
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, version_key: str, data: Dict[str, Any], package_name: str) -> "VersionRecord":
        """Build a record from a version document.

        The mapping key is authoritative for the version string.

        Args:
            version_key: Key under which the version appears in ``versions``
            data: Version document
            package_name: Name of the owning package (fallback for ``name``)

        Returns:
            VersionRecord instance
        """
        declared = data.get("version")
        if declared is not None and declared != version_key:
            logger.warning(
                f"Version document for {package_name} declares {declared} "
                f"under key {version_key}; using {version_key}"
            )

        return cls(
            name=data.get("name") or package_name,
            version=version_key,
            description=data.get("description") or "",
            dist=DistInfo.from_dict(data.get("dist") or {}),
            raw=dict(data),
        )


@dataclass(frozen=True)
class PackageMetadata:
    """Package metadata document for one (registry, package) pair."""

    name: str
    versions: Dict[str, VersionRecord] = field(default_factory=dict)
    time: Dict[str, str] = field(default_factory=dict)
    package_id: Optional[str] = None
    rev: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], package_name: str) -> "PackageMetadata":
        """Parse a registry metadata document.

        Args:
            data: Decoded JSON document
            package_name: Requested package name (fallback for ``name``)

        Returns:
            PackageMetadata instance
        """
        name = data.get("name") or package_name
        versions = {
            key: VersionRecord.from_dict(key, doc or {}, name)
            for key, doc in (data.get("versions") or {}).items()
        }
        return cls(
            name=name,
            versions=versions,
            time=dict(data.get("time") or {}),
            package_id=data.get("_id"),
            rev=data.get("_rev") or data.get("rev"),
        )

    @classmethod
    def empty(cls, package_name: str) -> "PackageMetadata":
        """Document for a package that does not exist in a registry yet."""
        return cls(name=package_name)

    @property
    def version_keys(self) -> set:
        return set(self.versions)

    def published_at(self, version: str) -> Optional[datetime]:
        """Get the recorded publish timestamp of a version.

        Args:
            version: Version string

        Returns:
            Aware datetime, or None when no (parseable) timestamp is recorded
        """
        value = self.time.get(version)
        if not value:
            return None
        return parse_timestamp(value)


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO 8601 registry timestamp such as 2021-02-20T15:42:16.891Z."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.warning(f"Ignoring unparseable publish time: {value}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
