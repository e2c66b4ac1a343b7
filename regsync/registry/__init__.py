"""Registry access for the package metadata/tarball protocol.

Provides endpoint configuration, typed views of registry metadata
documents, and the HTTP client used to read from and publish to a
registry.
"""

from .endpoint import RegistryEndpoint
from .metadata import DistInfo, PackageMetadata, VersionRecord
from .client import RegistryClient, create_http_client

__all__ = [
    "RegistryEndpoint",
    "DistInfo",
    "PackageMetadata",
    "VersionRecord",
    "RegistryClient",
    "create_http_client",
]
