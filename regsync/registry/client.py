"""HTTP client for the registry metadata/tarball protocol.

Wraps an httpx.Client bound to one RegistryEndpoint. Transport and
status failures surface as httpx exceptions; callers translate them
into the sync error kinds for the side and stage involved.
"""

from typing import Any, Dict, Optional

import httpx

from ..common.logger import get_logger
from .endpoint import RegistryEndpoint
from .metadata import PackageMetadata

logger = get_logger("regsync.client")


def create_http_client(
    timeout: float,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Create the shared HTTP client for a sync run.

    Args:
        timeout: Timeout in seconds applied to every request
        transport: Optional transport override (used by tests)

    Returns:
        httpx.Client instance
    """
    return httpx.Client(
        timeout=timeout,
        follow_redirects=True,
        transport=transport,
    )


def describe_http_error(exc: httpx.HTTPError) -> str:
    """Build a short human readable reason for an HTTP failure."""
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}"
    return f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__


class MetadataDecodeError(ValueError):
    """Raised when a metadata response body is not a package document."""


def decode_document(response: httpx.Response) -> Dict[str, Any]:
    """Decode a metadata response body into a mapping.

    Raises:
        MetadataDecodeError: If the body is not JSON, or the document or its
            versions/time sections are not objects
    """
    try:
        document = response.json()
    except ValueError as e:
        raise MetadataDecodeError("response body is not valid JSON") from e

    if not isinstance(document, dict):
        raise MetadataDecodeError(
            f"expected a JSON object, got {type(document).__name__}"
        )
    for section in ("versions", "time"):
        value = document.get(section)
        if value is not None and not isinstance(value, dict):
            raise MetadataDecodeError(f"\"{section}\" is not a JSON object")
    for version, doc in (document.get("versions") or {}).items():
        if doc is not None and not isinstance(doc, dict):
            raise MetadataDecodeError(f"version {version} is not a JSON object")
    return document


def status_code_of(exc: httpx.HTTPError) -> Optional[int]:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    return None


class RegistryClient:
    """Performs metadata, archive and publish requests against one registry."""

    def __init__(self, endpoint: RegistryEndpoint, http: httpx.Client):
        """Initialize registry client.

        Args:
            endpoint: Registry the requests are addressed to
            http: Shared HTTP client
        """
        self.endpoint = endpoint
        self.http = http

    def get_package(self, package_name: str) -> Optional[PackageMetadata]:
        """Fetch the metadata document of a package.

        Args:
            package_name: Full package name, scope included

        Returns:
            PackageMetadata, or None if the registry answered 404

        Raises:
            httpx.HTTPError: On transport failure or any other error status
            MetadataDecodeError: If the body is not a package document
        """
        url = self.endpoint.package_url(package_name)
        logger.debug(f"GET {url}")
        response = self.http.get(url, headers=self.endpoint.authorization_header())

        if response.status_code == 404:
            return None
        response.raise_for_status()

        return PackageMetadata.from_dict(decode_document(response), package_name)

    def download_archive(self, tarball_url: str) -> bytes:
        """Download the raw bytes of a version archive.

        Args:
            tarball_url: Archive reference from the version's dist block

        Returns:
            Archive bytes

        Raises:
            httpx.HTTPError: On transport failure or error status
        """
        logger.debug(f"GET {tarball_url}")
        response = self.http.get(
            tarball_url, headers=self.endpoint.authorization_header()
        )
        response.raise_for_status()
        return response.content

    def publish(self, package_name: str, payload: Dict[str, Any]) -> httpx.Response:
        """Upload a publish payload for a package.

        Args:
            package_name: Full package name, scope included
            payload: Publish document with embedded attachment

        Returns:
            Registry response

        Raises:
            httpx.HTTPError: On transport failure or error status
        """
        url = self.endpoint.package_url(package_name)
        headers = {"Content-Type": "application/json"}
        headers.update(self.endpoint.authorization_header())

        logger.debug(f"PUT {url}")
        response = self.http.put(url, json=payload, headers=headers)
        response.raise_for_status()
        return response
