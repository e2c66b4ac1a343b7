"""Pytest configuration and shared fixtures."""

import json
from typing import Dict, List, Optional, Tuple

import httpx
import pytest

from regsync.common.config import RegistryConfig, SyncConfig

SOURCE_URL = "https://source.example.com"
TARGET_URL = "https://target.example.com/npm"


def make_version_doc(name: str, version: str, base_url: str = SOURCE_URL) -> dict:
    """Build a registry version document."""
    filename = f"{name.split('/')[-1]}-{version}.tgz"
    return {
        "_id": f"{name}@{version}",
        "name": name,
        "version": version,
        "description": f"{name} package",
        "main": "index.js",
        "dependencies": {"left-pad": "^1.3.0"},
        "dist": {
            "tarball": f"{base_url}/{name}/-/{filename}",
            "integrity": f"sha512-{version}",
            "shasum": f"sha1-{version}",
        },
    }


def make_package_doc(
    name: str,
    versions: List[str],
    times: Optional[Dict[str, str]] = None,
    base_url: str = SOURCE_URL,
) -> dict:
    """Build a registry package metadata document."""
    return {
        "_id": name,
        "_rev": "3-abc",
        "name": name,
        "versions": {v: make_version_doc(name, v, base_url) for v in versions},
        "time": dict(times or {}),
    }


class FakeRegistry:
    """In-memory registries served through httpx.MockTransport.

    Documents and archives are keyed by host plus decoded path. Publishes
    are recorded and merged into the stored document so a second run sees
    the versions published by the first.
    """

    def __init__(self):
        self.documents: Dict[str, dict] = {}
        self.archives: Dict[str, bytes] = {}
        self.failures: Dict[Tuple[str, str], int] = {}
        self.requests: List[httpx.Request] = []
        self.published: List[Tuple[str, dict]] = []

    @staticmethod
    def key(url: str) -> str:
        parsed = httpx.URL(url)
        return f"{parsed.host}{parsed.path}"

    def add_package(self, base_url: str, doc: dict, archives: bool = True) -> None:
        self.documents[self.key(f"{base_url}/{doc['name']}")] = doc
        if archives:
            for version, version_doc in doc["versions"].items():
                self.archives[self.key(version_doc["dist"]["tarball"])] = (
                    f"tarball {doc['name']} {version}".encode()
                )

    def fail(self, method: str, url: str, status_code: int) -> None:
        self.failures[(method, self.key(url))] = status_code

    def requests_for(self, method: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.url.host}{request.url.path}"

        status = self.failures.get((request.method, key))
        if status is not None:
            return httpx.Response(status, json={"error": "failure"})

        if request.method == "GET":
            if key in self.documents:
                return httpx.Response(200, json=self.documents[key])
            if key in self.archives:
                return httpx.Response(200, content=self.archives[key])
            return httpx.Response(404, json={"error": "not_found"})

        if request.method == "PUT":
            payload = json.loads(request.content)
            self.published.append((str(request.url), payload))
            doc = self.documents.setdefault(
                key, {"_id": payload["name"], "name": payload["name"], "versions": {}, "time": {}}
            )
            doc["versions"].update(payload["versions"])
            return httpx.Response(201, json={"ok": True})

        return httpx.Response(405)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_registry():
    """Empty fake registry pair."""
    return FakeRegistry()


@pytest.fixture
def sync_config():
    """Options bundle pointing at the fake registries."""
    return SyncConfig(
        source=RegistryConfig(url=SOURCE_URL, token="source-token"),
        target=RegistryConfig(url=TARGET_URL + "/", username="ci", password="secret"),
        package="@scope/name",
    )


@pytest.fixture
def sample_config():
    """Sample configuration dictionary."""
    return {
        "source": {"url": SOURCE_URL, "token": "source-token"},
        "target": {"url": TARGET_URL, "username": "ci", "password": "secret"},
        "package": "@scope/name",
        "after": "2023-01-01",
        "only_latest_from_each_major": True,
        "timeout": 15,
        "logging": {"level": "DEBUG"},
    }
