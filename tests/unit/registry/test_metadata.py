"""Tests for registry metadata records."""

from datetime import datetime, timezone

from regsync.registry.metadata import PackageMetadata, VersionRecord, parse_timestamp


class TestPackageMetadata:
    """Tests for PackageMetadata parsing."""

    def test_from_dict(self):
        doc = {
            "_id": "@scope/name",
            "_rev": "7-abc",
            "name": "@scope/name",
            "versions": {
                "1.0.0": {
                    "name": "@scope/name",
                    "version": "1.0.0",
                    "description": "A package",
                    "dist": {
                        "tarball": "https://r.example.com/@scope/name/-/name-1.0.0.tgz",
                        "integrity": "sha512-xyz",
                        "shasum": "abc",
                    },
                }
            },
            "time": {"1.0.0": "2021-02-20T15:42:16.891Z"},
        }
        metadata = PackageMetadata.from_dict(doc, "@scope/name")

        assert metadata.name == "@scope/name"
        assert metadata.package_id == "@scope/name"
        assert metadata.rev == "7-abc"
        assert metadata.version_keys == {"1.0.0"}

        record = metadata.versions["1.0.0"]
        assert record.description == "A package"
        assert record.dist.integrity == "sha512-xyz"
        assert record.dist.shasum == "abc"

    def test_missing_sections(self):
        """Test that a document without versions or time is empty."""
        metadata = PackageMetadata.from_dict({"name": "pkg"}, "pkg")

        assert metadata.versions == {}
        assert metadata.time == {}

    def test_empty(self):
        metadata = PackageMetadata.empty("pkg")
        assert metadata.name == "pkg"
        assert metadata.version_keys == set()

    def test_published_at(self):
        metadata = PackageMetadata.from_dict(
            {"name": "pkg", "versions": {}, "time": {"1.0.0": "2021-02-20T15:42:16.891Z"}},
            "pkg",
        )

        published = metadata.published_at("1.0.0")
        assert published == datetime(2021, 2, 20, 15, 42, 16, 891000, tzinfo=timezone.utc)
        assert metadata.published_at("2.0.0") is None


class TestVersionRecord:
    """Tests for VersionRecord parsing."""

    def test_key_is_authoritative(self):
        """Test that the mapping key wins over the declared version."""
        record = VersionRecord.from_dict("1.0.1", {"name": "pkg", "version": "1.0.0"}, "pkg")
        assert record.version == "1.0.1"

    def test_defaults(self):
        """Test fallbacks for missing name, description and dist."""
        record = VersionRecord.from_dict("1.0.0", {}, "pkg")

        assert record.name == "pkg"
        assert record.description == ""
        assert record.dist.tarball == ""
        assert record.dist.integrity is None

    def test_raw_is_kept(self):
        doc = {"name": "pkg", "version": "1.0.0", "main": "index.js", "dist": {}}
        record = VersionRecord.from_dict("1.0.0", doc, "pkg")
        assert record.raw["main"] == "index.js"


class TestParseTimestamp:
    """Tests for timestamp parsing."""

    def test_zulu(self):
        assert parse_timestamp("2020-01-01T00:00:00Z") == datetime(2020, 1, 1, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_timestamp("2020-01-01T00:00:00").tzinfo == timezone.utc

    def test_invalid(self):
        assert parse_timestamp("not a date") is None
