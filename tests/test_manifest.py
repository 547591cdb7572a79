"""Tests for package.json handling."""

import pytest

from nodesecurescan.core.exceptions import ManifestError
from nodesecurescan.scanners.manifest import (
    classify_packages,
    dependency_names,
    load_manifest,
    read_manifest,
)


class TestLoadManifest:
    """Test reading package.json."""

    def test_absent(self, make_project) -> None:
        assert load_manifest(make_project()) is None

    def test_valid(self, make_project) -> None:
        root = make_project(manifest={"name": "app", "dependencies": {"express": "4.18.2"}})
        assert load_manifest(root)["name"] == "app"

    def test_invalid_json_raises(self, make_project) -> None:
        root = make_project({"package.json": "{not json"})
        with pytest.raises(ManifestError, match="Cannot parse"):
            load_manifest(root)

    def test_non_object_raises(self, make_project) -> None:
        root = make_project({"package.json": "[1, 2]"})
        with pytest.raises(ManifestError, match="JSON object"):
            load_manifest(root)

    def test_read_manifest_treats_broken_file_as_absent(self, make_project) -> None:
        root = make_project({"package.json": "{not json"})
        assert read_manifest(root) is None


class TestDependencyNames:
    """Test dependency unions."""

    def test_union_in_declaration_order(self) -> None:
        manifest = {
            "dependencies": {"express": "4", "helmet": "7"},
            "devDependencies": {"jest": "29", "helmet": "7"},
        }
        assert dependency_names(manifest) == ["express", "helmet", "jest"]

    def test_missing_sections(self) -> None:
        assert dependency_names({"name": "x"}) == []
        assert dependency_names(None) == []


class TestClassifyPackages:
    """Test splitting recommended packages into installed and missing."""

    def test_split_keeps_recommended_order(self) -> None:
        manifest = {"dependencies": {"passport": "0.6"}, "devDependencies": {"bcrypt": "5"}}

        inventory = classify_packages(manifest, ["bcrypt", "argon2", "passport", "casl"])

        assert inventory.installed == ["bcrypt", "passport"]
        assert inventory.missing == ["argon2", "casl"]

    def test_no_manifest(self) -> None:
        inventory = classify_packages(None, ["bcrypt", "argon2"])

        assert inventory.installed == []
        assert inventory.missing == ["bcrypt", "argon2"]
