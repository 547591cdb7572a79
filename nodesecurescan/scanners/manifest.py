"""Reading package.json and classifying recommended packages."""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..constants import MANIFEST_FILE
from ..core.exceptions import ManifestError

logger = logging.getLogger(__name__)


def load_manifest(project_root: str | Path) -> dict[str, Any] | None:
    """Load ``package.json`` from *project_root*.

    Returns:
        The parsed manifest, or None when the file does not exist.

    Raises:
        ManifestError: If the file exists but is unreadable or not a JSON object.
    """
    path = Path(project_root) / MANIFEST_FILE
    if not path.is_file():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestError(f"Cannot parse {path}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(f"{path} does not contain a JSON object")
    return data


def read_manifest(project_root: str | Path) -> dict[str, Any] | None:
    """Load ``package.json``, treating a broken manifest as absent."""
    try:
        return load_manifest(project_root)
    except ManifestError as e:
        logger.warning(str(e), extra={"event": "manifest_invalid", "error": str(e)})
        return None


def dependency_names(manifest: dict[str, Any] | None) -> list[str]:
    """Union of ``dependencies`` and ``devDependencies`` names, in declaration order."""
    if not manifest:
        return []

    names: dict[str, None] = {}
    for section in ("dependencies", "devDependencies"):
        declared = manifest.get(section)
        if isinstance(declared, dict):
            names.update(dict.fromkeys(declared))
    return list(names)


@dataclass(frozen=True)
class PackageInventory:
    """Recommended packages split into installed and missing."""

    installed: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)


def classify_packages(manifest: dict[str, Any] | None, recommended: Iterable[str]) -> PackageInventory:
    """Split *recommended* into packages the manifest declares and those it lacks.

    Both lists keep the order of *recommended*. Without a manifest nothing
    is installed and every recommended package is missing.
    """
    declared = set(dependency_names(manifest))
    installed: list[str] = []
    missing: list[str] = []
    for package in recommended:
        (installed if package in declared else missing).append(package)
    return PackageInventory(installed=installed, missing=missing)
