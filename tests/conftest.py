"""Shared fixtures: throwaway Node.js projects built under tmp_path."""

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from nodesecurescan.logging_config import SCAN_LOGGER_NAME

ProjectFactory = Callable[..., Path]


def write_project(
    root: Path,
    files: dict[str, str] | None = None,
    manifest: dict[str, Any] | None = None,
) -> Path:
    """Write *files* (relative path -> content) and an optional package.json under *root*."""
    root.mkdir(parents=True, exist_ok=True)
    for relative_path, content in (files or {}).items():
        path = root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    if manifest is not None:
        (root / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
    return root


@pytest.fixture
def make_project(tmp_path: Path) -> ProjectFactory:
    """Build a project tree inside a fresh directory of tmp_path."""
    counter = iter(range(1000))

    def factory(files: dict[str, str] | None = None, manifest: dict[str, Any] | None = None) -> Path:
        return write_project(tmp_path / f"project{next(counter)}", files, manifest)

    return factory


@pytest.fixture(autouse=True)
def reset_scan_logger():
    """Undo configure_logging() calls made by a test."""
    yield
    logger = logging.getLogger(SCAN_LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
