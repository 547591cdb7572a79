"""File corpus resolution: glob expansion and file reading for a project tree."""

import fnmatch
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from ..constants import EXCLUDED_DIRS, MAX_CORPUS_FILES, MAX_FILE_SIZE_BYTES
from ..core.exceptions import CorpusError

logger = logging.getLogger(__name__)

_BRACE_RE = re.compile(r"\{([^{}]*)\}")


@dataclass(frozen=True)
class SourceFile:
    """A file of the scanned project and its text content."""

    relative_path: str
    content: str

    @property
    def lines(self) -> list[str]:
        return self.content.split("\n")


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternations in a glob pattern.

    ``"**/*.{js,ts}"`` becomes ``["**/*.js", "**/*.ts"]``. Nested groups are
    expanded left to right; a pattern without braces is returned unchanged.
    """
    match = _BRACE_RE.search(pattern)
    if not match:
        return [pattern]

    expanded: list[str] = []
    head, tail = pattern[: match.start()], pattern[match.end():]
    for alternative in match.group(1).split(","):
        expanded.extend(expand_braces(f"{head}{alternative}{tail}"))
    return expanded


def _match_segments(parts: list[str], segments: list[str]) -> bool:
    if not segments:
        return not parts
    head, rest = segments[0], segments[1:]
    if head == "**":
        return any(_match_segments(parts[i:], rest) for i in range(len(parts) + 1))
    return bool(parts) and fnmatch.fnmatchcase(parts[0], head) and _match_segments(parts[1:], rest)


def glob_match(relative_path: str, pattern: str) -> bool:
    """Whether a POSIX *relative_path* matches a brace-free glob *pattern*.

    ``**`` stands for any number of directories, including none. ``*``,
    ``?`` and ``[...]`` are matched within a single path segment.
    """
    return _match_segments(relative_path.split("/"), pattern.split("/"))


def _matches_any(relative_path: str, patterns: list[str]) -> bool:
    return any(glob_match(relative_path, pattern) for pattern in patterns)


def _log_walk_error(error: OSError) -> None:
    logger.warning(
        f"Skipping {error.filename}: {error}",
        extra={"event": "file_skipped", "file": str(error.filename), "error": str(error)},
    )


class CorpusResolver:
    """Resolves a glob against a project root into readable source files.

    The walk is sorted so that the same tree always yields the same order.
    Excluded directories (``node_modules``, build outputs) are pruned, and
    files that are too large or unreadable are skipped.
    """

    def __init__(
        self,
        excluded_dirs: frozenset[str] = EXCLUDED_DIRS,
        max_file_size: int = MAX_FILE_SIZE_BYTES,
        max_files: int = MAX_CORPUS_FILES,
    ) -> None:
        self.excluded_dirs = excluded_dirs
        self.max_file_size = max_file_size
        self.max_files = max_files

    def list_files(self, project_root: str | Path, glob_pattern: str) -> list[Path]:
        """List absolute paths under *project_root* matching *glob_pattern*."""
        root = Path(project_root)
        if not root.is_dir():
            logger.debug(f"Project root {root} is not a directory, empty corpus")
            return []

        patterns = expand_braces(glob_pattern)
        found: list[Path] = []

        for dirpath, dirnames, filenames in os.walk(root, onerror=_log_walk_error):
            dirnames[:] = sorted(d for d in dirnames if d not in self.excluded_dirs)

            for name in sorted(filenames):
                path = Path(dirpath) / name
                relative = path.relative_to(root).as_posix()
                if not _matches_any(relative, patterns):
                    continue

                if len(found) >= self.max_files:
                    logger.warning(
                        f"Limiting corpus to {self.max_files} files in {root}",
                        extra={"event": "corpus_truncated"},
                    )
                    return found
                found.append(path)

        return found

    def load(self, path: Path) -> str:
        """Read a file as text.

        Raises:
            CorpusError: If the file is too large or cannot be read.
        """
        try:
            size = path.stat().st_size
            if size > self.max_file_size:
                raise CorpusError(f"{path} is larger than {self.max_file_size} bytes")
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise CorpusError(f"Cannot read {path}: {e}") from e

    def read(self, path: Path) -> str | None:
        """Read a file as text, returning None when it must be skipped."""
        try:
            return self.load(path)
        except CorpusError as e:
            logger.warning(
                f"Skipping {path}: {e}",
                extra={"event": "file_skipped", "file": str(path), "error": str(e)},
            )
            return None

    def resolve(self, project_root: str | Path, glob_pattern: str) -> list[SourceFile]:
        """Resolve *glob_pattern* under *project_root* into source files.

        Args:
            project_root: Project directory. A missing root yields an empty list.
            glob_pattern: Glob relative to the root, e.g. ``"**/*.{js,ts}"``.

        Returns:
            Files in stable walk order, with paths relative to the root.
        """
        root = Path(project_root)
        corpus: list[SourceFile] = []

        for path in self.list_files(root, glob_pattern):
            content = self.read(path)
            if content is None:
                continue
            corpus.append(SourceFile(path.relative_to(root).as_posix(), content))

        return corpus


_default_resolver = CorpusResolver()


def resolve(project_root: str | Path, glob_pattern: str) -> list[SourceFile]:
    """Resolve a corpus with the default limits."""
    return _default_resolver.resolve(project_root, glob_pattern)
