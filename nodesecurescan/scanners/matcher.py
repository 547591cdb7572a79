"""Pattern matcher: applies a Rule to a corpus of source files."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .corpus import CorpusResolver, SourceFile
from .patterns import Rule

logger = logging.getLogger(__name__)


class MatchMode(str, Enum):
    """How many matches a rule produces per file.

    ``PRESENCE_ONLY`` reports whether a rule fires in a file: one Match per
    (file, rule) pair no matter how often the pattern occurs. It is what
    every reported issue uses.

    ``ALL_OCCURRENCES`` yields one Match per non-overlapping occurrence and
    is only used where every captured value is needed (environment variable
    names, route declarations).
    """

    PRESENCE_ONLY = "presence_only"
    ALL_OCCURRENCES = "all_occurrences"


@dataclass(frozen=True)
class MatchResult:
    """Outcome of evaluating a rule against a piece of text."""

    matched: bool
    extracted: int | str | None = None


@dataclass(frozen=True)
class Match:
    """A rule firing in one file."""

    file: str
    line: int | None
    snippet: str | None
    rule_id: str
    extracted: int | str | None = None
    groups: tuple[str | None, ...] = ()


def _coerce(value: str | None) -> int | str | None:
    if value is not None and value.isdigit():
        return int(value)
    return value


def _extract(rule: Rule, found: re.Match[str]) -> int | str | None:
    if rule.extract_group is None:
        return None
    return _coerce(found.group(rule.extract_group))


def locate_line(lines: list[str], matched_text: str) -> tuple[int | None, str | None]:
    """Find the first line containing *matched_text*.

    Returns a 1-based line number and the stripped line, or ``(None, None)``
    when no single line contains the text (multi-line matches).
    """
    if "\n" in matched_text:
        return None, None
    for index, line in enumerate(lines):
        if matched_text in line:
            return index + 1, line.strip()
    return None, None


class PatternMatcher:
    """Evaluates rules against text, files and whole projects."""

    def __init__(self, resolver: CorpusResolver | None = None):
        self.resolver = resolver or CorpusResolver()

    def evaluate(self, rule: Rule, text: str) -> MatchResult:
        """Evaluate *rule* against *text*, extracting its capture group."""
        found = rule.regex.search(text)
        if found is None:
            return MatchResult(matched=False)
        return MatchResult(matched=True, extracted=_extract(rule, found))

    def match_file(
        self, source: SourceFile, rule: Rule, mode: MatchMode = MatchMode.PRESENCE_ONLY
    ) -> list[Match]:
        if mode is MatchMode.PRESENCE_ONLY:
            found = rule.regex.search(source.content)
            if found is None:
                return []
            line, snippet = locate_line(source.lines, found.group(0))
            return [
                Match(
                    file=source.relative_path,
                    line=line,
                    snippet=snippet,
                    rule_id=rule.rule_id,
                    extracted=_extract(rule, found),
                    groups=found.groups(),
                )
            ]

        lines = source.lines
        matches: list[Match] = []
        for found in rule.regex.finditer(source.content):
            index = source.content.count("\n", 0, found.start())
            matches.append(
                Match(
                    file=source.relative_path,
                    line=index + 1,
                    snippet=lines[index].strip(),
                    rule_id=rule.rule_id,
                    extracted=_extract(rule, found),
                    groups=found.groups(),
                )
            )
        return matches

    def match_corpus(
        self,
        corpus: Iterable[SourceFile],
        rule: Rule,
        mode: MatchMode = MatchMode.PRESENCE_ONLY,
    ) -> list[Match]:
        """Apply *rule* to every file of *corpus*, in corpus order."""
        matches: list[Match] = []
        for source in corpus:
            matches.extend(self.match_file(source, rule, mode))

        if matches:
            logger.debug(
                f"Rule {rule.rule_id} matched {len(matches)} time(s)",
                extra={"event": "rule_matched", "rule_id": rule.rule_id, "issues": len(matches)},
            )
        return matches

    def match(
        self,
        project_root: str | Path,
        glob_pattern: str,
        rule: Rule,
        mode: MatchMode = MatchMode.PRESENCE_ONLY,
    ) -> list[Match]:
        """Resolve *glob_pattern* under *project_root* and apply *rule*.

        Args:
            project_root: Project directory to scan.
            glob_pattern: Files to consider, e.g. ``"**/*.{js,ts}"``.
            rule: The rule to apply.
            mode: ``PRESENCE_ONLY`` (default) or ``ALL_OCCURRENCES``.

        Returns:
            Matches in corpus order.
        """
        return self.match_corpus(self.resolver.resolve(project_root, glob_pattern), rule, mode)
