"""Base class shared by the domain aggregators."""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path

from ...constants import SOURCE_GLOB
from ...core.exceptions import DomainScanError
from ..corpus import SourceFile
from ..matcher import MatchMode, PatternMatcher
from ..models import DomainResult, Issue
from ..patterns import Rule

logger = logging.getLogger(__name__)


class DomainScanner(ABC):
    """A scanner for one security domain.

    Subclasses implement ``_scan``. Rule tables are passed to the
    constructor so tests can substitute their own; they default to the
    built-in tables of each domain.
    """

    domain: str = ""
    glob_pattern: str = SOURCE_GLOB

    def __init__(self, matcher: PatternMatcher | None = None) -> None:
        self.matcher = matcher or PatternMatcher()

    def scan(self, project_root: str | Path) -> DomainResult:
        """Scan *project_root* and return this domain's result.

        Raises:
            DomainScanError: If the project tree cannot be accessed.
        """
        root = Path(project_root)
        logger.debug(
            f"Scanning {self.domain} in {root}",
            extra={"event": "domain_started", "domain": self.domain},
        )
        start = time.perf_counter()

        try:
            result = self._scan(root)
        except OSError as e:
            raise DomainScanError(self.domain, str(e)) from e

        logger.debug(
            f"Finished {self.domain} scan",
            extra={
                "event": "domain_finished",
                "domain": self.domain,
                "duration": round(time.perf_counter() - start, 3),
            },
        )
        return result

    @abstractmethod
    def _scan(self, project_root: Path) -> DomainResult:
        """Domain-specific scan logic."""

    def load_corpus(self, project_root: Path, glob_pattern: str | None = None) -> list[SourceFile]:
        return self.matcher.resolver.resolve(project_root, glob_pattern or self.glob_pattern)

    def is_present(self, corpus: list[SourceFile], rule: Rule) -> bool:
        """Whether *rule* fires in at least one file of *corpus*."""
        return any(rule.regex.search(source.content) for source in corpus)

    def collect_issues(self, corpus: list[SourceFile], rules: Iterable[Rule]) -> list[Issue]:
        """Turn matches of *rules* into issues, in rule then corpus order.

        Matches whose extracted value lies inside a rule's safe range are
        dropped.
        """
        issues: list[Issue] = []
        for rule in rules:
            for match in self.matcher.match_corpus(corpus, rule, MatchMode.PRESENCE_ONLY):
                if not rule.should_report(match.extracted):
                    continue
                issues.append(Issue.from_match(match, rule))
        return issues
