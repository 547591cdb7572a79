"""Cookie flags, session cookies and client-side token storage."""

from collections.abc import Sequence
from pathlib import Path

from ..corpus import SourceFile
from ..manifest import classify_packages, read_manifest
from ..matcher import PatternMatcher
from ..models import CookieConfigurations, CookieResult, InstalledPackages
from ..patterns import (
    CLIENT_STORAGE_RULES,
    COOKIE_PACKAGES,
    COOKIE_PARSER_PROBE,
    COOKIE_RULES,
    SESSION_SETUP_PROBE,
    Rule,
)
from .base import DomainScanner

COOKIE_BEST_PRACTICES = [
    "Always set httpOnly on sensitive cookies",
    "Enable the secure attribute in production",
    "Set sameSite to 'strict' or 'lax'",
    "Limit the lifetime of authentication cookies",
    "Prefer httpOnly cookies over localStorage/sessionStorage for tokens",
    "Define a clear cookie policy",
]


class CookieScanner(DomainScanner):
    domain = "cookies"

    def __init__(
        self,
        cookie_rules: Sequence[Rule] = COOKIE_RULES,
        storage_rules: Sequence[Rule] = CLIENT_STORAGE_RULES,
        packages: Sequence[str] = COOKIE_PACKAGES,
        cookie_parser_probe: Rule = COOKIE_PARSER_PROBE,
        session_probe: Rule = SESSION_SETUP_PROBE,
        matcher: PatternMatcher | None = None,
    ) -> None:
        super().__init__(matcher)
        self.cookie_rules = tuple(cookie_rules)
        self.storage_rules = tuple(storage_rules)
        self.packages = tuple(packages)
        self.cookie_parser_probe = cookie_parser_probe
        self.session_probe = session_probe

    def _scan(self, project_root: Path) -> CookieResult:
        corpus = self.load_corpus(project_root)
        cookies = self.collect_issues(corpus, self.cookie_rules)
        management = self.collect_issues(corpus, self.storage_rules)

        installed = classify_packages(read_manifest(project_root), self.packages).installed

        configurations = CookieConfigurations()
        if "cookie-parser" in installed:
            configurations.cookie_parser = self._first_context(corpus, self.cookie_parser_probe)
        if "express-session" in installed:
            configurations.session = self._first_context(corpus, self.session_probe)

        return CookieResult(
            cookies=cookies,
            management=management,
            packages=InstalledPackages(installed=installed),
            configurations=configurations,
            best_practices=list(COOKIE_BEST_PRACTICES),
            total=len(cookies) + len(management),
        )

    def _first_context(self, corpus: list[SourceFile], rule: Rule) -> str | None:
        matches = self.matcher.match_corpus(corpus, rule)
        return matches[0].snippet if matches else None
