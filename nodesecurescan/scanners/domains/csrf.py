"""CSRF protection analysis."""

from collections.abc import Sequence
from pathlib import Path

from ..manifest import dependency_names, read_manifest
from ..matcher import PatternMatcher
from ..models import BestPractice, CsrfProtection, CsrfResult
from ..patterns import CSRF_RULES, CSRF_TOKEN_PROBE, HELMET_CONFIG_PROBE, Rule
from .base import DomainScanner

CSRF_BEST_PRACTICES = [
    BestPractice(name="csurf", description="CSRF protection middleware for Express"),
    BestPractice(
        name="double-submit-cookie",
        description="Send the same token in a cookie and in a request header (double submit cookie)",
    ),
    BestPractice(name="SameSite", description="Set SameSite=Strict on session cookies"),
    BestPractice(name="X-CSRF-Token", description="Send the CSRF token in a custom header on AJAX requests"),
]


class CsrfScanner(DomainScanner):
    domain = "csrf"

    def __init__(
        self,
        rules: Sequence[Rule] = CSRF_RULES,
        helmet_config_probe: Rule = HELMET_CONFIG_PROBE,
        token_probe: Rule = CSRF_TOKEN_PROBE,
        matcher: PatternMatcher | None = None,
    ) -> None:
        super().__init__(matcher)
        self.rules = tuple(rules)
        self.helmet_config_probe = helmet_config_probe
        self.token_probe = token_probe

    def _scan(self, project_root: Path) -> CsrfResult:
        corpus = self.load_corpus(project_root)
        issues = self.collect_issues(corpus, self.rules)

        declared = set(dependency_names(read_manifest(project_root)))
        helmet_installed = "helmet" in declared

        protection = CsrfProtection(
            csurf_installed="csurf" in declared,
            helmet_installed=helmet_installed,
            # helmet({ ... }) only counts when helmet is a declared dependency
            helmet_configured=helmet_installed and self.is_present(corpus, self.helmet_config_probe),
            csrf_tokens_used=self.is_present(corpus, self.token_probe),
        )

        return CsrfResult(
            issues=issues,
            protection=protection,
            best_practices=[p.model_copy() for p in CSRF_BEST_PRACTICES],
            total=len(issues),
        )
