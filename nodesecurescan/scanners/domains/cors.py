"""CORS configuration analysis."""

import re
from collections.abc import Sequence
from pathlib import Path

from ...scoring import cors_score
from ..manifest import dependency_names, read_manifest
from ..matcher import Match, PatternMatcher
from ..models import CorsConfiguration, CorsResult, CorsStatus
from ..patterns import (
    CORS_MANUAL_HEADER_PROBE,
    CORS_RULES,
    CORS_USAGE_PROBE,
    CORS_WILDCARD_RULE_ID,
    HELMET_PROBE,
    Rule,
    Severity,
)
from .base import DomainScanner

NOT_DETECTED = "Not detected"

_ORIGIN_RE = re.compile(r"origin\s*:\s*([^,}]+)", re.IGNORECASE)
_CREDENTIALS_RE = re.compile(r"credentials\s*:\s*([^,}]+)", re.IGNORECASE)

CORS_RECOMMENDATIONS = [
    "Restrict CORS origins to specific domains",
    "Never combine origin * with credentials: true",
    "List the allowed HTTP methods explicitly",
    "Set an appropriate maxAge for preflight requests",
]

CORS_RECOMMENDED_CONFIG = """
app.use(cors({
  origin: ['https://example.com', 'https://app.example.com'],
  methods: ['GET', 'POST', 'PUT', 'DELETE'],
  allowedHeaders: ['Content-Type', 'Authorization'],
  exposedHeaders: ['Content-Range', 'X-Content-Range'],
  credentials: true,
  maxAge: 3600
}));"""


def _setting(pattern: re.Pattern[str], context: str) -> str:
    found = pattern.search(context)
    return found.group(1).strip() if found else NOT_DETECTED


class CorsScanner(DomainScanner):
    """Finds CORS usage and permissive CORS settings."""

    domain = "cors"

    def __init__(
        self,
        rules: Sequence[Rule] = CORS_RULES,
        usage_probe: Rule = CORS_USAGE_PROBE,
        manual_header_probe: Rule = CORS_MANUAL_HEADER_PROBE,
        helmet_probe: Rule = HELMET_PROBE,
        wildcard_rule_id: str = CORS_WILDCARD_RULE_ID,
        matcher: PatternMatcher | None = None,
    ) -> None:
        super().__init__(matcher)
        self.rules = tuple(rules)
        self.usage_probe = usage_probe
        self.manual_header_probe = manual_header_probe
        self.helmet_probe = helmet_probe
        self.wildcard_rule_id = wildcard_rule_id

    def _scan(self, project_root: Path) -> CorsResult:
        installed = "cors" in dependency_names(read_manifest(project_root))

        corpus = self.load_corpus(project_root)
        usages = self.matcher.match_corpus(corpus, self.usage_probe)
        manual_headers = self.matcher.match_corpus(corpus, self.manual_header_probe)
        issues = self.collect_issues(corpus, self.rules)

        wildcard_origin = any(issue.rule_id == self.wildcard_rule_id for issue in issues)
        if usages:
            status = CorsStatus.PERMISSIVE if wildcard_origin else CorsStatus.RESTRICTED
        elif manual_headers:
            status = CorsStatus.MANUAL
        else:
            status = CorsStatus.NOT_DETECTED

        detected = bool(usages or manual_headers)
        high = sum(1 for issue in issues if issue.severity == Severity.HIGH)
        medium = sum(1 for issue in issues if issue.severity == Severity.MEDIUM)

        return CorsResult(
            installed=installed,
            detected=detected,
            status=status,
            issues=issues,
            configurations=[self._configuration(match) for match in usages],
            manual_headers=bool(manual_headers),
            helmet_used=self.is_present(corpus, self.helmet_probe),
            security_score=cors_score(detected, wildcard_origin, high, medium),
            recommendations=list(CORS_RECOMMENDATIONS),
            recommended_config=CORS_RECOMMENDED_CONFIG,
        )

    @staticmethod
    def _configuration(match: Match) -> CorsConfiguration:
        context = match.snippet or ""
        return CorsConfiguration(
            file=match.file,
            line=match.line,
            origin=_setting(_ORIGIN_RE, context),
            credentials=_setting(_CREDENTIALS_RE, context),
            context=context,
        )
