"""Rate limiting detection and sensitive endpoint coverage."""

import re
from collections.abc import Sequence
from pathlib import Path

from ...scoring import rate_limit_score
from ..corpus import SourceFile
from ..manifest import classify_packages, read_manifest
from ..matcher import MatchMode, PatternMatcher
from ..models import (
    DetectedImplementations,
    Implementation,
    Occurrence,
    PackageList,
    RateLimitIssues,
    RateLimitResult,
    RateLimitStatus,
    UnprotectedEndpoint,
)
from ..patterns import (
    RATE_LIMIT_CONFIG_RULES,
    RATE_LIMIT_IMPLEMENTATION_RULES,
    RATE_LIMIT_PACKAGES,
    ROUTE_DECLARATION_RULE,
    SENSITIVE_PATHS,
    Rule,
)
from .base import DomainScanner

RATE_LIMIT_RECOMMENDATIONS = [
    "Install express-rate-limit for baseline protection",
    "Use different limiters per endpoint, stricter for authentication",
    "Define a global rate limit for all requests",
    "Use a distributed store such as Redis when running several instances",
    "Make sure every sensitive endpoint has a strict rate limit",
]

RECOMMENDED_IMPLEMENTATION = """
const rateLimit = require('express-rate-limit');
const RedisStore = require('rate-limit-redis');

// Global rate limiter
const globalLimiter = rateLimit({
  windowMs: 15 * 60 * 1000, // 15 minutes
  max: 100, // 100 requests per IP
  standardHeaders: true,
  legacyHeaders: false,
  message: 'Too many requests, please try again later'
});

// Brute-force protection for authentication
const loginLimiter = rateLimit({
  windowMs: 60 * 60 * 1000, // 1 hour
  max: 5, // 5 attempts per IP
  standardHeaders: true,
  legacyHeaders: false,
  message: 'Too many login attempts, please try again in an hour'
});

app.use(globalLimiter);
app.use('/api/auth/login', loginLimiter);
"""


def is_sensitive_path(path: str, sensitive_paths: Sequence[str] = SENSITIVE_PATHS) -> bool:
    return any(path == sensitive or f"{sensitive}/" in path for sensitive in sensitive_paths)


def protection_rule(path: str, method: str) -> Rule:
    """Rule matching a rate limiter mounted on *path* for *method*."""
    return Rule(
        rule_id="RL-PROTECT",
        name=f"Rate limiter on {method} {path}",
        pattern=(
            rf"app\.(?:use|{method.lower()})\(\s*['\"`]{re.escape(path)}['\"`]\s*,\s*"
            r"(?:rateLimit|limiter)"
        ),
        tags=("probe",),
    )


class RateLimitScanner(DomainScanner):
    """Detects rate limiters, weak limiter settings and unprotected routes."""

    domain = "rateLimit"

    def __init__(
        self,
        packages: Sequence[str] = RATE_LIMIT_PACKAGES,
        implementation_rules: Sequence[Rule] = RATE_LIMIT_IMPLEMENTATION_RULES,
        config_rules: Sequence[Rule] = RATE_LIMIT_CONFIG_RULES,
        route_rule: Rule = ROUTE_DECLARATION_RULE,
        sensitive_paths: Sequence[str] = SENSITIVE_PATHS,
        matcher: PatternMatcher | None = None,
    ) -> None:
        super().__init__(matcher)
        self.packages = tuple(packages)
        self.implementation_rules = tuple(implementation_rules)
        self.config_rules = tuple(config_rules)
        self.route_rule = route_rule
        self.sensitive_paths = tuple(sensitive_paths)

    def _scan(self, project_root: Path) -> RateLimitResult:
        inventory = classify_packages(read_manifest(project_root), self.packages)

        corpus = self.load_corpus(project_root)
        implementations = self._find_implementations(corpus)
        configuration_problems = self.collect_issues(corpus, self.config_rules)
        unprotected = self._find_unprotected_endpoints(corpus)

        if not implementations:
            status = RateLimitStatus.NOT_DETECTED
        elif configuration_problems or unprotected:
            status = RateLimitStatus.MISCONFIGURED
        else:
            status = RateLimitStatus.CONFIGURED

        return RateLimitResult(
            status=status,
            installed=PackageList(packages=inventory.installed, count=len(inventory.installed)),
            detected=DetectedImplementations(implementations=implementations, count=len(implementations)),
            issues=RateLimitIssues(
                configuration_problems=configuration_problems,
                unprotected_endpoints=unprotected,
                count=len(configuration_problems) + len(unprotected),
            ),
            security_score=rate_limit_score(
                bool(implementations),
                len(inventory.installed),
                len(configuration_problems),
                len(unprotected),
            ),
            recommendations=list(RATE_LIMIT_RECOMMENDATIONS),
            recommended_implementation=RECOMMENDED_IMPLEMENTATION,
        )

    def _find_implementations(self, corpus: list[SourceFile]) -> list[Implementation]:
        implementations: list[Implementation] = []
        for rule in self.implementation_rules:
            matches = self.matcher.match_corpus(corpus, rule)
            if matches:
                implementations.append(
                    Implementation(
                        type=rule.name,
                        occurrences=[
                            Occurrence(file=m.file, line=m.line, context=m.snippet) for m in matches
                        ],
                    )
                )
        return implementations

    def _find_unprotected_endpoints(self, corpus: list[SourceFile]) -> list[UnprotectedEndpoint]:
        """Sensitive POST routes with no rate limiter mounted on their path."""
        unprotected: list[UnprotectedEndpoint] = []
        for route in self.matcher.match_corpus(corpus, self.route_rule, MatchMode.ALL_OCCURRENCES):
            verb, path = route.groups[0], route.groups[1]
            if verb is None or path is None:
                continue

            method = verb.upper()
            if method != "POST" or not is_sensitive_path(path, self.sensitive_paths):
                continue

            if not self.is_present(corpus, protection_rule(path, method)):
                unprotected.append(
                    UnprotectedEndpoint(path=path, method=method, file=route.file, line=route.line)
                )
        return unprotected
