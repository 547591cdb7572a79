"""Security middleware inventory and configuration."""

from collections.abc import Sequence
from pathlib import Path

from ...scoring import middleware_score
from ..corpus import SourceFile
from ..manifest import dependency_names, read_manifest
from ..matcher import PatternMatcher
from ..models import (
    FileLocation,
    MiddlewareGroup,
    MiddlewareInfo,
    MiddlewareResult,
    MiddlewareUsage,
    SessionAnalysis,
    UsedMiddlewares,
)
from ..patterns import (
    MIDDLEWARE_CONFIG_RULES,
    MIDDLEWARE_USAGE_RULES,
    SECURITY_MIDDLEWARES,
    SESSION_CONFIG_PROBE,
    Priority,
    Rule,
    SecurityMiddleware,
)
from .base import DomainScanner

SESSION_PACKAGE = "express-session"


class MiddlewareScanner(DomainScanner):
    """Checks which recommended Express middlewares are installed and used."""

    domain = "middlewares"

    def __init__(
        self,
        middlewares: Sequence[SecurityMiddleware] = SECURITY_MIDDLEWARES,
        usage_rules: Sequence[Rule] = MIDDLEWARE_USAGE_RULES,
        config_rules: Sequence[Rule] = MIDDLEWARE_CONFIG_RULES,
        session_rule: Rule = SESSION_CONFIG_PROBE,
        matcher: PatternMatcher | None = None,
    ) -> None:
        super().__init__(matcher)
        self.middlewares = tuple(middlewares)
        self.usage_rules = tuple(usage_rules)
        self.config_rules = tuple(config_rules)
        self.session_rule = session_rule

    def _scan(self, project_root: Path) -> MiddlewareResult:
        manifest = read_manifest(project_root)
        declared = set(dependency_names(manifest))
        installed = [m for m in self.middlewares if m.npm in declared]
        # Without a manifest nothing can be reported missing
        missing = [m for m in self.middlewares if m.npm not in declared] if manifest is not None else []
        missing_high = [m for m in missing if m.priority is Priority.HIGH]
        missing_medium = [m for m in missing if m.priority is Priority.MEDIUM]

        corpus = self.load_corpus(project_root)
        configuration_issues = self.collect_issues(corpus, self.config_rules)

        session_analysis = None
        if SESSION_PACKAGE in declared:
            session_analysis = self._analyze_session(corpus)

        return MiddlewareResult(
            installed=MiddlewareGroup(
                packages=[MiddlewareInfo(name=m.name, description=m.description) for m in installed],
                count=len(installed),
            ),
            missing=_group_with_npm(missing_high),
            recommended=_group_with_npm(missing_medium),
            used=self._find_usages(corpus),
            configuration_issues=configuration_issues,
            session_analysis=session_analysis,
            security_score=middleware_score(
                len(missing_high), len(missing_medium), len(configuration_issues)
            ),
        )

    def _find_usages(self, corpus: list[SourceFile]) -> UsedMiddlewares:
        usages: list[MiddlewareUsage] = []
        for rule in self.usage_rules:
            matches = self.matcher.match_corpus(corpus, rule)
            if matches:
                usages.append(
                    MiddlewareUsage(
                        name=rule.name,
                        files=[FileLocation(file=m.file, line=m.line) for m in matches],
                    )
                )
        return UsedMiddlewares(middlewares=usages, count=len(usages))

    def _analyze_session(self, corpus: list[SourceFile]) -> SessionAnalysis | None:
        """Inspect the first ``session({`` line for cookie hardening flags."""
        matches = self.matcher.match_corpus(corpus, self.session_rule)
        if not matches:
            return None

        first = matches[0]
        context = first.snippet or ""
        issues = []
        if "httpOnly: true" not in context:
            issues.append("httpOnly missing from the session configuration")
        if "secure: true" not in context:
            issues.append("secure missing from the session configuration")
        if "sameSite" not in context:
            issues.append("sameSite missing from the session configuration")

        return SessionAnalysis(file=first.file, line=first.line, issues=issues)


def _group_with_npm(middlewares: list[SecurityMiddleware]) -> MiddlewareGroup:
    return MiddlewareGroup(
        packages=[MiddlewareInfo(name=m.name, description=m.description, npm=m.npm) for m in middlewares],
        count=len(middlewares),
    )
