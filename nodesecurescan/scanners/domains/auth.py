"""Authentication and authorization weaknesses."""

from collections.abc import Sequence
from pathlib import Path

from ..manifest import classify_packages, read_manifest
from ..matcher import PatternMatcher
from ..models import AuthResult, PackageRecommendations
from ..patterns import AUTH_RECOMMENDED_PACKAGES, AUTHENTICATION_RULES, AUTHORIZATION_RULES, Rule
from .base import DomainScanner


class AuthScanner(DomainScanner):
    domain = "auth"

    def __init__(
        self,
        authentication_rules: Sequence[Rule] = AUTHENTICATION_RULES,
        authorization_rules: Sequence[Rule] = AUTHORIZATION_RULES,
        recommended_packages: Sequence[str] = AUTH_RECOMMENDED_PACKAGES,
        matcher: PatternMatcher | None = None,
    ) -> None:
        super().__init__(matcher)
        self.authentication_rules = tuple(authentication_rules)
        self.authorization_rules = tuple(authorization_rules)
        self.recommended_packages = tuple(recommended_packages)

    def _scan(self, project_root: Path) -> AuthResult:
        corpus = self.load_corpus(project_root)
        authentication = self.collect_issues(corpus, self.authentication_rules)
        authorization = self.collect_issues(corpus, self.authorization_rules)

        inventory = classify_packages(read_manifest(project_root), self.recommended_packages)

        return AuthResult(
            auth=authentication,
            authorization=authorization,
            packages=PackageRecommendations(installed=inventory.installed, recommended=inventory.missing),
            total=len(authentication) + len(authorization),
        )
