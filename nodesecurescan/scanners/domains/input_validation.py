"""Unvalidated user input, XSS sinks and loose type handling."""

from collections.abc import Sequence
from pathlib import Path

from ..manifest import classify_packages, read_manifest
from ..matcher import PatternMatcher
from ..models import InputValidationResult, PackageRecommendations
from ..patterns import (
    INPUT_VALIDATION_RULES,
    TYPE_VALIDATION_RULES,
    VALIDATION_RECOMMENDED_PACKAGES,
    XSS_RULES,
    Rule,
)
from .base import DomainScanner


class InputValidationScanner(DomainScanner):
    domain = "inputValidation"

    def __init__(
        self,
        validation_rules: Sequence[Rule] = INPUT_VALIDATION_RULES,
        xss_rules: Sequence[Rule] = XSS_RULES,
        type_rules: Sequence[Rule] = TYPE_VALIDATION_RULES,
        recommended_packages: Sequence[str] = VALIDATION_RECOMMENDED_PACKAGES,
        matcher: PatternMatcher | None = None,
    ) -> None:
        super().__init__(matcher)
        self.validation_rules = tuple(validation_rules)
        self.xss_rules = tuple(xss_rules)
        self.type_rules = tuple(type_rules)
        self.recommended_packages = tuple(recommended_packages)

    def _scan(self, project_root: Path) -> InputValidationResult:
        corpus = self.load_corpus(project_root)
        validation = self.collect_issues(corpus, self.validation_rules)
        xss = self.collect_issues(corpus, self.xss_rules)
        type_errors = self.collect_issues(corpus, self.type_rules)

        inventory = classify_packages(read_manifest(project_root), self.recommended_packages)

        return InputValidationResult(
            validation=validation,
            xss=xss,
            type_errors=type_errors,
            packages=PackageRecommendations(installed=inventory.installed, recommended=inventory.missing),
            total=len(validation) + len(xss) + len(type_errors),
        )
