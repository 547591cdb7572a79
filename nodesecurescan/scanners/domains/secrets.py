"""Hard-coded secrets and environment variable usage."""

from collections.abc import Sequence
from pathlib import Path

from ...constants import ENV_FILES_GLOB, SECRETS_GLOB
from ..corpus import SourceFile
from ..matcher import MatchMode, PatternMatcher
from ..models import EnvironmentVariables, SecretsResult
from ..patterns import ENV_DEFINITION_RULE, SECRET_RULES, Rule
from .base import DomainScanner


class SecretsScanner(DomainScanner):
    """Detects credentials committed to source and config files.

    Rules flagged as environment variable markers are never reported.
    Instead, every ``process.env.NAME`` reference is collected and compared
    with the names defined in ``.env*`` files.
    """

    domain = "secrets"
    glob_pattern = SECRETS_GLOB

    def __init__(
        self,
        rules: Sequence[Rule] = SECRET_RULES,
        env_definition_rule: Rule = ENV_DEFINITION_RULE,
        matcher: PatternMatcher | None = None,
    ) -> None:
        super().__init__(matcher)
        self.rules = tuple(rules)
        self.env_definition_rule = env_definition_rule

    def _scan(self, project_root: Path) -> SecretsResult:
        corpus = self.load_corpus(project_root)

        secrets = self.collect_issues(corpus, [r for r in self.rules if not r.env_marker])

        used = self._collect_names(corpus, [r for r in self.rules if r.env_marker])
        defined = self._collect_names(
            self.load_corpus(project_root, ENV_FILES_GLOB), [self.env_definition_rule]
        )

        return SecretsResult(
            secrets=secrets,
            environment_variables=EnvironmentVariables(
                used=sorted(used),
                defined=sorted(defined),
                missing=sorted(used - defined),
            ),
        )

    def _collect_names(self, corpus: list[SourceFile], rules: list[Rule]) -> set[str]:
        names: set[str] = set()
        for rule in rules:
            for match in self.matcher.match_corpus(corpus, rule, MatchMode.ALL_OCCURRENCES):
                if match.extracted is not None:
                    names.add(str(match.extracted))
        return names
