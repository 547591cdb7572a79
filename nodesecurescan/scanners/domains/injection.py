"""SQL and NoSQL injection-prone query construction."""

from collections.abc import Sequence
from pathlib import Path

from ..matcher import PatternMatcher
from ..models import SqlInjectionResult
from ..patterns import NOSQL_INJECTION_RULES, SQL_INJECTION_RULES, SQL_RECOMMENDED_PACKAGES, Rule
from .base import DomainScanner


class SqlInjectionScanner(DomainScanner):
    domain = "sqlInjection"

    def __init__(
        self,
        sql_rules: Sequence[Rule] = SQL_INJECTION_RULES,
        nosql_rules: Sequence[Rule] = NOSQL_INJECTION_RULES,
        recommended_packages: Sequence[str] = SQL_RECOMMENDED_PACKAGES,
        matcher: PatternMatcher | None = None,
    ) -> None:
        super().__init__(matcher)
        self.sql_rules = tuple(sql_rules)
        self.nosql_rules = tuple(nosql_rules)
        self.recommended_packages = list(recommended_packages)

    def _scan(self, project_root: Path) -> SqlInjectionResult:
        corpus = self.load_corpus(project_root)
        sql = self.collect_issues(corpus, self.sql_rules)
        no_sql = self.collect_issues(corpus, self.nosql_rules)

        return SqlInjectionResult(
            sql=sql,
            no_sql=no_sql,
            recommended_packages=list(self.recommended_packages),
            total=len(sql) + len(no_sql),
        )
