"""Scan engine: runs every domain aggregator and assembles the report input."""

import logging
import time
from collections.abc import Callable, Mapping
from pathlib import Path

from .core.exceptions import DomainScanError, InvalidConfigError
from .scanners.domains import (
    AuthScanner,
    CookieScanner,
    CorsScanner,
    CsrfScanner,
    DependencyScanner,
    DomainScanner,
    InputValidationScanner,
    MiddlewareScanner,
    RateLimitScanner,
    SecretsScanner,
    SqlInjectionScanner,
)
from .scanners.matcher import PatternMatcher
from .scanners.models import (
    AuthResult,
    CookieResult,
    CorsResult,
    CsrfResult,
    DependencyResult,
    DomainResult,
    InputValidationResult,
    MiddlewareResult,
    RateLimitResult,
    SecretsResult,
    SecurityReportInput,
    SqlInjectionResult,
    Stats,
)
from .scanners.tools import ToolRunner

logger = logging.getLogger(__name__)

# Report keys in execution order
DOMAIN_RESULT_TYPES: dict[str, type[DomainResult]] = {
    "dependencies": DependencyResult,
    "secrets": SecretsResult,
    "middlewares": MiddlewareResult,
    "cors": CorsResult,
    "rateLimit": RateLimitResult,
    "sqlInjection": SqlInjectionResult,
    "auth": AuthResult,
    "inputValidation": InputValidationResult,
    "csrf": CsrfResult,
    "cookies": CookieResult,
}


def default_scanners(
    matcher: PatternMatcher | None = None, runner: ToolRunner | None = None
) -> dict[str, DomainScanner]:
    """Built-in aggregators keyed by report key, sharing one matcher."""
    matcher = matcher or PatternMatcher()
    return {
        "dependencies": DependencyScanner(runner=runner, matcher=matcher),
        "secrets": SecretsScanner(matcher=matcher),
        "middlewares": MiddlewareScanner(matcher=matcher),
        "cors": CorsScanner(matcher=matcher),
        "rateLimit": RateLimitScanner(matcher=matcher),
        "sqlInjection": SqlInjectionScanner(matcher=matcher),
        "auth": AuthScanner(matcher=matcher),
        "inputValidation": InputValidationScanner(matcher=matcher),
        "csrf": CsrfScanner(matcher=matcher),
        "cookies": CookieScanner(matcher=matcher),
    }


def count_total_issues(report: SecurityReportInput) -> int:
    """Total issue count shown in the report summary.

    Audit vulnerabilities, secrets, missing high-priority middlewares and
    the ``total`` of the injection, auth, input validation, CSRF and
    cookie domains.
    """
    return (
        report.dependencies.audit.vulnerabilities.total
        + len(report.secrets.secrets)
        + report.middlewares.missing.count
        + report.sql_injection.total
        + report.auth.total
        + report.input_validation.total
        + report.csrf.total
        + report.cookies.total
    )


class SecurityScanEngine:
    """Runs the domain aggregators in a fixed order against one project.

    A domain that raises is logged and replaced by an empty result with
    ``error`` set, so the report always has every key.
    """

    def __init__(
        self,
        scanners: Mapping[str, DomainScanner] | None = None,
        on_domain_start: Callable[[str], None] | None = None,
    ) -> None:
        self.scanners = dict(scanners) if scanners is not None else default_scanners()
        unknown = set(self.scanners) - set(DOMAIN_RESULT_TYPES)
        if unknown:
            raise InvalidConfigError(f"Unknown domains: {', '.join(sorted(unknown))}")
        self.on_domain_start = on_domain_start

    def run(self, project_path: str | Path) -> SecurityReportInput:
        root = Path(project_path).resolve()
        logger.info(f"Scanning project {root}", extra={"event": "scan_started"})
        start = time.perf_counter()

        results: dict[str, DomainResult] = {}
        for domain in DOMAIN_RESULT_TYPES:
            scanner = self.scanners.get(domain)
            if scanner is None:
                continue
            if self.on_domain_start:
                self.on_domain_start(domain)
            results[domain] = self._run_domain(domain, scanner, root)

        report = SecurityReportInput.model_validate(results)
        report.stats = Stats(
            execution_time=round(time.perf_counter() - start, 2),
            total_issues=count_total_issues(report),
        )

        logger.info(
            f"Scan finished with {report.stats.total_issues} potential issues",
            extra={
                "event": "scan_finished",
                "duration": report.stats.execution_time,
                "issues": report.stats.total_issues,
            },
        )
        return report

    def _run_domain(self, domain: str, scanner: DomainScanner, root: Path) -> DomainResult:
        try:
            return scanner.scan(root)
        except DomainScanError as e:
            logger.warning(str(e), extra={"event": "domain_failed", "domain": domain, "error": str(e)})
            return DOMAIN_RESULT_TYPES[domain](error=f"{domain} scan failed: {e}")
        except Exception as e:
            logger.error(
                f"{domain} scan failed: {e}",
                exc_info=True,
                extra={"event": "domain_failed", "domain": domain, "error": str(e)},
            )
            return DOMAIN_RESULT_TYPES[domain](error=f"{domain} scan failed: {e}")
