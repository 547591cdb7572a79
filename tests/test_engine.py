"""Tests for the scan engine."""

from pathlib import Path
from unittest.mock import patch

import pytest

from nodesecurescan.core.exceptions import InvalidConfigError
from nodesecurescan.engine import DOMAIN_RESULT_TYPES, SecurityScanEngine, count_total_issues, default_scanners
from nodesecurescan.scanners.domains import DomainScanner, SecretsScanner
from nodesecurescan.scanners.models import (
    AuditReport,
    AuthResult,
    CookieResult,
    DependencyResult,
    Issue,
    MiddlewareGroup,
    MiddlewareResult,
    SecretsResult,
    SecurityReportInput,
    VulnerabilityCounts,
)
from nodesecurescan.scanners.patterns import Severity

REPORT_KEYS = [
    "dependencies",
    "secrets",
    "middlewares",
    "cors",
    "rateLimit",
    "sqlInjection",
    "auth",
    "inputValidation",
    "csrf",
    "cookies",
    "stats",
]

VULNERABLE_APP = (
    "const config = { \"api_key\": \"sk_live_abcdefghijklmnop1234\" };\n"
    "app.use(cors({ origin: '*' }));\n"
    "app.post('/login', (req, res) => {\n"
    "  db.query(`SELECT * FROM users WHERE name = ${req.body.name}`);\n"
    "});\n"
)


class BrokenScanner(DomainScanner):
    domain = "secrets"

    def _scan(self, project_root: Path):
        raise RuntimeError("boom")


class UnreadableScanner(DomainScanner):
    domain = "cookies"

    def _scan(self, project_root: Path):
        raise PermissionError(13, "Permission denied", str(project_root))


def _scanners_without_dependencies() -> dict[str, DomainScanner]:
    scanners = default_scanners()
    del scanners["dependencies"]
    return scanners


class TestEmptyProject:
    """An empty directory yields a complete, clean report."""

    def test_all_keys_present(self, make_project) -> None:
        report = SecurityScanEngine().run(make_project())

        assert list(report.to_dict()) == REPORT_KEYS

    def test_everything_empty(self, make_project) -> None:
        report = SecurityScanEngine().run(make_project())

        assert report.secrets.secrets == []
        assert report.middlewares.missing.count == 0
        assert report.cors.detected is False
        assert report.rate_limit.issues.count == 0
        assert report.sql_injection.total == 0
        assert report.auth.total == 0
        assert report.input_validation.total == 0
        assert report.csrf.total == 0
        assert report.cookies.total == 0
        assert report.stats.total_issues == 0
        for key in DOMAIN_RESULT_TYPES:
            assert report.to_dict()[key]["error"] is None

    @patch("subprocess.run")
    def test_no_tools_without_manifest(self, mock_run, make_project) -> None:
        SecurityScanEngine().run(make_project())

        mock_run.assert_not_called()


class TestEngineRun:
    """Test SecurityScanEngine.run."""

    def test_findings_are_aggregated(self, make_project) -> None:
        root = make_project({"app.js": VULNERABLE_APP})

        report = SecurityScanEngine(scanners=_scanners_without_dependencies()).run(root)

        assert [s.rule_id for s in report.secrets.secrets] == ["SEC-001"]
        assert report.cors.detected is True
        assert report.sql_injection.total >= 1
        assert report.rate_limit.issues.unprotected_endpoints[0].path == "/login"
        assert report.stats.total_issues == count_total_issues(report)
        assert report.dependencies == DependencyResult()

    def test_idempotent(self, make_project) -> None:
        root = make_project({"app.js": VULNERABLE_APP}, manifest={"dependencies": {"express": "4.18.2"}})
        engine = SecurityScanEngine(scanners=_scanners_without_dependencies())

        first = engine.run(root).to_dict()
        second = engine.run(root).to_dict()

        first.pop("stats")
        second.pop("stats")
        assert first == second

    def test_domain_order(self, make_project) -> None:
        seen: list[str] = []

        SecurityScanEngine(scanners=_scanners_without_dependencies(), on_domain_start=seen.append).run(
            make_project()
        )

        assert seen == [key for key in DOMAIN_RESULT_TYPES if key != "dependencies"]

    def test_failing_domain_is_isolated(self, make_project) -> None:
        root = make_project({"app.js": VULNERABLE_APP})
        scanners = _scanners_without_dependencies()
        scanners["secrets"] = BrokenScanner()

        report = SecurityScanEngine(scanners=scanners).run(root)

        assert report.secrets.error == "secrets scan failed: boom"
        assert report.secrets.secrets == []
        assert report.cors.error is None
        assert report.cors.detected is True

    def test_unreadable_tree_becomes_domain_error(self, make_project) -> None:
        scanners = {"cookies": UnreadableScanner(), "secrets": SecretsScanner()}

        report = SecurityScanEngine(scanners=scanners).run(make_project())

        assert report.cookies.error.startswith("cookies scan failed: cookies:")
        assert "Permission denied" in report.cookies.error
        assert report.secrets.error is None

    def test_unknown_domain(self) -> None:
        with pytest.raises(InvalidConfigError, match="graphql"):
            SecurityScanEngine(scanners={"graphql": SecretsScanner()})


class TestCountTotalIssues:
    """Test count_total_issues."""

    def test_sum(self) -> None:
        secret = Issue(rule_id="SEC-001", file="a.js", line=1, name="API key", severity=Severity.CRITICAL)
        report = SecurityReportInput(
            dependencies=DependencyResult(audit=AuditReport(vulnerabilities=VulnerabilityCounts(high=2, low=1))),
            secrets=SecretsResult(secrets=[secret]),
            middlewares=MiddlewareResult(missing=MiddlewareGroup(count=4)),
            auth=AuthResult(total=3),
            cookies=CookieResult(total=1),
        )

        assert count_total_issues(report) == 3 + 1 + 4 + 3 + 1
