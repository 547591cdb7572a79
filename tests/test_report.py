"""Tests for the JSON report artifact."""

import json
from datetime import datetime

import pytest

from nodesecurescan.core.exceptions import ReportError
from nodesecurescan.report import (
    GENERIC_ACTIONS,
    MAX_PRIORITY_ACTIONS,
    build_report,
    issues_by_category,
    priority_actions,
    report_filename,
    write_report,
)
from nodesecurescan.scanners.models import (
    AuditReport,
    DependencyResult,
    SecurityReportInput,
    SqlInjectionResult,
    VulnerabilityCounts,
)
from nodesecurescan.scoring import ScoreWeights

NO_ISSUES = {
    "dependencies": 0,
    "secrets": 0,
    "middlewares": 0,
    "auth": 0,
    "sqlInjection": 0,
    "inputValidation": 0,
    "csrf": 0,
    "cookies": 0,
}


class TestPriorityActions:
    """Test priority_actions."""

    def test_clean_project_gets_generic_actions(self) -> None:
        assert priority_actions(NO_ISSUES) == GENERIC_ACTIONS

    def test_single_trigger_is_padded(self) -> None:
        actions = priority_actions({**NO_ISSUES, "secrets": 1})

        assert actions[0] == "Move the exposed secrets to environment variables immediately"
        assert actions[1:] == GENERIC_ACTIONS

    def test_all_triggers_are_capped(self) -> None:
        issues = {**NO_ISSUES, "dependencies": 3, "secrets": 1, "auth": 6, "sqlInjection": 2, "middlewares": 4}

        actions = priority_actions(issues)

        assert len(actions) == MAX_PRIORITY_ACTIONS
        assert actions[0] == "Update the vulnerable dependencies listed in this report"
        assert not set(actions) & set(GENERIC_ACTIONS)

    def test_thresholds(self) -> None:
        actions = priority_actions({**NO_ISSUES, "auth": 5, "middlewares": 3})

        assert actions == GENERIC_ACTIONS


class TestBuildReport:
    """Test build_report."""

    def test_empty_report(self) -> None:
        moment = datetime(2024, 1, 2, 3, 4, 5)

        document = build_report(SecurityReportInput(), generated_at=moment)

        assert document["generatedAt"] == "2024-01-02T03:04:05"
        assert document["securityScore"] == 100
        assert document["rating"] == "Excellent"
        assert document["summary"]["totalIssues"] == 0
        assert document["summary"]["priorityActions"] == GENERIC_ACTIONS
        assert set(document["results"]) >= {"rateLimit", "sqlInjection", "inputValidation", "stats"}
        json.dumps(document)

    def test_summary_counts(self) -> None:
        report = SecurityReportInput(
            dependencies=DependencyResult(
                audit=AuditReport(vulnerabilities=VulnerabilityCounts(critical=1, moderate=2))
            ),
            sql_injection=SqlInjectionResult(total=4),
        )

        document = build_report(report)

        assert document["securityScore"] == 100 - 15 - 10 - 12
        assert document["rating"] == "Average"
        assert document["summary"]["issuesByCategory"] == issues_by_category(report)
        assert document["summary"]["issuesByCategory"]["dependencies"] == 3
        assert document["summary"]["severityDistribution"]["moderate"] == 2
        assert document["summary"]["priorityActions"][:2] == [
            "Update the vulnerable dependencies listed in this report",
            "Fix SQL/NoSQL injection risks first",
        ]

    def test_custom_weights(self) -> None:
        report = SecurityReportInput(sql_injection=SqlInjectionResult(total=1))

        document = build_report(report, ScoreWeights(injection_per_issue=40, injection_cap=40))

        assert document["securityScore"] == 60
        assert document["rating"] == "Average"


class TestWriteReport:
    """Test report_filename and write_report."""

    def test_filename(self) -> None:
        moment = datetime(2024, 1, 2, 3, 4, 5, 678000)

        assert report_filename(moment) == "security-scan-2024-01-02T03-04-05-678.json"

    def test_write(self, tmp_path) -> None:
        output_dir = tmp_path / "reports" / "nested"

        path = write_report(SecurityReportInput(), output_dir)

        assert path.parent == output_dir
        assert path.name.startswith("security-scan-")
        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["securityScore"] == 100
        assert "cookies" in document["results"]

    def test_unwritable_directory(self, tmp_path) -> None:
        blocker = tmp_path / "reports"
        blocker.write_text("not a directory")

        with pytest.raises(ReportError, match="Cannot write report"):
            write_report(SecurityReportInput(), blocker)
