"""JSON report artifact for a finished scan.

The artifact wraps the ``SecurityReportInput`` with the composite score,
its rating band and the summary data a renderer needs for its charts:
issue counts per category, the audit severity distribution and a short
list of priority actions.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from .constants import REPORT_FILENAME_TEMPLATE
from .core.exceptions import ReportError
from .scanners.models import SecurityReportInput
from .scoring import DEFAULT_WEIGHTS, ScoreWeights, calculate_security_score, rate_score

logger = logging.getLogger(__name__)

MAX_PRIORITY_ACTIONS = 5

GENERIC_ACTIONS = [
    "Consider a project-wide security policy for development",
    "Add automated security tests to your CI/CD pipeline",
    "Train your team on Node.js security best practices",
]


def issues_by_category(report: SecurityReportInput) -> dict[str, int]:
    return {
        "dependencies": report.dependencies.audit.vulnerabilities.total,
        "secrets": len(report.secrets.secrets),
        "middlewares": report.middlewares.missing.count,
        "auth": report.auth.total,
        "sqlInjection": report.sql_injection.total,
        "inputValidation": report.input_validation.total,
        "csrf": report.csrf.total,
        "cookies": report.cookies.total,
    }


def severity_distribution(report: SecurityReportInput) -> dict[str, int]:
    counts = report.dependencies.audit.vulnerabilities
    return {
        "critical": counts.critical,
        "high": counts.high,
        "moderate": counts.moderate,
        "low": counts.low,
        "info": counts.info,
    }


def priority_actions(issues: dict[str, int]) -> list[str]:
    """Up to five actions, most urgent first."""
    actions = []
    if issues["dependencies"] > 0:
        actions.append("Update the vulnerable dependencies listed in this report")
    if issues["secrets"] > 0:
        actions.append("Move the exposed secrets to environment variables immediately")
    if issues["auth"] > 5:
        actions.append("Strengthen authentication and authorization mechanisms")
    if issues["sqlInjection"] > 0:
        actions.append("Fix SQL/NoSQL injection risks first")
    if issues["middlewares"] > 3:
        actions.append("Add the missing essential security middlewares")

    if len(actions) < 3:
        actions.extend(GENERIC_ACTIONS)
    return actions[:MAX_PRIORITY_ACTIONS]


def build_report(
    report: SecurityReportInput,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
    generated_at: datetime | None = None,
) -> dict[str, Any]:
    """Assemble the JSON-serialisable report document."""
    score = calculate_security_score(report, weights)
    issues = issues_by_category(report)

    return {
        "generatedAt": (generated_at or datetime.now()).isoformat(timespec="seconds"),
        "securityScore": score,
        "rating": rate_score(score),
        "summary": {
            "totalIssues": report.stats.total_issues,
            "issuesByCategory": issues,
            "severityDistribution": severity_distribution(report),
            "priorityActions": priority_actions(issues),
        },
        "results": report.to_dict(),
    }


def report_filename(moment: datetime) -> str:
    timestamp = moment.isoformat(timespec="milliseconds").replace(":", "-").replace(".", "-")
    return REPORT_FILENAME_TEMPLATE.format(timestamp=timestamp)


def write_report(
    report: SecurityReportInput,
    output_dir: str | Path,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> Path:
    """Write the report document to *output_dir* and return its path.

    Raises:
        ReportError: If the directory or file cannot be written.
    """
    now = datetime.now()
    document = build_report(report, weights, generated_at=now)
    path = Path(output_dir) / report_filename(now)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(document, indent=2), encoding="utf-8")
    except OSError as e:
        raise ReportError(f"Cannot write report to {path}: {e}") from e

    logger.info(f"Report written to {path}", extra={"event": "report_written", "file": str(path)})
    return path
