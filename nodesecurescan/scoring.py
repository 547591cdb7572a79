"""
Security scoring.

The composite score starts at 100 and subtracts weighted, independently
capped deductions per finding category. Domain-local scores (middlewares,
CORS, rate limiting, dependencies) are computed by the helpers below.
Every score is clamped to [0, 100].
"""

import json
import logging
import math
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

from .core.exceptions import InvalidConfigError
from .scanners.models import SecurityReportInput
from .scanners.patterns import Severity

logger = logging.getLogger(__name__)


class ScoreWeights(BaseModel):
    """Deduction weights of the composite score.

    ``*_cap`` fields bound the total deduction of a category.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    audit_critical: float = 15
    audit_high: float = 10
    audit_moderate: float = 5
    audit_low: float = 2

    secret_critical: float = 10
    secret_high: float = 5

    auth_per_issue: float = 2
    auth_cap: float = 20

    input_validation_per_issue: float = 1.5
    input_validation_cap: float = 15

    injection_per_issue: float = 3
    injection_cap: float = 20

    csrf_per_issue: float = 2
    csrf_cap: float = 15

    cors_high: float = 5

    rate_limit_per_issue: float = 1
    rate_limit_cap: float = 10

    missing_middleware: float = 4
    missing_middleware_cap: float = 20

    @classmethod
    def from_file(cls, path: str | Path) -> "ScoreWeights":
        """Load weights from a JSON file; missing keys keep their defaults.

        Raises:
            InvalidConfigError: If the file cannot be read or holds invalid weights.
        """
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
            return cls.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise InvalidConfigError(f"Invalid score weights in {path}: {e}") from e


DEFAULT_WEIGHTS = ScoreWeights()


def clamp_score(score: float) -> int:
    """Clamp to [0, 100] and round half away from zero."""
    bounded = max(0.0, min(100.0, score))
    return int(math.floor(bounded + 0.5))


def calculate_security_score(report: SecurityReportInput, weights: ScoreWeights = DEFAULT_WEIGHTS) -> int:
    """Compute the composite 0-100 security score of a report."""
    score = 100.0

    audit = report.dependencies.audit.vulnerabilities
    score -= audit.critical * weights.audit_critical
    score -= audit.high * weights.audit_high
    score -= audit.moderate * weights.audit_moderate
    score -= audit.low * weights.audit_low

    secrets = report.secrets.secrets
    score -= sum(1 for s in secrets if s.severity == Severity.CRITICAL) * weights.secret_critical
    score -= sum(1 for s in secrets if s.severity == Severity.HIGH) * weights.secret_high

    score -= min(weights.auth_cap, report.auth.total * weights.auth_per_issue)
    score -= min(
        weights.input_validation_cap,
        report.input_validation.total * weights.input_validation_per_issue,
    )
    score -= min(weights.injection_cap, report.sql_injection.total * weights.injection_per_issue)
    score -= min(weights.csrf_cap, report.csrf.total * weights.csrf_per_issue)

    high_cors = sum(1 for i in report.cors.issues if i.severity == Severity.HIGH)
    score -= high_cors * weights.cors_high

    score -= min(weights.rate_limit_cap, report.rate_limit.issues.count * weights.rate_limit_per_issue)
    score -= min(
        weights.missing_middleware_cap,
        report.middlewares.missing.count * weights.missing_middleware,
    )

    return clamp_score(score)


def rate_score(score: int) -> str:
    """Rating band of a composite score."""
    if score >= 90:
        return "Excellent"
    if score >= 70:
        return "Good"
    if score >= 50:
        return "Average"
    if score >= 30:
        return "Poor"
    return "Critical"


# Domain-local scores


def middleware_score(missing_high: int, missing_medium: int, configuration_issues: int) -> int:
    return clamp_score(100 - missing_high * 15 - missing_medium * 5 - configuration_issues * 10)


def cors_score(detected: bool, wildcard_origin: bool, high_issues: int, medium_issues: int) -> int:
    if not detected:
        return 0

    score = 50
    if not wildcard_origin:
        score += 25
    if high_issues == 0:
        score += 15
    if medium_issues == 0:
        score += 10
    elif medium_issues <= 1:
        score += 5
    return clamp_score(score)


def rate_limit_score(detected: bool, installed_packages: int, configuration_issues: int, unprotected: int) -> int:
    if not detected:
        return 0

    score = 50
    score += min(20, installed_packages * 5)
    score -= min(40, configuration_issues * 10)
    score -= min(30, unprotected * 10)
    return clamp_score(score)


def dependency_score(
    critical: int,
    high: int,
    moderate: int,
    low: int,
    outdated_high: int = 0,
    outdated_medium: int = 0,
) -> int:
    score = 100 - critical * 20 - high * 10 - moderate * 5 - low * 2
    score -= outdated_high * 5 + outdated_medium * 2
    return clamp_score(score)
