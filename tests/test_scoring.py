"""Tests for composite and domain-local scoring."""

import json
from pathlib import Path

import pytest

from nodesecurescan.core.exceptions import InvalidConfigError
from nodesecurescan.scanners.models import (
    AuditReport,
    AuthResult,
    CorsResult,
    CsrfResult,
    DependencyResult,
    InputValidationResult,
    Issue,
    MiddlewareGroup,
    MiddlewareResult,
    RateLimitIssues,
    RateLimitResult,
    SecretsResult,
    SecurityReportInput,
    SqlInjectionResult,
    VulnerabilityCounts,
)
from nodesecurescan.scanners.patterns import Severity
from nodesecurescan.scoring import (
    DEFAULT_WEIGHTS,
    ScoreWeights,
    calculate_security_score,
    clamp_score,
    cors_score,
    dependency_score,
    middleware_score,
    rate_limit_score,
    rate_score,
)


def _issue(severity: Severity) -> Issue:
    return Issue(rule_id="T-1", file="app.js", line=1, name="test", severity=severity)


def _report_with(category: str, count: int) -> SecurityReportInput:
    """A report with *count* findings in one category and nothing else."""
    if category == "audit_critical":
        return SecurityReportInput(
            dependencies=DependencyResult(audit=AuditReport(vulnerabilities=VulnerabilityCounts(critical=count)))
        )
    if category == "audit_low":
        return SecurityReportInput(
            dependencies=DependencyResult(audit=AuditReport(vulnerabilities=VulnerabilityCounts(low=count)))
        )
    if category == "secrets":
        return SecurityReportInput(secrets=SecretsResult(secrets=[_issue(Severity.CRITICAL)] * count))
    if category == "auth":
        return SecurityReportInput(auth=AuthResult(total=count))
    if category == "input_validation":
        return SecurityReportInput(input_validation=InputValidationResult(total=count))
    if category == "injection":
        return SecurityReportInput(sql_injection=SqlInjectionResult(total=count))
    if category == "csrf":
        return SecurityReportInput(csrf=CsrfResult(total=count))
    if category == "cors":
        return SecurityReportInput(cors=CorsResult(issues=[_issue(Severity.HIGH)] * count))
    if category == "rate_limit":
        return SecurityReportInput(rate_limit=RateLimitResult(issues=RateLimitIssues(count=count)))
    if category == "middlewares":
        return SecurityReportInput(middlewares=MiddlewareResult(missing=MiddlewareGroup(count=count)))
    raise ValueError(category)


CATEGORIES = [
    "audit_critical",
    "audit_low",
    "secrets",
    "auth",
    "input_validation",
    "injection",
    "csrf",
    "cors",
    "rate_limit",
    "middlewares",
]


class TestCompositeScore:
    """Test calculate_security_score."""

    def test_clean_report(self) -> None:
        assert calculate_security_score(SecurityReportInput()) == 100

    @pytest.mark.parametrize(
        "category, count, expected",
        [
            ("audit_critical", 1, 85),
            ("audit_low", 3, 94),
            ("secrets", 2, 80),
            ("auth", 3, 94),
            ("auth", 100, 80),
            ("input_validation", 3, 96),
            ("input_validation", 50, 85),
            ("injection", 10, 80),
            ("csrf", 20, 85),
            ("cors", 2, 90),
            ("rate_limit", 50, 90),
            ("middlewares", 6, 80),
        ],
    )
    def test_deductions(self, category: str, count: int, expected: int) -> None:
        assert calculate_security_score(_report_with(category, count)) == expected

    def test_secret_severities(self) -> None:
        report = SecurityReportInput(
            secrets=SecretsResult(secrets=[_issue(Severity.HIGH), _issue(Severity.MEDIUM)])
        )
        assert calculate_security_score(report) == 95

    def test_clamped_at_zero(self) -> None:
        assert calculate_security_score(_report_with("audit_critical", 50)) == 0

    @pytest.mark.parametrize("category", CATEGORIES)
    def test_monotonically_non_increasing(self, category: str) -> None:
        scores = [calculate_security_score(_report_with(category, n)) for n in range(0, 40)]

        assert all(later <= earlier for earlier, later in zip(scores, scores[1:]))
        assert all(0 <= score <= 100 for score in scores)

    def test_custom_weights(self) -> None:
        weights = ScoreWeights(audit_critical=50)
        assert calculate_security_score(_report_with("audit_critical", 1), weights) == 50


class TestClampScore:
    """Test clamping and rounding."""

    @pytest.mark.parametrize(
        "raw, expected",
        [(-250, 0), (0, 0), (95.5, 96), (95.49, 95), (100, 100), (180, 100), (0.5, 1)],
    )
    def test_clamp(self, raw: float, expected: int) -> None:
        assert clamp_score(raw) == expected


class TestRating:
    """Test rating bands."""

    @pytest.mark.parametrize(
        "score, rating",
        [(100, "Excellent"), (90, "Excellent"), (89, "Good"), (70, "Good"), (50, "Average"), (30, "Poor"), (29, "Critical"), (0, "Critical")],
    )
    def test_bands(self, score: int, rating: str) -> None:
        assert rate_score(score) == rating


class TestDomainScores:
    """Test the domain-local score helpers."""

    def test_middleware_score(self) -> None:
        assert middleware_score(0, 0, 0) == 100
        assert middleware_score(2, 1, 1) == 55
        assert middleware_score(10_000, 10_000, 10_000) == 0

    def test_cors_score(self) -> None:
        assert cors_score(False, True, 5, 5) == 0
        assert cors_score(True, False, 0, 0) == 100
        assert cors_score(True, True, 1, 0) == 60
        assert cors_score(True, False, 0, 1) == 95
        assert cors_score(True, False, 0, 3) == 90

    def test_rate_limit_score(self) -> None:
        assert rate_limit_score(False, 5, 0, 0) == 0
        assert rate_limit_score(True, 1, 0, 0) == 55
        assert rate_limit_score(True, 10, 0, 0) == 70
        assert rate_limit_score(True, 0, 1000, 1000) == 0

    def test_dependency_score(self) -> None:
        assert dependency_score(0, 0, 0, 0) == 100
        assert dependency_score(1, 1, 1, 1) == 63
        assert dependency_score(0, 0, 0, 0, outdated_high=2, outdated_medium=1) == 88
        assert dependency_score(100, 100, 100, 100) == 0

    @pytest.mark.parametrize("n", [0, 1, 7, 10**6])
    def test_extreme_inputs_stay_in_range(self, n: int) -> None:
        for score in (
            middleware_score(n, n, n),
            cors_score(True, bool(n % 2), n, n),
            rate_limit_score(True, n, n, n),
            dependency_score(n, n, n, n, n, n),
        ):
            assert isinstance(score, int)
            assert 0 <= score <= 100


class TestScoreWeights:
    """Test ScoreWeights configuration."""

    def test_defaults(self) -> None:
        assert DEFAULT_WEIGHTS.audit_critical == 15
        assert DEFAULT_WEIGHTS.input_validation_per_issue == 1.5
        assert DEFAULT_WEIGHTS.missing_middleware_cap == 20

    def test_from_file_overrides(self, tmp_path: Path) -> None:
        path = tmp_path / "weights.json"
        path.write_text(json.dumps({"audit_critical": 30, "injection_cap": 40}))

        weights = ScoreWeights.from_file(path)

        assert weights.audit_critical == 30
        assert weights.injection_cap == 40
        assert weights.audit_high == 10

    def test_from_file_unknown_key(self, tmp_path: Path) -> None:
        path = tmp_path / "weights.json"
        path.write_text(json.dumps({"graphql": 5}))

        with pytest.raises(InvalidConfigError):
            ScoreWeights.from_file(path)

    def test_from_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidConfigError):
            ScoreWeights.from_file(tmp_path / "nope.json")

    def test_from_file_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "weights.json"
        path.write_text("{broken")

        with pytest.raises(InvalidConfigError):
            ScoreWeights.from_file(path)
