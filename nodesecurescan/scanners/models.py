"""Pydantic models for scan results.

Every domain aggregator returns one of the ``*Result`` models below, and
the engine folds them into a ``SecurityReportInput``. Field names are
snake_case in Python and serialise to camelCase (``securityScore``,
``noSql``) through the shared ``ScanModel`` configuration.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .matcher import Match
from .patterns import Rule, Severity


class ScanModel(BaseModel):
    """Base model: camelCase aliases, population by field name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class Issue(ScanModel):
    """A reported finding: a Match enriched with its rule's metadata.

    Attributes:
        rule_id: Rule that produced the finding.
        file: Path relative to the project root.
        line: 1-based line number, None for multi-line matches.
        name: Rule name.
        severity: Rule severity.
        solution: Remediation advice.
        context: Trimmed source line, None when the line is unknown.
        value: Value captured by the rule, if any.
    """

    rule_id: str
    file: str
    line: int | None = None
    name: str
    severity: Severity
    solution: str = ""
    context: str | None = None
    value: int | str | None = None

    @classmethod
    def from_match(cls, match: Match, rule: Rule) -> Issue:
        return cls(
            rule_id=rule.rule_id,
            file=match.file,
            line=match.line,
            name=rule.name,
            severity=rule.severity,
            solution=rule.remediation,
            context=match.snippet,
            value=match.extracted,
        )


class DomainResult(ScanModel):
    """Shared base of every domain result.

    ``error`` is only set when the domain failed as a whole and the engine
    substituted an empty result.
    """

    error: str | None = None


class FileLocation(ScanModel):
    file: str
    line: int | None = None


class PackageRecommendations(ScanModel):
    installed: list[str] = Field(default_factory=list)
    recommended: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


class RiskLevel(str, Enum):
    """Risk of running an outdated package, from the version gap."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"
    NONE = "NONE"
    UNKNOWN = "UNKNOWN"


class ToolReport(ScanModel):
    """Outcome of one external tool run."""

    success: bool = False
    error: str | None = None
    details: str | None = None


class VulnerabilityCounts(ScanModel):
    info: int = 0
    low: int = 0
    moderate: int = 0
    high: int = 0
    critical: int = 0

    @property
    def total(self) -> int:
        return self.info + self.low + self.moderate + self.high + self.critical


class Advisory(ScanModel):
    name: str
    severity: str
    title: str | None = None
    vulnerable_versions: str | None = None
    recommendation: str | None = None
    url: str | None = None
    cwe: list[str] = Field(default_factory=list)


class AuditReport(ToolReport):
    vulnerabilities: VulnerabilityCounts = Field(default_factory=VulnerabilityCounts)
    advisories: list[Advisory] = Field(default_factory=list)


class OutdatedPackage(ScanModel):
    name: str
    current: str | None = None
    wanted: str | None = None
    latest: str | None = None
    dependent: str | None = None
    risk_level: RiskLevel = RiskLevel.UNKNOWN


class OutdatedReport(ToolReport):
    packages: list[OutdatedPackage] = Field(default_factory=list)
    count: int = 0


class UnusedReport(ToolReport):
    packages: list[str] = Field(default_factory=list)
    dev_packages: list[str] = Field(default_factory=list)
    count: int = 0


class LicenseEntry(ScanModel):
    name: str
    version: str | None = None
    license: str


class LicenseReport(ToolReport):
    licenses: list[LicenseEntry] = Field(default_factory=list)
    count: int = 0


class SnykVulnerability(ScanModel):
    id: str
    title: str | None = None
    package: str | None = None
    version: str | None = None
    severity: str
    exploit_maturity: str | None = None
    upgrade_path: list[Any] = Field(default_factory=list)


class SnykSummary(ScanModel):
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class SnykReport(ToolReport):
    available: bool = False
    summary: SnykSummary = Field(default_factory=SnykSummary)
    vulnerabilities: list[SnykVulnerability] = Field(default_factory=list)


class BestPracticeIssue(ScanModel):
    name: str
    severity: Severity
    solution: str
    package: str | None = None
    version: str | None = None
    script: str | None = None
    command: str | None = None


class BestPracticeReport(ScanModel):
    issues: list[BestPracticeIssue] = Field(default_factory=list)
    count: int = 0


class DependencyResult(DomainResult):
    manifest_found: bool = False
    audit: AuditReport = Field(default_factory=AuditReport)
    outdated: OutdatedReport = Field(default_factory=OutdatedReport)
    unused: UnusedReport = Field(default_factory=UnusedReport)
    licenses: LicenseReport = Field(default_factory=LicenseReport)
    snyk: SnykReport = Field(default_factory=SnykReport)
    best_practices: BestPracticeReport = Field(default_factory=BestPracticeReport)
    security_score: int = 100
    recommendations: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Secrets
# ---------------------------------------------------------------------------


class EnvironmentVariables(ScanModel):
    used: list[str] = Field(default_factory=list)
    defined: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)


class SecretsResult(DomainResult):
    secrets: list[Issue] = Field(default_factory=list)
    environment_variables: EnvironmentVariables = Field(default_factory=EnvironmentVariables)


# ---------------------------------------------------------------------------
# Middlewares
# ---------------------------------------------------------------------------


class MiddlewareInfo(ScanModel):
    name: str
    description: str
    npm: str | None = None


class MiddlewareGroup(ScanModel):
    packages: list[MiddlewareInfo] = Field(default_factory=list)
    count: int = 0


class MiddlewareUsage(ScanModel):
    name: str
    files: list[FileLocation] = Field(default_factory=list)


class UsedMiddlewares(ScanModel):
    middlewares: list[MiddlewareUsage] = Field(default_factory=list)
    count: int = 0


class SessionAnalysis(ScanModel):
    file: str
    line: int | None = None
    issues: list[str] = Field(default_factory=list)


class MiddlewareResult(DomainResult):
    installed: MiddlewareGroup = Field(default_factory=MiddlewareGroup)
    missing: MiddlewareGroup = Field(default_factory=MiddlewareGroup)
    recommended: MiddlewareGroup = Field(default_factory=MiddlewareGroup)
    used: UsedMiddlewares = Field(default_factory=UsedMiddlewares)
    configuration_issues: list[Issue] = Field(default_factory=list)
    session_analysis: SessionAnalysis | None = None
    security_score: int = 0


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


class CorsStatus(str, Enum):
    NOT_DETECTED = "No CORS configuration detected"
    PERMISSIVE = "Permissive CORS (*) detected"
    RESTRICTED = "Restricted CORS"
    MANUAL = "Manual CORS configuration detected"


class CorsConfiguration(ScanModel):
    file: str
    line: int | None = None
    origin: str
    credentials: str
    context: str


class CorsResult(DomainResult):
    installed: bool = False
    detected: bool = False
    status: CorsStatus = CorsStatus.NOT_DETECTED
    issues: list[Issue] = Field(default_factory=list)
    configurations: list[CorsConfiguration] = Field(default_factory=list)
    manual_headers: bool = False
    helmet_used: bool = False
    security_score: int = 0
    recommendations: list[str] = Field(default_factory=list)
    recommended_config: str = ""


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------


class RateLimitStatus(str, Enum):
    NOT_DETECTED = "No rate limiting detected in code"
    CONFIGURED = "Rate limiting correctly configured"
    MISCONFIGURED = "Rate limiting detected but misconfigured or incomplete"


class PackageList(ScanModel):
    packages: list[str] = Field(default_factory=list)
    count: int = 0


class Occurrence(ScanModel):
    file: str
    line: int | None = None
    context: str | None = None


class Implementation(ScanModel):
    type: str
    occurrences: list[Occurrence] = Field(default_factory=list)


class DetectedImplementations(ScanModel):
    implementations: list[Implementation] = Field(default_factory=list)
    count: int = 0


class UnprotectedEndpoint(ScanModel):
    path: str
    method: str
    file: str
    line: int | None = None


class RateLimitIssues(ScanModel):
    configuration_problems: list[Issue] = Field(default_factory=list)
    unprotected_endpoints: list[UnprotectedEndpoint] = Field(default_factory=list)
    count: int = 0


class RateLimitResult(DomainResult):
    status: RateLimitStatus = RateLimitStatus.NOT_DETECTED
    installed: PackageList = Field(default_factory=PackageList)
    detected: DetectedImplementations = Field(default_factory=DetectedImplementations)
    issues: RateLimitIssues = Field(default_factory=RateLimitIssues)
    security_score: int = 0
    recommendations: list[str] = Field(default_factory=list)
    recommended_implementation: str = ""


# ---------------------------------------------------------------------------
# Injection, auth, input validation
# ---------------------------------------------------------------------------


class SqlInjectionResult(DomainResult):
    sql: list[Issue] = Field(default_factory=list)
    no_sql: list[Issue] = Field(default_factory=list)
    recommended_packages: list[str] = Field(default_factory=list)
    total: int = 0


class AuthResult(DomainResult):
    auth: list[Issue] = Field(default_factory=list)
    authorization: list[Issue] = Field(default_factory=list)
    packages: PackageRecommendations = Field(default_factory=PackageRecommendations)
    total: int = 0


class InputValidationResult(DomainResult):
    validation: list[Issue] = Field(default_factory=list)
    xss: list[Issue] = Field(default_factory=list)
    type_errors: list[Issue] = Field(default_factory=list)
    packages: PackageRecommendations = Field(default_factory=PackageRecommendations)
    total: int = 0


# ---------------------------------------------------------------------------
# CSRF and cookies
# ---------------------------------------------------------------------------


class CsrfProtection(ScanModel):
    csurf_installed: bool = False
    helmet_installed: bool = False
    helmet_configured: bool = False
    csrf_tokens_used: bool = False


class BestPractice(ScanModel):
    name: str
    description: str


class CsrfResult(DomainResult):
    issues: list[Issue] = Field(default_factory=list)
    protection: CsrfProtection = Field(default_factory=CsrfProtection)
    best_practices: list[BestPractice] = Field(default_factory=list)
    total: int = 0


class InstalledPackages(ScanModel):
    installed: list[str] = Field(default_factory=list)


class CookieConfigurations(ScanModel):
    cookie_parser: str | None = None
    session: str | None = None


class CookieResult(DomainResult):
    cookies: list[Issue] = Field(default_factory=list)
    management: list[Issue] = Field(default_factory=list)
    packages: InstalledPackages = Field(default_factory=InstalledPackages)
    configurations: CookieConfigurations = Field(default_factory=CookieConfigurations)
    best_practices: list[str] = Field(default_factory=list)
    total: int = 0


# ---------------------------------------------------------------------------
# Report input
# ---------------------------------------------------------------------------


class Stats(ScanModel):
    execution_time: float = 0.0
    total_issues: int = 0


class SecurityReportInput(ScanModel):
    """All ten domain results plus run statistics.

    Every domain key is always present; a domain that found nothing holds
    an empty result rather than being omitted.
    """

    dependencies: DependencyResult = Field(default_factory=DependencyResult)
    secrets: SecretsResult = Field(default_factory=SecretsResult)
    middlewares: MiddlewareResult = Field(default_factory=MiddlewareResult)
    cors: CorsResult = Field(default_factory=CorsResult)
    rate_limit: RateLimitResult = Field(default_factory=RateLimitResult)
    sql_injection: SqlInjectionResult = Field(default_factory=SqlInjectionResult)
    auth: AuthResult = Field(default_factory=AuthResult)
    input_validation: InputValidationResult = Field(default_factory=InputValidationResult)
    csrf: CsrfResult = Field(default_factory=CsrfResult)
    cookies: CookieResult = Field(default_factory=CookieResult)
    stats: Stats = Field(default_factory=Stats)
