"""
Dependency analysis.

Combines several external tools, each reported in its own sub-object:

- ``npm audit`` for known vulnerabilities (npm 6 and npm 7+ layouts)
- ``npm outdated`` with a risk level per package from the version gap
- ``depcheck`` for unused dependencies
- ``npm ls --long`` for licenses
- ``snyk test`` when the snyk CLI is available

A failing tool only marks its own sub-object as unsuccessful. Manifest
best practices (unpinned versions, compound npm scripts) are checked
without any tool.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from packaging.version import InvalidVersion, Version

from ...core.exceptions import ExternalToolError, ToolOutputError
from ...scoring import dependency_score
from ..manifest import read_manifest
from ..matcher import PatternMatcher
from ..models import (
    Advisory,
    AuditReport,
    BestPracticeIssue,
    BestPracticeReport,
    DependencyResult,
    LicenseEntry,
    LicenseReport,
    OutdatedPackage,
    OutdatedReport,
    RiskLevel,
    SnykReport,
    SnykSummary,
    SnykVulnerability,
    ToolReport,
    UnusedReport,
    VulnerabilityCounts,
)
from ..patterns import Severity
from ..tools import ToolRunner
from .base import DomainScanner

logger = logging.getLogger(__name__)

ReportT = TypeVar("ReportT", bound=ToolReport)

MANIFEST_NOT_FOUND = "package.json not found"

DEPENDENCY_RECOMMENDATIONS = [
    "Update your dependencies regularly",
    "Run npm audit or snyk regularly",
    "Pin exact dependency versions",
    "Use a lockfile (package-lock.json)",
    "Review the licenses of your dependencies",
    "Remove unused dependencies",
]

SCRIPT_OPERATORS = ("&&", "||", ";")


def calculate_risk_level(current: str | None, latest: str | None) -> RiskLevel:
    """Risk of an outdated package from the gap between two versions.

    A major gap of 2 or more is HIGH (1 is MEDIUM), a minor gap of 5 or
    more is MEDIUM (else LOW), a patch gap of 10 or more is LOW (else
    INFO). Missing or unparsable versions are UNKNOWN.
    """
    if not current or not latest:
        return RiskLevel.UNKNOWN

    try:
        installed, newest = Version(current), Version(latest)
    except InvalidVersion:
        return RiskLevel.UNKNOWN

    if installed.major < newest.major:
        return RiskLevel.HIGH if newest.major - installed.major >= 2 else RiskLevel.MEDIUM
    if installed.minor < newest.minor:
        return RiskLevel.MEDIUM if newest.minor - installed.minor >= 5 else RiskLevel.LOW
    if installed.micro < newest.micro:
        return RiskLevel.LOW if newest.micro - installed.micro >= 10 else RiskLevel.INFO
    return RiskLevel.NONE


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]


def parse_audit(data: dict[str, Any]) -> AuditReport:
    """Parse ``npm audit --json`` output (npm 6 ``advisories`` or npm 7+ ``vulnerabilities``)."""
    if "error" in data:
        error = data["error"]
        summary = error.get("summary") if isinstance(error, dict) else str(error)
        raise ToolOutputError("npm audit reported an error", tool="npm", details=summary)

    metadata = data.get("metadata", {}).get("vulnerabilities", {})
    counts = VulnerabilityCounts(
        **{level: int(metadata.get(level, 0) or 0) for level in VulnerabilityCounts.model_fields}
    )

    advisories: list[Advisory] = []
    if isinstance(data.get("advisories"), dict):
        for advisory in data["advisories"].values():
            advisories.append(
                Advisory(
                    name=advisory.get("module_name", ""),
                    severity=advisory.get("severity", "unknown"),
                    title=advisory.get("title"),
                    vulnerable_versions=advisory.get("vulnerable_versions"),
                    recommendation=advisory.get("recommendation"),
                    url=advisory.get("url"),
                    cwe=_as_list(advisory.get("cwe")),
                )
            )
    elif isinstance(data.get("vulnerabilities"), dict):
        for name, vulnerability in data["vulnerabilities"].items():
            sources = [v for v in vulnerability.get("via", []) if isinstance(v, dict)]
            first = sources[0] if sources else {}
            advisories.append(
                Advisory(
                    name=vulnerability.get("name", name),
                    severity=vulnerability.get("severity", "unknown"),
                    title=first.get("title"),
                    vulnerable_versions=vulnerability.get("range"),
                    recommendation=_fix_recommendation(vulnerability.get("fixAvailable")),
                    url=first.get("url"),
                    cwe=[cwe for source in sources for cwe in _as_list(source.get("cwe"))],
                )
            )

    return AuditReport(success=True, vulnerabilities=counts, advisories=advisories)


def _fix_recommendation(fix: Any) -> str | None:
    if isinstance(fix, dict) and fix.get("name"):
        return f"Update to {fix['name']}@{fix.get('version', 'latest')}"
    if fix is True:
        return "Run npm audit fix"
    return None


def parse_outdated(data: dict[str, Any]) -> OutdatedReport:
    packages = []
    for name, info in data.items():
        if not isinstance(info, dict):
            continue
        packages.append(
            OutdatedPackage(
                name=name,
                current=info.get("current"),
                wanted=info.get("wanted"),
                latest=info.get("latest"),
                dependent=info.get("dependent"),
                risk_level=calculate_risk_level(info.get("current"), info.get("latest")),
            )
        )
    return OutdatedReport(success=True, packages=packages, count=len(packages))


def extract_licenses(dependencies: dict[str, Any] | None) -> list[LicenseEntry]:
    """Walk an ``npm ls --json --long`` dependency tree collecting licenses."""
    if not dependencies:
        return []

    entries: list[LicenseEntry] = []
    for name, info in dependencies.items():
        if not isinstance(info, dict):
            continue

        license_value = info.get("license") or info.get("licenses")
        if isinstance(license_value, list):
            license_value = ", ".join(
                str(item.get("type", item)) if isinstance(item, dict) else str(item) for item in license_value
            )
        elif isinstance(license_value, dict):
            license_value = license_value.get("type")

        if license_value:
            entries.append(LicenseEntry(name=name, version=info.get("version"), license=str(license_value)))

        entries.extend(extract_licenses(info.get("dependencies")))
    return entries


def check_best_practices(manifest: dict[str, Any]) -> BestPracticeReport:
    """Flag unpinned dependency versions and compound npm scripts."""
    issues: list[BestPracticeIssue] = []

    dependencies = manifest.get("dependencies")
    if isinstance(dependencies, dict):
        for package, version in dependencies.items():
            if isinstance(version, str) and version.startswith(("^", "~")):
                issues.append(
                    BestPracticeIssue(
                        name="Unpinned version",
                        severity=Severity.LOW,
                        package=package,
                        version=version,
                        solution=(
                            f'Pin the exact version by removing the ^ or ~ prefix (e.g. "{package}": "{version[1:]}")'
                        ),
                    )
                )

    scripts = manifest.get("scripts")
    if isinstance(scripts, dict):
        for script, command in scripts.items():
            if isinstance(command, str) and any(op in command for op in SCRIPT_OPERATORS):
                issues.append(
                    BestPracticeIssue(
                        name="Complex npm script",
                        severity=Severity.INFO,
                        script=script,
                        command=command,
                        solution="Consider moving complex commands into a separate script file",
                    )
                )

    return BestPracticeReport(issues=issues, count=len(issues))


class DependencyScanner(DomainScanner):
    """Audits declared npm dependencies with external tools."""

    domain = "dependencies"

    def __init__(self, runner: ToolRunner | None = None, matcher: PatternMatcher | None = None) -> None:
        super().__init__(matcher)
        self.runner = runner or ToolRunner()

    def _scan(self, project_root: Path) -> DependencyResult:
        manifest = read_manifest(project_root)
        if manifest is None:
            return DependencyResult(
                manifest_found=False,
                audit=AuditReport(error=MANIFEST_NOT_FOUND),
                outdated=OutdatedReport(error=MANIFEST_NOT_FOUND),
                unused=UnusedReport(error=MANIFEST_NOT_FOUND),
                licenses=LicenseReport(error=MANIFEST_NOT_FOUND),
                snyk=SnykReport(error=MANIFEST_NOT_FOUND),
                security_score=dependency_score(0, 0, 0, 0),
                recommendations=list(DEPENDENCY_RECOMMENDATIONS),
            )

        audit = self._run_tool("npm audit", self.npm_audit, project_root, AuditReport)
        outdated = self._run_tool("npm outdated", self.npm_outdated, project_root, OutdatedReport)
        unused = self._run_tool("depcheck", self.depcheck, project_root, UnusedReport)
        licenses = self._run_tool("npm ls", self.npm_licenses, project_root, LicenseReport)
        snyk = self._run_tool("snyk", self.snyk, project_root, SnykReport)

        counts = audit.vulnerabilities
        score = dependency_score(
            counts.critical,
            counts.high,
            counts.moderate,
            counts.low,
            outdated_high=sum(1 for p in outdated.packages if p.risk_level is RiskLevel.HIGH),
            outdated_medium=sum(1 for p in outdated.packages if p.risk_level is RiskLevel.MEDIUM),
        )

        return DependencyResult(
            manifest_found=True,
            audit=audit,
            outdated=outdated,
            unused=unused,
            licenses=licenses,
            snyk=snyk,
            best_practices=check_best_practices(manifest),
            security_score=score,
            recommendations=list(DEPENDENCY_RECOMMENDATIONS),
        )

    def _run_tool(
        self,
        name: str,
        analysis: Callable[[Path], ReportT],
        project_root: Path,
        report_type: type[ReportT],
    ) -> ReportT:
        try:
            return analysis(project_root)
        except ExternalToolError as e:
            logger.warning(
                f"{name} failed: {e}",
                extra={"event": "tool_failed", "tool": name, "error": str(e)},
            )
            return report_type(success=False, error=f"{name} failed", details=e.details or str(e))

    def npm_audit(self, project_root: Path) -> AuditReport:
        return parse_audit(self.runner.run_json_object(["npm", "audit", "--json"], cwd=project_root))

    def npm_outdated(self, project_root: Path) -> OutdatedReport:
        return parse_outdated(self.runner.run_json_object(["npm", "outdated", "--json"], cwd=project_root))

    def depcheck(self, project_root: Path) -> UnusedReport:
        data = self.runner.run_json_object(["depcheck", str(project_root), "--json"])
        unused = _as_list(data.get("dependencies"))
        return UnusedReport(
            success=True,
            packages=unused,
            dev_packages=_as_list(data.get("devDependencies")),
            count=len(unused),
        )

    def npm_licenses(self, project_root: Path) -> LicenseReport:
        data = self.runner.run_json_object(["npm", "ls", "--json", "--long"], cwd=project_root)
        licenses = extract_licenses(data.get("dependencies"))
        return LicenseReport(success=True, licenses=licenses, count=len(licenses))

    def snyk(self, project_root: Path) -> SnykReport:
        if not self.runner.is_available(["snyk", "--version"]):
            return SnykReport(available=False, error="snyk is not installed or not reachable")

        data = self.runner.run_json_object(["snyk", "test", "--json"], cwd=project_root)
        if data.get("error"):
            raise ToolOutputError("snyk test reported an error", tool="snyk", details=str(data["error"]))

        vulnerabilities = [
            SnykVulnerability(
                id=v.get("id", ""),
                title=v.get("title"),
                package=v.get("packageName") or v.get("package"),
                version=v.get("version"),
                severity=v.get("severity", "unknown"),
                exploit_maturity=v.get("exploitMaturity"),
                upgrade_path=v.get("upgradePath") or [],
            )
            for v in data.get("vulnerabilities", [])
        ]
        summary = SnykSummary(
            **{level: sum(1 for v in vulnerabilities if v.severity == level) for level in SnykSummary.model_fields}
        )
        return SnykReport(success=True, available=True, summary=summary, vulnerabilities=vulnerabilities)
