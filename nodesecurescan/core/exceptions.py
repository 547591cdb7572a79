"""Custom exception hierarchy for NodeSecureScan.

Recoverable conditions (unreadable files, a broken manifest, a failing
external tool) are raised close to where they happen and converted into
log entries or result sub-objects by the caller. Rule definition errors
are programmer errors and are allowed to propagate.
"""


class NodeSecureScanError(Exception):
    """Base exception for all NodeSecureScan errors."""
    pass


# =============================================================================
# Scanner Errors
# =============================================================================

class ScannerError(NodeSecureScanError):
    """Base exception for scanner-related errors."""
    pass


class CorpusError(ScannerError):
    """A source file could not be listed or read."""
    pass


class ManifestError(ScannerError):
    """package.json is unreadable or is not a JSON object."""
    pass


class DomainScanError(ScannerError):
    """A domain aggregator failed as a whole."""

    def __init__(self, domain: str, message: str):
        super().__init__(f"{domain}: {message}")
        self.domain = domain


# =============================================================================
# Rule Errors
# =============================================================================

class RuleDefinitionError(NodeSecureScanError):
    """A detection rule is malformed (invalid regex, bad capture group)."""

    def __init__(self, rule_id: str, message: str):
        super().__init__(f"Invalid rule {rule_id}: {message}")
        self.rule_id = rule_id


# =============================================================================
# External Tool Errors
# =============================================================================

class ExternalToolError(NodeSecureScanError):
    """An external command (npm, depcheck, snyk) failed."""

    def __init__(self, message: str, tool: str | None = None, details: str | None = None):
        super().__init__(message)
        self.tool = tool
        self.details = details


class ToolNotFoundError(ExternalToolError):
    """The external command is not installed or not on PATH."""
    pass


class ToolTimeoutError(ExternalToolError):
    """The external command did not finish in time."""
    pass


class ToolOutputError(ExternalToolError):
    """The external command produced output that could not be parsed."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(NodeSecureScanError):
    """Base exception for configuration errors."""
    pass


class InvalidConfigError(ConfigurationError):
    """Configuration file is invalid or malformed."""
    pass


# =============================================================================
# Report Errors
# =============================================================================

class ReportError(NodeSecureScanError):
    """The report artifact could not be written."""
    pass
