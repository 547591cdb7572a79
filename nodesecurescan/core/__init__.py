"""Core utilities: the exception hierarchy shared by every scanner."""

from .exceptions import (
    ConfigurationError,
    CorpusError,
    DomainScanError,
    ExternalToolError,
    InvalidConfigError,
    ManifestError,
    NodeSecureScanError,
    ReportError,
    RuleDefinitionError,
    ScannerError,
    ToolNotFoundError,
    ToolOutputError,
    ToolTimeoutError,
)

__all__ = [
    "ConfigurationError",
    "CorpusError",
    "DomainScanError",
    "ExternalToolError",
    "InvalidConfigError",
    "ManifestError",
    "NodeSecureScanError",
    "ReportError",
    "RuleDefinitionError",
    "ScannerError",
    "ToolNotFoundError",
    "ToolOutputError",
    "ToolTimeoutError",
]
