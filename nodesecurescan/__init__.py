"""NodeSecureScan: regex-based security scanner for Node.js / Express projects."""

__version__ = "1.0.0"

from .engine import SecurityScanEngine, default_scanners
from .scanners.models import SecurityReportInput
from .scoring import DEFAULT_WEIGHTS, ScoreWeights, calculate_security_score

__all__ = [
    "DEFAULT_WEIGHTS",
    "ScoreWeights",
    "SecurityReportInput",
    "SecurityScanEngine",
    "__version__",
    "calculate_security_score",
    "default_scanners",
]
