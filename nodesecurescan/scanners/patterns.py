"""
Detection rules for regex-based analysis of Node.js / Express projects.

Each domain owns one or more ordered rule tables. A rule is a named
regular expression with a severity and remediation advice, plus optional
metadata:

- ``extract_group``: capture group whose value is extracted from a match
- ``threshold`` / ``report_when``: numeric filter applied to the extracted
  value (a match is only reported when the value is above/below threshold)
- ``env_marker``: the rule marks environment variable references, which
  are collected rather than reported

Rules tagged ``probe`` only detect the presence of a mechanism (CORS in
use, a rate limiter imported) and never become issues by themselves.

Regexes are compiled when the module is imported; a malformed pattern
raises ``RuleDefinitionError`` immediately.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from ..constants import RATE_LIMIT_MAX_THRESHOLD, RATE_LIMIT_WINDOW_THRESHOLD_MS
from ..core.exceptions import RuleDefinitionError


class Severity(str, Enum):
    """Severity levels for findings."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"


class ThresholdMode(str, Enum):
    """Which side of a threshold is reported."""

    ABOVE = "above"
    BELOW = "below"


class Priority(str, Enum):
    """Priority of a recommended security middleware."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


@dataclass(frozen=True)
class Rule:
    """A detection rule.

    Attributes:
        rule_id: Unique identifier (e.g., "CORS-001").
        name: Human-readable name, used as the issue name in results.
        pattern: Regular expression source.
        severity: Severity of a finding produced by this rule.
        remediation: Guidance on how to fix the detected issue.
        flags: ``re`` flags; rules are case-insensitive by default.
        extract_group: Capture group to extract from each match.
        threshold: Numeric threshold applied to the extracted value.
        report_when: Whether values above or below the threshold are reported.
        env_marker: Whether this rule marks environment variable references.
        tags: Additional classification tags.
    """

    rule_id: str
    name: str
    pattern: str
    severity: Severity = Severity.INFO
    remediation: str = ""
    flags: int = re.IGNORECASE
    extract_group: int | None = None
    threshold: int | None = None
    report_when: ThresholdMode | None = None
    env_marker: bool = False
    tags: tuple[str, ...] = ()
    regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            compiled = re.compile(self.pattern, self.flags)
        except re.error as e:
            raise RuleDefinitionError(self.rule_id, str(e)) from e

        if self.extract_group is not None and not 0 <= self.extract_group <= compiled.groups:
            raise RuleDefinitionError(
                self.rule_id,
                f"extract_group {self.extract_group} but pattern has {compiled.groups} groups",
            )
        if (self.threshold is None) != (self.report_when is None):
            raise RuleDefinitionError(self.rule_id, "threshold and report_when must be set together")
        if self.threshold is not None and self.extract_group is None:
            raise RuleDefinitionError(self.rule_id, "a threshold needs an extract_group")

        object.__setattr__(self, "regex", compiled)

    @property
    def is_probe(self) -> bool:
        return "probe" in self.tags

    def should_report(self, value: int | str | None) -> bool:
        """Apply the threshold filter to an extracted value.

        Rules without a threshold always report. A value that could not be
        extracted is reported as well.
        """
        if self.threshold is None or not isinstance(value, int):
            return True
        if self.report_when is ThresholdMode.ABOVE:
            return value > self.threshold
        return value < self.threshold


@dataclass(frozen=True)
class SecurityMiddleware:
    """A recommended Express security middleware."""

    name: str
    description: str
    priority: Priority
    npm: str


# ---------------------------------------------------------------------------
# Secrets
# ---------------------------------------------------------------------------

SECRET_RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="SEC-001",
        name="API Key",
        pattern=r"(['\"])?(api[_-]?key|auth[_-]?key|access[_-]?key)['\"]\s*[=:]\s*['\"]([a-zA-Z0-9_\-]{10,})['\"]",
        severity=Severity.HIGH,
        remediation="Move API keys to environment variables or a secrets manager",
    ),
    Rule(
        rule_id="SEC-002",
        name="Secret Key",
        pattern=r"(['\"])?(secret[_-]?key|client[_-]?secret)['\"]\s*[=:]\s*['\"]([a-zA-Z0-9_\-]{10,})['\"]",
        severity=Severity.HIGH,
        remediation="Move secret keys to environment variables or a secrets manager",
    ),
    Rule(
        rule_id="SEC-003",
        name="Password",
        pattern=r"(['\"])?(password|passwd|pwd)['\"]\s*[=:]\s*['\"]([^'\"]{4,})['\"]",
        severity=Severity.HIGH,
        remediation="Never hard-code passwords; load them from the environment",
    ),
    Rule(
        rule_id="SEC-004",
        name="Token",
        pattern=r"(['\"])?(token|jwt|auth[_-]?token)['\"]\s*[=:]\s*['\"]([a-zA-Z0-9_\-.+=]{10,})['\"]",
        severity=Severity.HIGH,
        remediation="Load tokens from environment variables and rotate the exposed one",
    ),
    Rule(
        rule_id="SEC-005",
        name="AWS Access Key",
        pattern=r"(['\"])?aws[_-]?access[_-]?key[_-]?id['\"]\s*[=:]\s*['\"]([A-Z0-9]{20})['\"]",
        severity=Severity.CRITICAL,
        remediation="Revoke the key in IAM and use instance roles or environment credentials",
    ),
    Rule(
        rule_id="SEC-006",
        name="AWS Secret Key",
        pattern=r"(['\"])?aws[_-]?secret[_-]?access[_-]?key['\"]\s*[=:]\s*['\"]([a-zA-Z0-9/+]{40})['\"]",
        severity=Severity.CRITICAL,
        remediation="Revoke the key in IAM and use instance roles or environment credentials",
    ),
    Rule(
        rule_id="SEC-007",
        name="Google API Key",
        pattern=r"(['\"])?AIza[0-9A-Za-z\-_]{35}['\"]",
        severity=Severity.CRITICAL,
        remediation="Restrict and rotate the Google API key, then load it from the environment",
    ),
    Rule(
        rule_id="SEC-008",
        name="Private Key",
        pattern=r"-----BEGIN\s+PRIVATE\s+KEY( BLOCK)?-----",
        severity=Severity.CRITICAL,
        remediation="Remove private keys from the repository and rotate them",
    ),
    Rule(
        rule_id="SEC-009",
        name="Firebase Key",
        pattern=r"(['\"])?firebase[_-]?api[_-]?key['\"]\s*[=:]\s*['\"]([a-zA-Z0-9_\-]{10,})['\"]",
        severity=Severity.HIGH,
        remediation="Load Firebase credentials from environment variables",
    ),
    Rule(
        rule_id="SEC-010",
        name="GitHub Token",
        pattern=r"(['\"])?github[_-]?token['\"]\s*[=:]\s*['\"]([a-zA-Z0-9_\-]{10,})['\"]",
        severity=Severity.HIGH,
        remediation="Revoke the GitHub token and load a new one from the environment",
    ),
    Rule(
        rule_id="SEC-011",
        name="MongoDB Connection String",
        pattern=r"mongodb(\+srv)?://[^:]+:[^@]+@[^/]+/[a-zA-Z0-9_-]+",
        severity=Severity.CRITICAL,
        remediation="Keep connection strings with credentials in environment variables",
    ),
    Rule(
        rule_id="SEC-012",
        name="Environment Variable",
        pattern=r"process\.env\.([A-Za-z0-9_]+)",
        severity=Severity.INFO,
        extract_group=1,
        env_marker=True,
    ),
)

ENV_DEFINITION_RULE = Rule(
    rule_id="SEC-ENV-DEF",
    name="Environment variable definition",
    pattern=r"^([A-Za-z0-9_]+)=",
    flags=re.MULTILINE,
    extract_group=1,
    tags=("probe",),
)


# ---------------------------------------------------------------------------
# Security middlewares
# ---------------------------------------------------------------------------

SECURITY_MIDDLEWARES: tuple[SecurityMiddleware, ...] = (
    SecurityMiddleware("helmet", "Sets various security-related HTTP headers", Priority.HIGH, "helmet"),
    SecurityMiddleware("cors", "Configures cross-origin resource sharing rules", Priority.HIGH, "cors"),
    SecurityMiddleware(
        "express-rate-limit",
        "Limits repeated requests to prevent brute-force attacks",
        Priority.HIGH,
        "express-rate-limit",
    ),
    SecurityMiddleware("csurf", "Protects against CSRF attacks", Priority.HIGH, "csurf"),
    SecurityMiddleware(
        "express-validator", "Validates and sanitizes user input", Priority.HIGH, "express-validator"
    ),
    SecurityMiddleware("xss-clean", "Strips malicious scripts from user input", Priority.HIGH, "xss-clean"),
    SecurityMiddleware("hpp", "Protects against HTTP parameter pollution", Priority.MEDIUM, "hpp"),
    SecurityMiddleware(
        "sanitize-html", "Removes dangerous tags and attributes from HTML", Priority.MEDIUM, "sanitize-html"
    ),
    SecurityMiddleware(
        "cookie-parser", "Parses cookies and exposes them on req.cookies", Priority.MEDIUM, "cookie-parser"
    ),
    SecurityMiddleware("express-session", "Session management for Express", Priority.MEDIUM, "express-session"),
    SecurityMiddleware(
        "express-mongo-sanitize",
        "Prevents MongoDB operator injection",
        Priority.MEDIUM,
        "express-mongo-sanitize",
    ),
    SecurityMiddleware(
        "content-security-policy",
        "Defines CSP rules that mitigate several injection attacks",
        Priority.MEDIUM,
        "helmet or csp",
    ),
    SecurityMiddleware("compression", "Compresses HTTP responses", Priority.LOW, "compression"),
    SecurityMiddleware("express-fileupload", "Handles file uploads", Priority.LOW, "express-fileupload"),
    SecurityMiddleware("timeout", "Sets a timeout on incoming requests", Priority.LOW, "connect-timeout"),
)

MIDDLEWARE_USAGE_RULES: tuple[Rule, ...] = (
    Rule("MW-USE-001", "helmet", r"app\.use\(\s*(helmet|require\(['\"]helmet['\"]\))\s*\(", tags=("probe",)),
    Rule("MW-USE-002", "cors", r"app\.use\(\s*(cors|require\(['\"]cors['\"]\))\s*\(", tags=("probe",)),
    Rule(
        "MW-USE-003",
        "express-rate-limit",
        r"(rateLimit|rateLimiter|limiter)\s*=\s*require\(['\"]express-rate-limit['\"]|app\.use\(\s*rateLimit",
        tags=("probe",),
    ),
    Rule(
        "MW-USE-004", "csurf", r"app\.use\(\s*(csrf|csurf|require\(['\"]csurf['\"]\))\s*\(", tags=("probe",)
    ),
    Rule(
        "MW-USE-005",
        "express-validator",
        r"require\(['\"]express-validator['\"]|check|body|validationResult",
        tags=("probe",),
    ),
    Rule(
        "MW-USE-006", "xss-clean", r"app\.use\(\s*(xss|require\(['\"]xss-clean['\"]\))\s*\(", tags=("probe",)
    ),
    Rule("MW-USE-007", "hpp", r"app\.use\(\s*(hpp|require\(['\"]hpp['\"]\))\s*\(", tags=("probe",)),
    Rule("MW-USE-008", "sanitize-html", r"require\(['\"]sanitize-html['\"]|sanitizeHtml", tags=("probe",)),
    Rule(
        "MW-USE-009",
        "express-mongo-sanitize",
        r"app\.use\(\s*(mongoSanitize|require\(['\"]express-mongo-sanitize['\"]\))\s*\(",
        tags=("probe",),
    ),
    Rule(
        "MW-USE-010",
        "content-security-policy",
        r"helmet\([^)]*\{\s*contentSecurityPolicy",
        tags=("probe",),
    ),
    Rule(
        "MW-USE-011",
        "compression",
        r"app\.use\(\s*(compression|require\(['\"]compression['\"]\))\s*\(",
        tags=("probe",),
    ),
)

MIDDLEWARE_CONFIG_RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="MW-CFG-001",
        name="Permissive CORS",
        pattern=r"cors\(\s*\{\s*origin\s*:\s*['\"`]\*['\"`]",
        severity=Severity.HIGH,
        remediation="Restrict CORS origins to specific domains instead of *",
    ),
    Rule(
        rule_id="MW-CFG-002",
        name="Weak rate limit",
        pattern=r"rateLimit\(\s*\{\s*(?:[^}]*\s*,\s*)?max\s*:\s*(\d+)",
        severity=Severity.MEDIUM,
        remediation="Use a more restrictive request limit (max < 100)",
    ),
    Rule(
        rule_id="MW-CFG-003",
        name="Helmet without CSP",
        pattern=r"helmet\(\s*\{\s*contentSecurityPolicy\s*:\s*false",
        severity=Severity.MEDIUM,
        remediation="Enable the Content Security Policy in helmet",
    ),
)

SESSION_CONFIG_PROBE = Rule("MW-PROBE-001", "express-session configuration", r"session\(\s*\{", tags=("probe",))


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

CORS_WILDCARD_RULE_ID = "CORS-001"

CORS_RULES: tuple[Rule, ...] = (
    Rule(
        rule_id=CORS_WILDCARD_RULE_ID,
        name="Permissive CORS with wildcard origin",
        pattern=r"cors\(\s*\{\s*origin\s*:\s*['\"`]\*['\"`]",
        severity=Severity.HIGH,
        remediation="Restrict CORS origins to specific domains using an array or a function",
    ),
    Rule(
        rule_id="CORS-002",
        name="CORS with credentials",
        pattern=r"cors\(\s*\{\s*(?:[^}]*\s*,\s*)?credentials\s*:\s*true",
        severity=Severity.MEDIUM,
        remediation="Only use credentials: true with explicit origins, never with *",
    ),
    Rule(
        rule_id="CORS-003",
        name="CORS with permissive methods",
        pattern=(
            r"cors\(\s*\{\s*(?:[^}]*\s*,\s*)?methods\s*:\s*['\"`]"
            r"(GET,\s*POST,\s*PUT,\s*DELETE,\s*PATCH|[^'\"]*\*[^'\"]*)['\"`]"
        ),
        severity=Severity.MEDIUM,
        remediation="Limit HTTP methods to the ones your API actually needs",
    ),
    Rule(
        rule_id="CORS-004",
        name="CORS with permissive allowedHeaders",
        pattern=r"cors\(\s*\{\s*(?:[^}]*\s*,\s*)?allowedHeaders\s*:\s*['\"`]\*['\"`]",
        severity=Severity.MEDIUM,
        remediation="List the allowed headers explicitly instead of using *",
    ),
)

CORS_USAGE_PROBE = Rule("CORS-PROBE-001", "cors() usage", r"cors\(", tags=("probe",))

CORS_MANUAL_HEADER_PROBE = Rule(
    "CORS-PROBE-002",
    "Manual CORS headers",
    r"res\.header\(['\"`](Access-Control-Allow-|Origin)",
    tags=("probe",),
)

HELMET_PROBE = Rule("CORS-PROBE-003", "helmet() usage", r"helmet\(", tags=("probe",))


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------

RATE_LIMIT_PACKAGES: tuple[str, ...] = (
    "express-rate-limit",
    "rate-limiter-flexible",
    "express-brute",
    "node-rate-limiter",
    "rate-limit-redis",
)


def _import_probe(rule_id: str, package: str) -> Rule:
    escaped = re.escape(package)
    return Rule(
        rule_id,
        package,
        rf"require\(['\"]{escaped}['\"]|import\s+.*\s+from\s+['\"]{escaped}['\"]",
        tags=("probe",),
    )


RATE_LIMIT_IMPLEMENTATION_RULES: tuple[Rule, ...] = (
    _import_probe("RL-IMPL-001", "express-rate-limit"),
    _import_probe("RL-IMPL-002", "rate-limiter-flexible"),
    _import_probe("RL-IMPL-003", "express-brute"),
    _import_probe("RL-IMPL-004", "node-rate-limiter"),
    _import_probe("RL-IMPL-005", "rate-limit-redis"),
    Rule("RL-IMPL-006", "custom-rate-limiter", r"function\s+(rateLimit|rateLimiter|limiter)", tags=("probe",)),
)

RATE_LIMIT_CONFIG_RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="RL-CFG-001",
        name="Permissive request limit",
        pattern=r"rateLimit\(\s*\{\s*(?:[^}]*\s*,\s*)?max\s*:\s*(\d+)",
        severity=Severity.MEDIUM,
        remediation=f"Lower max below {RATE_LIMIT_MAX_THRESHOLD} requests for sensitive endpoints",
        extract_group=1,
        threshold=RATE_LIMIT_MAX_THRESHOLD,
        report_when=ThresholdMode.ABOVE,
    ),
    Rule(
        rule_id="RL-CFG-002",
        name="Short rate limit window",
        pattern=r"rateLimit\(\s*\{\s*(?:[^}]*\s*,\s*)?windowMs\s*:\s*(\d+)",
        severity=Severity.LOW,
        remediation="Increase windowMs for better protection",
        extract_group=1,
        threshold=RATE_LIMIT_WINDOW_THRESHOLD_MS,
        report_when=ThresholdMode.BELOW,
    ),
    Rule(
        rule_id="RL-CFG-003",
        name="Missing rate limit message",
        pattern=r"rateLimit\(\s*\{\s*(?![^}]*message:)",
        severity=Severity.LOW,
        remediation="Add a custom message so clients know they are being rate limited",
    ),
)

ROUTE_DECLARATION_RULE = Rule(
    "RL-ROUTE-001",
    "Route declaration",
    r"app\.(get|post|put|delete|patch)\(\s*['\"`]([^'\"`]+)['\"`]",
    extract_group=2,
    tags=("probe",),
)

SENSITIVE_PATHS: tuple[str, ...] = (
    "/login",
    "/signin",
    "/register",
    "/signup",
    "/auth",
    "/reset-password",
    "/forgot-password",
    "/api/auth",
    "/api/login",
    "/api/signup",
)


# ---------------------------------------------------------------------------
# SQL / NoSQL injection
# ---------------------------------------------------------------------------

SQL_INJECTION_RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="SQL-001",
        name="Raw SQL query",
        pattern=r"\b(SELECT|INSERT|UPDATE|DELETE|CREATE|ALTER|DROP)\s+.*\s+FROM\s+",
        severity=Severity.MEDIUM,
        remediation="Use prepared statements with bound parameters",
    ),
    Rule(
        rule_id="SQL-002",
        name="SQL string concatenation",
        pattern=r"(con|connection|db|database|sql)\.query\(\s*['\"`].*?\$\{.*?\}",
        severity=Severity.HIGH,
        remediation="Use prepared statements with bound parameters instead of template interpolation",
    ),
    Rule(
        rule_id="SQL-003",
        name="SQL string concatenation",
        pattern=r"(con|connection|db|database|sql)\.query\(\s*['\"`].*?\s*\+\s*",
        severity=Severity.HIGH,
        remediation="Use prepared statements with bound parameters instead of string concatenation",
    ),
    Rule(
        rule_id="SQL-004",
        name="Raw query without validation",
        pattern=r"\braw\s*\(\s*['\"`].*?['\"`]",
        severity=Severity.MEDIUM,
        remediation="Validate every input before running raw SQL queries",
    ),
    Rule(
        rule_id="SQL-005",
        name="Sequelize raw query",
        pattern=r"sequelize\.query\(\s*['\"`]",
        severity=Severity.LOW,
        remediation="Prefer Sequelize model methods over raw queries",
    ),
)

NOSQL_INJECTION_RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="NOSQL-001",
        name="MongoDB find with unvalidated filter",
        pattern=r"\.(find|findOne)\(\s*\{\s*(\$where|\.\.)\s*:",
        severity=Severity.HIGH,
        remediation="Do not use $where or JavaScript expressions in MongoDB queries",
    ),
    Rule(
        rule_id="NOSQL-002",
        name="MongoDB find with request data",
        pattern=r"\.(find|findOne)\(\s*\{\s*[^:}]+\s*:\s*req\.(body|params|query)",
        severity=Severity.MEDIUM,
        remediation="Validate user input before using it in MongoDB queries",
    ),
    Rule(
        rule_id="NOSQL-003",
        name="MongoDB update filtered by request data",
        pattern=r"\.(updateOne|updateMany)\(\s*\{\s*[^:}]+\s*:\s*req\.(body|params|query)",
        severity=Severity.MEDIUM,
        remediation="Validate user input before using it in MongoDB update filters",
    ),
    Rule(
        rule_id="NOSQL-004",
        name="MongoDB $set from request data",
        pattern=r"\.(updateOne|updateMany)\([^{]*,\s*\{\s*\$set\s*:\s*req\.(body|params|query)",
        severity=Severity.HIGH,
        remediation="Never pass request data straight to $set; validate fields individually",
    ),
    Rule(
        rule_id="NOSQL-005",
        name="Mongoose query with request data",
        pattern=r"Model\s*\.\s*(find|findOne|findById)\s*\(\s*req\.(body|params|query)",
        severity=Severity.MEDIUM,
        remediation="Validate user input before using it in Mongoose queries",
    ),
)

SQL_RECOMMENDED_PACKAGES: tuple[str, ...] = (
    "express-validator",
    "joi",
    "yup",
    "validator",
    "sequelize",
    "mongoose",
    "mysql2",
    "pg",
    "sanitize-html",
)


# ---------------------------------------------------------------------------
# Authentication / authorization
# ---------------------------------------------------------------------------

AUTHENTICATION_RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="AUTH-001",
        name="Plaintext password comparison",
        pattern=r"\.(compare|matches?)\(\s*('|\"|`)?password('|\"|`)?\s*,",
        severity=Severity.HIGH,
        remediation="Hash passwords with bcrypt, argon2 or scrypt",
    ),
    Rule(
        rule_id="AUTH-002",
        name="Insecure session",
        pattern=r"app\.use\(\s*session\(\s*\{\s*(?!.*secure:.*true).*\}\s*\)\s*\)",
        severity=Severity.MEDIUM,
        remediation="Set secure: true on sessions in production",
    ),
    Rule(
        rule_id="AUTH-003",
        name="Session cookie without httpOnly",
        pattern=r"app\.use\(\s*session\(\s*\{\s*(?!.*httpOnly:.*true).*\}\s*\)\s*\)",
        severity=Severity.MEDIUM,
        remediation="Set httpOnly: true on session cookies",
    ),
    Rule(
        rule_id="AUTH-004",
        name="JWT signed without verification",
        pattern=r"jwt\.sign\(",
        severity=Severity.LOW,
        remediation="Make sure issued tokens are checked with jwt.verify()",
    ),
    Rule(
        rule_id="AUTH-005",
        name="Weak JWT secret",
        pattern=r"jwt\.sign\([^,]+,\s*['\"`][a-zA-Z0-9]{1,32}['\"`]",
        severity=Severity.HIGH,
        remediation="Use a strong JWT secret (32+ characters) stored in environment variables",
    ),
    Rule(
        rule_id="AUTH-006",
        name="Missing JWT expiration",
        pattern=r"jwt\.sign\([^)]*\)\s*;",
        severity=Severity.MEDIUM,
        remediation="Pass an expiresIn option so tokens expire",
    ),
    Rule(
        rule_id="AUTH-007",
        name="JWT decoded without validation",
        pattern=r"jwt\.decode\(",
        severity=Severity.HIGH,
        remediation="Use jwt.verify() instead of jwt.decode() to validate signatures",
    ),
    Rule(
        rule_id="AUTH-008",
        name="Custom authentication",
        pattern=r"function\s+(authenticate|login|signIn|check[A-Z][a-z]*Auth|isAuth)",
        severity=Severity.LOW,
        remediation="Consider a proven authentication library such as Passport.js",
    ),
    Rule(
        rule_id="AUTH-009",
        name="Role-based check",
        pattern=r"req\.(user|currentUser|auth)\.role",
        severity=Severity.INFO,
        remediation="Make sure user roles are validated correctly for authorization",
    ),
)

AUTHORIZATION_RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="AUTHZ-001",
        name="Missing authorization check",
        pattern=r"app\.(get|post|put|delete|patch)\(\s*['\"`][^'\"`]+['\"`]\s*,\s*(?!.*auth).*function",
        severity=Severity.MEDIUM,
        remediation="Add an authentication middleware to sensitive routes",
    ),
    Rule(
        rule_id="AUTHZ-002",
        name="Open API endpoint",
        pattern=r"app\.(get|post|put|delete|patch)\(\s*['\"`]/api/[^'\"`]+['\"`]\s*,\s*(?!.*auth).*function",
        severity=Severity.HIGH,
        remediation="Protect API endpoints with an authentication middleware",
    ),
    Rule(
        rule_id="AUTHZ-003",
        name="Authentication without authorization",
        pattern=r"\b(isAuth|isAuthenticated|authenticate|requireAuth)\b\s*\([^)]*\)",
        severity=Severity.INFO,
        remediation="Check permissions (roles) as well as authentication",
    ),
    Rule(
        rule_id="AUTHZ-004",
        name="Basic role authorization",
        pattern=r"req\.(user|currentUser)\.role\s*===\s*['\"`](admin|superuser)['\"`]",
        severity=Severity.LOW,
        remediation="Consider a capability-based or RBAC authorization library",
    ),
)

AUTH_RECOMMENDED_PACKAGES: tuple[str, ...] = (
    "bcrypt",
    "argon2",
    "jsonwebtoken",
    "passport",
    "express-jwt",
    "helmet",
    "express-rate-limit",
    "express-validator",
    "accesscontrol",
    "casl",
)


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

INPUT_VALIDATION_RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="VAL-001",
        name="Missing input validation",
        pattern=r"req\.(body|params|query)\.([a-zA-Z0-9_]+)",
        severity=Severity.MEDIUM,
        remediation="Validate user input with express-validator, Joi or another validator",
    ),
    Rule(
        rule_id="VAL-002",
        name="User input executed as code",
        pattern=r"(eval|Function|setTimeout|setInterval)\s*\(\s*req\.(body|params|query)",
        severity=Severity.CRITICAL,
        remediation="Never execute code coming from user input",
    ),
    Rule(
        rule_id="VAL-003",
        name="Destructuring without validation",
        pattern=r"const\s*\{\s*([^}]+)\s*\}\s*=\s*req\.(body|params|query)",
        severity=Severity.LOW,
        remediation="Validate input before destructuring it",
    ),
    Rule(
        rule_id="VAL-004",
        name="Missing sanitization",
        pattern=r"innerHTML\s*=\s*.*req\.(body|params|query)",
        severity=Severity.HIGH,
        remediation="Clean HTML with sanitize-html or DOMPurify",
    ),
    Rule(
        rule_id="VAL-005",
        name="Dynamic query with user input",
        pattern=r"db\.query\s*\(\s*.*req\.(body|params|query)",
        severity=Severity.HIGH,
        remediation="Use prepared statements and validate user input",
    ),
)

XSS_RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="XSS-001",
        name="Potential XSS",
        pattern=r"innerHTML\s*=|document\.write\s*\(",
        severity=Severity.HIGH,
        remediation="Use textContent or innerText, or clean HTML with sanitize-html",
    ),
    Rule(
        rule_id="XSS-002",
        name="Potential XSS through dangerouslySetInnerHTML",
        pattern=r"dangerouslySetInnerHTML\s*=\s*\{",
        severity=Severity.MEDIUM,
        remediation="Sanitize user input before passing it to dangerouslySetInnerHTML",
    ),
    Rule(
        rule_id="XSS-003",
        name="Missing HTML escaping",
        pattern=r"\.send\s*\(\s*.*req\.(body|params|query)",
        severity=Severity.MEDIUM,
        remediation="Escape HTML output or use a template engine that escapes automatically",
    ),
)

TYPE_VALIDATION_RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="TYPE-001",
        name="Unsafe type conversion",
        pattern=r"parseInt\s*\(\s*req\.(body|params|query)",
        severity=Severity.LOW,
        remediation="Call parseInt with an explicit radix, e.g. parseInt(value, 10)",
    ),
    Rule(
        rule_id="TYPE-002",
        name="Loose null comparison",
        pattern=r"==\s*null|null\s*==",
        severity=Severity.LOW,
        remediation="Use strict equality (===) instead of loose equality (==)",
    ),
)

VALIDATION_RECOMMENDED_PACKAGES: tuple[str, ...] = (
    "express-validator",
    "joi",
    "yup",
    "ajv",
    "validator",
    "zod",
    "sanitize-html",
    "dompurify",
    "xss",
)


# ---------------------------------------------------------------------------
# CSRF
# ---------------------------------------------------------------------------

CSRF_RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="CSRF-001",
        name="Missing CSRF middleware",
        pattern=r"app\.use\(\s*(?!.*csrf)",
        severity=Severity.HIGH,
        remediation="Use csurf or another CSRF protection middleware",
    ),
    Rule(
        rule_id="CSRF-002",
        name="POST route without CSRF protection",
        pattern=r"app\.post\(\s*['\"`][^'\"`]+['\"`]\s*,\s*(?!.*csrf)",
        severity=Severity.HIGH,
        remediation="Protect every POST route with a CSRF middleware",
    ),
    Rule(
        rule_id="CSRF-003",
        name="PUT route without CSRF protection",
        pattern=r"app\.put\(\s*['\"`][^'\"`]+['\"`]\s*,\s*(?!.*csrf)",
        severity=Severity.HIGH,
        remediation="Protect every PUT route with a CSRF middleware",
    ),
    Rule(
        rule_id="CSRF-004",
        name="DELETE route without CSRF protection",
        pattern=r"app\.delete\(\s*['\"`][^'\"`]+['\"`]\s*,\s*(?!.*csrf)",
        severity=Severity.HIGH,
        remediation="Protect every DELETE route with a CSRF middleware",
    ),
    Rule(
        rule_id="CSRF-005",
        name="fetch without CSRF token",
        pattern=r"fetch\(\s*['\"`][^'\"`]+['\"`]\s*,\s*\{\s*method\s*:\s*['\"`](POST|PUT|DELETE|PATCH)['\"`]",
        severity=Severity.MEDIUM,
        remediation="Send a CSRF-Token header with state-changing fetch requests",
    ),
    Rule(
        rule_id="CSRF-006",
        name="axios without CSRF token",
        pattern=r"axios\.(post|put|delete|patch)\(",
        severity=Severity.MEDIUM,
        remediation="Configure axios to send a CSRF-Token header on state-changing requests",
    ),
)

HELMET_CONFIG_PROBE = Rule("CSRF-PROBE-001", "helmet() configuration", r"helmet\(\s*\{", tags=("probe",))

CSRF_TOKEN_PROBE = Rule("CSRF-PROBE-002", "CSRF token usage", r"(csrf[tT]oken|CSRF[_\-]TOKEN)", tags=("probe",))


# ---------------------------------------------------------------------------
# Cookies
# ---------------------------------------------------------------------------

_COOKIE_CALL = r"cookie\s*\(\s*['\"`][^'\"`]+['\"`]\s*,\s*[^,]+\s*,\s*\{\s*"

COOKIE_RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="COOKIE-001",
        name="Cookie without httpOnly",
        pattern=_COOKIE_CALL + r"(?!.*httpOnly:.*true).*\}",
        severity=Severity.HIGH,
        remediation="Set httpOnly: true so scripts cannot read the cookie",
    ),
    Rule(
        rule_id="COOKIE-002",
        name="Cookie without secure",
        pattern=_COOKIE_CALL + r"(?!.*secure:.*true).*\}",
        severity=Severity.HIGH,
        remediation="Set secure: true so the cookie is only sent over HTTPS",
    ),
    Rule(
        rule_id="COOKIE-003",
        name="Cookie without sameSite",
        pattern=_COOKIE_CALL + r"(?!.*sameSite).*\}",
        severity=Severity.MEDIUM,
        remediation="Set sameSite to 'strict' or 'lax' to mitigate CSRF",
    ),
    Rule(
        rule_id="COOKIE-004",
        name="Cookie with long expiration",
        pattern=_COOKIE_CALL + r"maxAge\s*:\s*(\d{8,})",
        severity=Severity.MEDIUM,
        remediation="Shorten the lifetime of sensitive cookies (maxAge below 86400000 for sessions)",
    ),
    Rule(
        rule_id="COOKIE-005",
        name="Cookie with permissive domain",
        pattern=_COOKIE_CALL + r"domain\s*:\s*['\"`]\.[^'\"`]+['\"`]",
        severity=Severity.MEDIUM,
        remediation="Avoid leading-dot domains (.example.com) that cover every subdomain",
    ),
    Rule(
        rule_id="COOKIE-006",
        name="Session cookie without secure configuration",
        pattern=r"session\(\s*\{\s*(?!.*cookie:.*httpOnly:.*true).*\}\s*\)",
        severity=Severity.HIGH,
        remediation="Configure session cookies with httpOnly: true, secure: true and sameSite: 'strict'",
    ),
)

CLIENT_STORAGE_RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="STORAGE-001",
        name="document.cookie assignment",
        pattern=r"document\.cookie\s*=",
        severity=Severity.MEDIUM,
        remediation="Use a cookie library or the browser storage APIs",
    ),
    Rule(
        rule_id="STORAGE-002",
        name="Token stored in localStorage",
        pattern=r"localStorage\.setItem\(\s*['\"`][^'\"`]*token[^'\"`]*['\"`]",
        severity=Severity.HIGH,
        remediation="Do not keep authentication tokens in localStorage; use httpOnly cookies",
    ),
    Rule(
        rule_id="STORAGE-003",
        name="Token stored in sessionStorage",
        pattern=r"sessionStorage\.setItem\(\s*['\"`][^'\"`]*token[^'\"`]*['\"`]",
        severity=Severity.MEDIUM,
        remediation="Prefer httpOnly cookies over tokens kept in sessionStorage",
    ),
)

COOKIE_PARSER_PROBE = Rule("COOKIE-PROBE-001", "cookie-parser setup", r"app\.use\(\s*cookieParser\(", tags=("probe",))

SESSION_SETUP_PROBE = Rule("COOKIE-PROBE-002", "express-session setup", r"app\.use\(\s*session\(\s*\{", tags=("probe",))

COOKIE_PACKAGES: tuple[str, ...] = (
    "cookie-parser",
    "cookie-session",
    "express-session",
    "js-cookie",
    "universal-cookie",
)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

RULE_REGISTRY: dict[str, tuple[Rule, ...]] = {
    "secrets": SECRET_RULES,
    "middlewares.usage": MIDDLEWARE_USAGE_RULES,
    "middlewares.configuration": MIDDLEWARE_CONFIG_RULES,
    "cors": CORS_RULES,
    "rateLimit.implementation": RATE_LIMIT_IMPLEMENTATION_RULES,
    "rateLimit.configuration": RATE_LIMIT_CONFIG_RULES,
    "sqlInjection.sql": SQL_INJECTION_RULES,
    "sqlInjection.noSql": NOSQL_INJECTION_RULES,
    "auth.authentication": AUTHENTICATION_RULES,
    "auth.authorization": AUTHORIZATION_RULES,
    "inputValidation.validation": INPUT_VALIDATION_RULES,
    "inputValidation.xss": XSS_RULES,
    "inputValidation.typeErrors": TYPE_VALIDATION_RULES,
    "csrf": CSRF_RULES,
    "cookies.cookies": COOKIE_RULES,
    "cookies.management": CLIENT_STORAGE_RULES,
    "probes": (
        ENV_DEFINITION_RULE,
        SESSION_CONFIG_PROBE,
        CORS_USAGE_PROBE,
        CORS_MANUAL_HEADER_PROBE,
        HELMET_PROBE,
        ROUTE_DECLARATION_RULE,
        HELMET_CONFIG_PROBE,
        CSRF_TOKEN_PROBE,
        COOKIE_PARSER_PROBE,
        SESSION_SETUP_PROBE,
    ),
}

ALL_RULES: tuple[Rule, ...] = tuple(rule for rules in RULE_REGISTRY.values() for rule in rules)

_RULE_INDEX: dict[str, Rule] = {rule.rule_id: rule for rule in ALL_RULES}


def get_rule_by_id(rule_id: str) -> Rule | None:
    """Look up a rule by its ID.

    Args:
        rule_id: The unique rule identifier (e.g., "CORS-001").

    Returns:
        The Rule if found, None otherwise.
    """
    return _RULE_INDEX.get(rule_id)


def get_rules(group: str) -> tuple[Rule, ...]:
    """Get the ordered rule table registered under *group*.

    Raises:
        KeyError: If the group is not registered.
    """
    return RULE_REGISTRY[group]


def get_rules_by_severity(severity: Severity) -> list[Rule]:
    """Get all non-probe rules at a given severity level."""
    return [r for r in ALL_RULES if r.severity == severity and not r.is_probe]
