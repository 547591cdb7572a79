"""Tests for the rate limiting domain."""

import pytest

from nodesecurescan.scanners.domains.rate_limit import RateLimitScanner, is_sensitive_path, protection_rule
from nodesecurescan.scanners.models import RateLimitStatus

LIMITER_IMPORT = "const rateLimit = require('express-rate-limit');\n"


class TestRateLimitThresholds:
    """Test the max / windowMs threshold filters."""

    def test_low_max_is_not_reported(self, make_project) -> None:
        root = make_project(
            {"app.js": LIMITER_IMPORT + "const limiter = rateLimit({ max: 50, message: 'Too many requests' });\n"}
        )

        result = RateLimitScanner().scan(root)

        assert result.issues.configuration_problems == []
        assert result.status is RateLimitStatus.CONFIGURED

    def test_high_max_is_reported(self, make_project) -> None:
        root = make_project(
            {"app.js": LIMITER_IMPORT + "const limiter = rateLimit({ max: 500, message: 'Too many requests' });\n"}
        )

        result = RateLimitScanner().scan(root)

        [problem] = result.issues.configuration_problems
        assert problem.rule_id == "RL-CFG-001"
        assert problem.value == 500
        assert problem.line == 2
        assert result.status is RateLimitStatus.MISCONFIGURED

    def test_short_window_is_reported(self, make_project) -> None:
        root = make_project(
            {"app.js": LIMITER_IMPORT + "rateLimit({ windowMs: 1000, max: 10, message: 'slow down' });\n"}
        )

        result = RateLimitScanner().scan(root)

        assert [(p.rule_id, p.value) for p in result.issues.configuration_problems] == [("RL-CFG-002", 1000)]

    def test_missing_message(self, make_project) -> None:
        root = make_project({"app.js": LIMITER_IMPORT + "rateLimit({ max: 10 });\n"})

        result = RateLimitScanner().scan(root)

        assert [p.rule_id for p in result.issues.configuration_problems] == ["RL-CFG-003"]


class TestRateLimitDetection:
    """Test package and implementation detection."""

    def test_declared_but_unused(self, make_project) -> None:
        root = make_project(
            {"app.js": "app.get('/', (req, res) => res.send('ok'));\n"},
            manifest={"dependencies": {"express": "4.18.2", "express-rate-limit": "7.1.0"}},
        )

        result = RateLimitScanner().scan(root)

        assert result.installed.packages == ["express-rate-limit"]
        assert result.installed.count == 1
        assert result.detected.count == 0
        assert result.status is RateLimitStatus.NOT_DETECTED
        assert result.status.value == "No rate limiting detected in code"
        assert result.security_score == 0

    def test_implementations(self, make_project) -> None:
        root = make_project(
            {
                "a.js": LIMITER_IMPORT,
                "b.ts": "import { RateLimiterMemory } from 'rate-limiter-flexible';\n",
                "c.js": "function limiter(req, res, next) { next(); }\n",
            }
        )

        result = RateLimitScanner().scan(root)

        assert [i.type for i in result.detected.implementations] == [
            "express-rate-limit",
            "rate-limiter-flexible",
            "custom-rate-limiter",
        ]
        assert result.detected.implementations[0].occurrences[0].file == "a.js"


class TestUnprotectedEndpoints:
    """Test sensitive route coverage."""

    ROUTES = (
        LIMITER_IMPORT
        + "app.post('/login', (req, res) => {});\n"
        + "app.post('/api/signup', handler);\n"
        + "app.post('/comments', handler);\n"
        + "app.get('/register', showForm);\n"
    )

    def test_sensitive_post_routes(self, make_project) -> None:
        root = make_project({"routes.js": self.ROUTES})

        result = RateLimitScanner().scan(root)

        endpoints = result.issues.unprotected_endpoints
        assert [(e.path, e.method, e.line) for e in endpoints] == [("/login", "POST", 2), ("/api/signup", "POST", 3)]
        assert result.issues.count == 2
        assert result.status is RateLimitStatus.MISCONFIGURED

    def test_limiter_on_path_protects_route(self, make_project) -> None:
        root = make_project({"routes.js": self.ROUTES + "app.use('/login', limiter);\n"})

        result = RateLimitScanner().scan(root)

        assert [e.path for e in result.issues.unprotected_endpoints] == ["/api/signup"]

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("/login", True),
            ("/api/auth/refresh", True),
            ("/authors", False),
            ("/products", False),
        ],
    )
    def test_is_sensitive_path(self, path: str, expected: bool) -> None:
        assert is_sensitive_path(path) is expected

    def test_protection_rule_escapes_path(self) -> None:
        rule = protection_rule("/api/v1.0/login", "POST")

        assert rule.regex.search("app.post('/api/v1.0/login', limiter, handler)")
        assert not rule.regex.search("app.post('/api/v1x0/login', limiter, handler)")


class TestRateLimitScore:
    """Test the domain score."""

    def test_configured_project(self, make_project) -> None:
        root = make_project(
            {"app.js": LIMITER_IMPORT + "app.use(rateLimit({ windowMs: 900000, max: 50, message: 'slow' }));\n"},
            manifest={"dependencies": {"express-rate-limit": "7.1.0"}},
        )

        result = RateLimitScanner().scan(root)

        assert result.status is RateLimitStatus.CONFIGURED
        assert result.security_score == 55
