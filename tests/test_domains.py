"""Tests for the injection, auth, input validation, CSRF and cookie domains."""

from nodesecurescan.scanners.domains import (
    AuthScanner,
    CookieScanner,
    CsrfScanner,
    InputValidationScanner,
    SqlInjectionScanner,
)
from nodesecurescan.scanners.patterns import SQL_RECOMMENDED_PACKAGES, VALIDATION_RECOMMENDED_PACKAGES, Rule, Severity


class TestSqlInjectionScanner:
    """Test SqlInjectionScanner."""

    def test_sql_and_nosql(self, make_project) -> None:
        root = make_project(
            {
                "users.js": (
                    "db.query(`SELECT * FROM users WHERE id = ${req.params.id}`);\n"
                    "const user = await User.findOne({ email: req.body.email });\n"
                ),
            }
        )

        result = SqlInjectionScanner().scan(root)

        assert [i.rule_id for i in result.sql] == ["SQL-001", "SQL-002"]
        assert [i.rule_id for i in result.no_sql] == ["NOSQL-002"]
        assert result.total == 3
        assert result.sql[1].severity == Severity.HIGH
        assert result.recommended_packages == list(SQL_RECOMMENDED_PACKAGES)

    def test_string_concatenation(self, make_project) -> None:
        root = make_project({"q.js": "connection.query('DELETE FROM t WHERE id = ' + id);\n"})

        result = SqlInjectionScanner().scan(root)

        assert "SQL-003" in [i.rule_id for i in result.sql]

    def test_clean_code(self, make_project) -> None:
        root = make_project({"q.js": "const rows = await db.execute(stmt, [id]);\n"})

        result = SqlInjectionScanner().scan(root)

        assert result.sql == []
        assert result.no_sql == []
        assert result.total == 0


class TestAuthScanner:
    """Test AuthScanner."""

    def test_jwt_weaknesses(self, make_project) -> None:
        root = make_project(
            {
                "auth.js": (
                    "const token = jwt.sign({ id: user.id }, 'secret');\n"
                    "const payload = jwt.decode(token);\n"
                ),
            },
            manifest={"dependencies": {"bcrypt": "5.1.0", "jsonwebtoken": "9.0.0"}},
        )

        result = AuthScanner().scan(root)

        ids = [i.rule_id for i in result.auth]
        assert ids == ["AUTH-004", "AUTH-005", "AUTH-006", "AUTH-007"]
        assert result.packages.installed == ["bcrypt", "jsonwebtoken"]
        assert "bcrypt" not in result.packages.recommended
        assert "passport" in result.packages.recommended

    def test_unprotected_api_route(self, make_project) -> None:
        root = make_project({"routes.js": "app.get('/api/users', function (req, res) {\n});\n"})

        result = AuthScanner().scan(root)

        assert [i.rule_id for i in result.authorization] == ["AUTHZ-001", "AUTHZ-002"]
        assert result.total == len(result.auth) + len(result.authorization)

    def test_route_with_auth_middleware(self, make_project) -> None:
        root = make_project({"routes.js": "app.get('/api/users', requireAuth, function (req, res) {\n});\n"})

        result = AuthScanner().scan(root)

        assert "AUTHZ-002" not in [i.rule_id for i in result.authorization]


class TestInputValidationScanner:
    """Test InputValidationScanner."""

    def test_findings_by_category(self, make_project) -> None:
        root = make_project(
            {
                "search.js": (
                    "app.get('/search', (req, res) => {\n"
                    "  res.send(req.query.q);\n"
                    "});\n"
                    "eval(req.body.code);\n"
                    "if (value == null) {}\n"
                ),
            }
        )

        result = InputValidationScanner().scan(root)

        assert [i.rule_id for i in result.validation] == ["VAL-001", "VAL-002"]
        assert [i.rule_id for i in result.xss] == ["XSS-003"]
        assert [i.rule_id for i in result.type_errors] == ["TYPE-002"]
        assert result.total == 4
        assert result.validation[1].severity == Severity.CRITICAL

    def test_packages_without_manifest(self, make_project) -> None:
        result = InputValidationScanner().scan(make_project())

        assert result.packages.installed == []
        assert result.packages.recommended == list(VALIDATION_RECOMMENDED_PACKAGES)
        assert result.total == 0


class TestCsrfScanner:
    """Test CsrfScanner."""

    def test_unprotected_routes(self, make_project) -> None:
        root = make_project(
            {
                "app.js": (
                    "app.use(express.json());\n"
                    "app.post('/transfer', (req, res) => {});\n"
                    "app.delete('/account', remove);\n"
                ),
            }
        )

        result = CsrfScanner().scan(root)

        assert [i.rule_id for i in result.issues] == ["CSRF-001", "CSRF-002", "CSRF-004"]
        assert result.total == 3
        assert result.protection.csurf_installed is False
        assert len(result.best_practices) == 4

    def test_protection_flags(self, make_project) -> None:
        root = make_project(
            {"app.js": "app.use(helmet({ frameguard: false }));\nres.locals.csrfToken = req.csrfToken();\n"},
            manifest={"dependencies": {"helmet": "7.0.0", "csurf": "1.11.0"}},
        )

        protection = CsrfScanner().scan(root).protection

        assert protection.csurf_installed is True
        assert protection.helmet_installed is True
        assert protection.helmet_configured is True
        assert protection.csrf_tokens_used is True

    def test_helmet_configured_requires_helmet_dependency(self, make_project) -> None:
        root = make_project({"app.js": "app.use(helmet({ frameguard: false }));\n"})

        protection = CsrfScanner().scan(root).protection

        assert protection.helmet_installed is False
        assert protection.helmet_configured is False

    def test_custom_rule_table(self, make_project) -> None:
        rule = Rule("CSRF-X", "Form without token", r"<form[^>]*method=['\"]post['\"]", severity=Severity.MEDIUM)
        root = make_project({"view.jsx": "return <form method='post'>;\n"})

        result = CsrfScanner(rules=[rule]).scan(root)

        assert [i.rule_id for i in result.issues] == ["CSRF-X"]


class TestCookieScanner:
    """Test CookieScanner."""

    def test_insecure_cookie(self, make_project) -> None:
        root = make_project({"login.js": "res.cookie('session', token, { maxAge: 900000 });\n"})

        result = CookieScanner().scan(root)

        assert [i.rule_id for i in result.cookies] == ["COOKIE-001", "COOKIE-002", "COOKIE-003"]
        assert result.total == 3

    def test_hardened_cookie(self, make_project) -> None:
        root = make_project(
            {"login.js": "res.cookie('sid', value, { httpOnly: true, secure: true, sameSite: 'strict' });\n"}
        )

        assert CookieScanner().scan(root).cookies == []

    def test_long_lived_cookie(self, make_project) -> None:
        root = make_project(
            {"login.js": "res.cookie('sid', v, { maxAge: 31536000000, httpOnly: true, secure: true, sameSite: 'lax' });\n"}
        )

        result = CookieScanner().scan(root)

        assert [i.rule_id for i in result.cookies] == ["COOKIE-004"]

    def test_token_in_local_storage(self, make_project) -> None:
        root = make_project({"client.js": "localStorage.setItem('authToken', token);\n"})

        result = CookieScanner().scan(root)

        assert [i.rule_id for i in result.management] == ["STORAGE-002"]
        assert result.total == 1

    def test_configurations(self, make_project) -> None:
        root = make_project(
            {"app.js": "app.use(cookieParser());\napp.use(session({ secret: 's' }));\n"},
            manifest={"dependencies": {"cookie-parser": "1.4.6"}},
        )

        result = CookieScanner().scan(root)

        assert result.packages.installed == ["cookie-parser"]
        assert result.configurations.cookie_parser == "app.use(cookieParser());"
        assert result.configurations.session is None
        assert len(result.best_practices) == 6
