"""Domain aggregators, one per security concern."""

from .auth import AuthScanner
from .base import DomainScanner
from .cookies import CookieScanner
from .cors import CorsScanner
from .csrf import CsrfScanner
from .dependencies import DependencyScanner
from .injection import SqlInjectionScanner
from .input_validation import InputValidationScanner
from .middlewares import MiddlewareScanner
from .rate_limit import RateLimitScanner
from .secrets import SecretsScanner

__all__ = [
    "AuthScanner",
    "CookieScanner",
    "CorsScanner",
    "CsrfScanner",
    "DependencyScanner",
    "DomainScanner",
    "InputValidationScanner",
    "MiddlewareScanner",
    "RateLimitScanner",
    "SecretsScanner",
    "SqlInjectionScanner",
]
