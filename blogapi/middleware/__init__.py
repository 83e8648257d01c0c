"""Middleware module for the blog API."""

from blogapi.middleware.auth_gate import AuthConfig, AuthGateMiddleware
from blogapi.middleware.rate_limit import RateLimitConfig, RateLimiter
from blogapi.middleware.security_headers import SECURITY_HEADERS, apply_security_headers

__all__ = [
    "AuthConfig",
    "AuthGateMiddleware",
    "RateLimitConfig",
    "RateLimiter",
    "SECURITY_HEADERS",
    "apply_security_headers",
]
