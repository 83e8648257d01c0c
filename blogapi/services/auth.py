"""Token engine for fingerprint-bound JWT authentication."""

import logging
import secrets
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerifyMismatchError
from jwt.exceptions import PyJWTError

from blogapi.services.token_blacklist import TokenBlacklist

logger = logging.getLogger(__name__)

MIN_SECRET_BYTES = 32
DEFAULT_TOKEN_TTL = timedelta(minutes=15)
DEFAULT_REVOCATION_TTL = timedelta(hours=24)

# Argon2 password hasher with recommended parameters
# Memory: 64 MiB, Time: 3 iterations, Parallelism: 4
ph = PasswordHasher(
    time_cost=3,
    memory_cost=65536,
    parallelism=4,
    hash_len=32,
    salt_len=16,
)


class ConfigError(Exception):
    """Auth components cannot be built from the given configuration."""

    pass


class AuthError(Exception):
    """Base authentication error."""

    pass


class TokenError(AuthError):
    """JWT token error."""

    pass


class InvalidTokenError(TokenError):
    """JWT token is invalid, malformed or revoked."""

    pass


class InvalidIssuerError(InvalidTokenError):
    """JWT token was issued by an issuer that is not allowed."""

    pass


class TokenExpiredError(TokenError):
    """JWT token has expired."""

    pass


class TokenUsedBeforeIssuedError(TokenError):
    """JWT token is presented before its not-before / issued-at time."""

    pass


class FingerprintMismatchError(TokenError):
    """Token was presented from a different client context than it was issued to."""

    pass


class InvalidIPError(FingerprintMismatchError):
    pass


class InvalidUserAgentError(FingerprintMismatchError):
    pass


class InvalidDeviceError(FingerprintMismatchError):
    pass


@dataclass(frozen=True)
class Fingerprint:
    """Client context a token is bound to."""

    ip: str
    user_agent: str
    device_id: str = ""


@dataclass(frozen=True)
class TokenClaims:
    """Typed view of a token payload."""

    subject: str
    ip: str
    user_agent: str
    device_id: str
    issued_at: int
    not_before: int
    expires_at: int
    token_id: str
    issuer: str
    role: str | None = None

    @property
    def fingerprint(self) -> Fingerprint:
        return Fingerprint(ip=self.ip, user_agent=self.user_agent, device_id=self.device_id)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "sub": self.subject,
            "ip": self.ip,
            "userAgent": self.user_agent,
            "deviceId": self.device_id,
            "iat": self.issued_at,
            "nbf": self.not_before,
            "exp": self.expires_at,
            "jti": self.token_id,
            "iss": self.issuer,
        }
        if self.role is not None:
            payload["role"] = self.role
        return payload


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash using constant-time comparison."""
    try:
        ph.verify(password_hash, password)
        return True
    except (VerifyMismatchError, InvalidHashError):
        return False


def generate_token_id() -> str:
    """Return a random 128-bit token id, hex encoded."""
    return secrets.token_hex(16)


class TokenEngine:
    """Issues, validates and revokes fingerprint-bound access tokens.

    The engine holds no mutable state of its own; revocations live in the
    injected blacklist.
    """

    def __init__(
        self,
        secret: str,
        blacklist: TokenBlacklist,
        issuer: str,
        allowed_issuers: Iterable[str] | None = None,
        token_ttl: timedelta = DEFAULT_TOKEN_TTL,
        revocation_ttl: timedelta = DEFAULT_REVOCATION_TTL,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ConfigError("JWT secret is required")
        if len(secret.encode("utf-8")) < MIN_SECRET_BYTES:
            raise ConfigError(f"JWT secret must be at least {MIN_SECRET_BYTES} bytes")
        if not issuer:
            raise ConfigError("Token issuer is required")
        if not algorithm.startswith("HS"):
            raise ConfigError(f"Unsupported signing algorithm: {algorithm}")

        self._secret = secret
        self._blacklist = blacklist
        self._clock = clock
        self.issuer = issuer
        self.allowed_issuers = frozenset(allowed_issuers or [issuer])
        self.token_ttl = token_ttl
        self.revocation_ttl = revocation_ttl
        self.algorithm = algorithm

    def generate_token(
        self,
        subject: str,
        fingerprint: Fingerprint,
        role: str | None = None,
    ) -> str:
        """Mint a signed token for ``subject`` bound to ``fingerprint``."""
        if not subject:
            raise ValueError("Token subject is required")

        now = int(self._clock())
        claims = TokenClaims(
            subject=subject,
            ip=fingerprint.ip,
            user_agent=fingerprint.user_agent,
            device_id=fingerprint.device_id,
            issued_at=now,
            not_before=now,
            expires_at=now + int(self.token_ttl.total_seconds()),
            token_id=generate_token_id(),
            issuer=self.issuer,
            role=role,
        )
        token = jwt.encode(claims.to_payload(), self._secret, algorithm=self.algorithm)
        # PyJWT 2.x returns str; older type stubs may declare bytes
        return str(token)

    def validate_token(self, token: str, fingerprint: Fingerprint) -> TokenClaims:
        """Validate ``token`` for a request coming from ``fingerprint``.

        Checks run in a fixed order and each raises its own error: signature,
        expiry, not-before, revocation, fingerprint (IP, user agent, device)
        and issuer. The clock is read once so all checks see the same time.
        """
        try:
            # Temporal claims are checked below against a single clock reading
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                    "verify_iss": False,
                    "require": ["sub", "iat", "nbf", "exp", "jti", "iss"],
                },
            )
        except PyJWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        claims = self.get_claims(payload)
        now = self._clock()

        if now >= claims.expires_at:
            raise TokenExpiredError("Token has expired")
        if now < claims.not_before or claims.issued_at > now:
            raise TokenUsedBeforeIssuedError("Token used before issued")
        if self._blacklist.is_blacklisted(claims.token_id):
            raise InvalidTokenError("Token has been revoked")

        if claims.ip != fingerprint.ip:
            raise InvalidIPError("Invalid IP address")
        if claims.user_agent != fingerprint.user_agent:
            raise InvalidUserAgentError("Invalid user agent")
        if claims.device_id != fingerprint.device_id:
            raise InvalidDeviceError("Invalid device")

        if claims.issuer not in self.allowed_issuers:
            raise InvalidIssuerError("Invalid token issuer")

        return claims

    def get_claims(self, payload: Mapping[str, Any]) -> TokenClaims:
        """Build typed claims from a decoded token payload."""
        try:
            role = payload.get("role")
            claims = TokenClaims(
                subject=_require_str(payload, "sub"),
                ip=_require_str(payload, "ip", allow_empty=True),
                user_agent=_require_str(payload, "userAgent", allow_empty=True),
                device_id=_require_str(payload, "deviceId", allow_empty=True),
                issued_at=_require_int(payload, "iat"),
                not_before=_require_int(payload, "nbf"),
                expires_at=_require_int(payload, "exp"),
                token_id=_require_str(payload, "jti"),
                issuer=_require_str(payload, "iss"),
                role=role if isinstance(role, str) else None,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidTokenError(f"Invalid token claims: {e}") from e
        return claims

    def revoke_token(self, token_id: str) -> None:
        """Blacklist ``token_id``.

        The entry outlives any token carrying the id: it is kept for the
        revocation TTL or the token TTL, whichever is longer.
        """
        if not token_id:
            raise InvalidTokenError("Token id is required")
        horizon = max(self.revocation_ttl, self.token_ttl)
        self._blacklist.add(token_id, self._clock() + horizon.total_seconds())
        logger.info(f"Token revoked: {token_id[:8]}...")


def _require_str(payload: Mapping[str, Any], key: str, allow_empty: bool = False) -> str:
    value = payload[key]
    if not isinstance(value, str):
        raise TypeError(f"claim '{key}' must be a string")
    if not value and not allow_empty:
        raise ValueError(f"claim '{key}' must not be empty")
    return value


def _require_int(payload: Mapping[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise TypeError(f"claim '{key}' must be a number")
    return int(value)
