"""Request gate: rate limiting and JWT authentication for every request.

Public paths only pass the unauthenticated rate limit. Everything else must
present ``Authorization: Bearer <token>``; the token has to validate against
the caller's fingerprint (IP, user agent, X-Device-ID) before the request
reaches a handler.

Failures never say which token check failed. The specific reason is logged
server-side only.
"""

import logging
import time
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

from blogapi.core.config import DEFAULT_PUBLIC_PATHS
from blogapi.core.logging import request_id_var
from blogapi.core.request_utils import build_fingerprint, get_client_ip
from blogapi.middleware.rate_limit import RateLimiter
from blogapi.middleware.security_headers import apply_security_headers
from blogapi.schemas.auth import ErrorResponse
from blogapi.services.auth import InvalidIssuerError, TokenEngine, TokenError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
NEW_TOKEN_HEADER = "X-New-Token"

@dataclass
class AuthConfig:
    """Everything the gate needs, built by the application factory."""

    token_engine: TokenEngine
    authed_limiter: RateLimiter
    unauthed_limiter: RateLimiter
    max_token_age: float = 15 * 60
    allowed_issuers: Iterable[str] = ()
    public_paths: Iterable[str] = DEFAULT_PUBLIC_PATHS
    trusted_proxy_ips: Iterable[str] = ()
    retry_after_seconds: int = 60
    clock: Callable[[], float] = field(default=time.time)

    def __post_init__(self) -> None:
        self.allowed_issuers = frozenset(self.allowed_issuers or self.token_engine.allowed_issuers)
        self.public_paths = frozenset(self.public_paths)
        self.trusted_proxy_ips = frozenset(self.trusted_proxy_ips)

    def stop(self) -> None:
        """Stop both limiters' background sweeps."""
        self.authed_limiter.stop()
        self.unauthed_limiter.stop()


def is_public_path(path: str, public_paths: Iterable[str] = DEFAULT_PUBLIC_PATHS) -> bool:
    """Exact-match check; ``/loginx`` or ``/login/`` are not public."""
    return path in public_paths


def error_response(
    status_code: int,
    message: str,
    request_id: str,
    wait_seconds: int | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=message, request_id=request_id, wait_seconds=wait_seconds)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


class AuthGateMiddleware(BaseHTTPMiddleware):
    """Admits or rejects each request before it reaches a route handler.

    On success the handler finds ``request.state.username``,
    ``request.state.auth_time`` and ``request.state.token_claims``. Tokens
    older than half the maximum age get a replacement in ``X-New-Token``.
    """

    def __init__(self, app: ASGIApp, config: AuthConfig) -> None:
        super().__init__(app)
        self.config = config

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        ctx_token = request_id_var.set(request_id)
        try:
            response = await self._admit(request, call_next, request_id)
        finally:
            request_id_var.reset(ctx_token)

        apply_security_headers(response)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    async def _admit(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
        request_id: str,
    ) -> Response:
        config = self.config
        path = request.url.path
        client_ip = get_client_ip(request, config.trusted_proxy_ips)

        if is_public_path(path, config.public_paths):
            if not config.unauthed_limiter.allow_request(client_ip):
                return self._rate_limited(request, client_ip, request_id)
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header:
            if not config.unauthed_limiter.allow_request(client_ip):
                return self._rate_limited(request, client_ip, request_id)
            logger.warning(f"Request without token: {request.method} {path}")
            return self._unauthorized("Missing authorization header", request_id)

        parts = auth_header.split(" ")
        if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
            if not config.unauthed_limiter.allow_request(client_ip):
                return self._rate_limited(request, client_ip, request_id)
            return self._unauthorized("Invalid authorization format", request_id)
        token = parts[1]

        if not config.authed_limiter.allow_request(client_ip):
            return self._rate_limited(request, client_ip, request_id)

        fingerprint = build_fingerprint(request, config.trusted_proxy_ips)

        try:
            claims = config.token_engine.validate_token(token, fingerprint)
        except InvalidIssuerError:
            logger.warning(f"Token from disallowed issuer: {request.method} {path} from {client_ip}")
            return self._unauthorized("Invalid token issuer", request_id)
        except TokenError as e:
            logger.warning(
                f"Invalid token for: {request.method} {path} from {client_ip} - "
                f"{type(e).__name__}: {e}"
            )
            return self._unauthorized("Invalid token", request_id)

        token_age = config.clock() - claims.issued_at
        if token_age > config.max_token_age:
            logger.debug(f"Token older than max age for: {request.method} {path}")
            return self._unauthorized("Token expired", request_id)

        if claims.issuer not in config.allowed_issuers:
            logger.warning(f"Token from disallowed issuer {claims.issuer!r}: {request.method} {path}")
            return self._unauthorized("Invalid token issuer", request_id)

        request.state.username = claims.subject
        request.state.auth_time = datetime.now(UTC)
        request.state.token_claims = claims

        new_token = None
        if token_age > config.max_token_age / 2:
            try:
                new_token = config.token_engine.generate_token(
                    claims.subject, fingerprint, role=claims.role
                )
            except Exception as e:
                # Renewal is best effort; the client re-authenticates later
                logger.warning(f"Token renewal failed for {claims.subject}: {e}")

        response = await call_next(request)
        if new_token:
            response.headers[NEW_TOKEN_HEADER] = new_token
        return response

    def _unauthorized(self, message: str, request_id: str) -> JSONResponse:
        return error_response(
            status.HTTP_401_UNAUTHORIZED,
            message,
            request_id,
            headers={"WWW-Authenticate": "Bearer"},
        )

    def _rate_limited(self, request: Request, client_ip: str, request_id: str) -> JSONResponse:
        logger.warning(f"Rate limit exceeded for {client_ip} on {request.url.path}")
        wait = self.config.retry_after_seconds
        return error_response(
            status.HTTP_429_TOO_MANY_REQUESTS,
            "Rate limit exceeded",
            request_id,
            wait_seconds=wait,
            headers={"Retry-After": str(wait)},
        )
