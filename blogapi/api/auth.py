"""Authentication API endpoints."""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status

from blogapi.core.request_utils import build_fingerprint
from blogapi.schemas.auth import (
    CurrentUserResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from blogapi.services.auth import TokenClaims, TokenEngine
from blogapi.services.users import (
    InvalidCredentialsError,
    InvalidInputError,
    UserService,
    UsernameExistsError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def get_token_engine(request: Request) -> TokenEngine:
    """Dependency to get the token engine built by the app factory."""
    return request.app.state.token_engine


def get_user_service(request: Request) -> UserService:
    """Dependency to get the user service built by the app factory."""
    return request.app.state.user_service


def get_current_claims(request: Request) -> TokenClaims:
    """Dependency to get the claims the request gate validated."""
    claims = getattr(request.state, "token_claims", None)
    if claims is None:
        # Only reachable if a protected route was configured as public
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return claims


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: RegisterRequest,
    user_service: UserService = Depends(get_user_service),
) -> RegisterResponse:
    """Register a new user.

    Returns 400 for missing fields or a short password and 409 when the
    username is taken.
    """
    try:
        user = await user_service.create_user(body.username, body.password)
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except UsernameExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    return RegisterResponse(message="User registered successfully", username=user.username)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    request: Request,
    user_service: UserService = Depends(get_user_service),
    token_engine: TokenEngine = Depends(get_token_engine),
) -> TokenResponse:
    """Authenticate and get an access token.

    The token is bound to the caller's IP, user agent and X-Device-ID and
    is rejected when presented from a different client context.
    """
    try:
        user = await user_service.authenticate(body.username, body.password)
    except (InvalidCredentialsError, InvalidInputError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        ) from e

    fingerprint = build_fingerprint(request, request.app.state.settings.trusted_proxy_ips_list)
    token = token_engine.generate_token(user.username, fingerprint)
    logger.info(f"User logged in: {user.username}")

    return TokenResponse(
        access_token=token,
        expires_in=int(token_engine.token_ttl.total_seconds()),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    claims: TokenClaims = Depends(get_current_claims),
    token_engine: TokenEngine = Depends(get_token_engine),
) -> MessageResponse:
    """Log out by revoking the presented token."""
    token_engine.revoke_token(claims.token_id)
    logger.info(f"User logged out: {claims.subject}")
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(
    request: Request,
    claims: TokenClaims = Depends(get_current_claims),
) -> CurrentUserResponse:
    """Get the identity attached to the current request."""
    return CurrentUserResponse(
        username=claims.subject,
        auth_time=request.state.auth_time,
        expires_at=datetime.fromtimestamp(claims.expires_at, tz=UTC),
        role=claims.role,
    )
