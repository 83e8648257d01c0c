"""Pydantic schemas for authentication API."""

from datetime import datetime

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error body returned by the request gate."""

    error: str
    request_id: str
    wait_seconds: int | None = Field(
        default=None, description="Suggested wait before retrying (rate limit only)"
    )


class RegisterRequest(BaseModel):
    """Request for user registration."""

    username: str = Field(..., max_length=50)
    password: str = Field(..., max_length=128)


class RegisterResponse(BaseModel):
    """Response after successful registration."""

    message: str
    username: str


class LoginRequest(BaseModel):
    """Request for login."""

    username: str
    password: str


class TokenResponse(BaseModel):
    """Response with a JWT access token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token expiry in seconds")


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str


class CurrentUserResponse(BaseModel):
    """Identity established by the request gate."""

    username: str
    auth_time: datetime
    expires_at: datetime
    role: str | None = None
