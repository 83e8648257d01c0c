# Blog API Pydantic Schemas
from blogapi.schemas.auth import (
    CurrentUserResponse,
    ErrorResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from blogapi.schemas.content import (
    CommentResponse,
    CreateCommentRequest,
    CreateLikeRequest,
    CreatePostRequest,
    LikeResponse,
    PostResponse,
    SummaryRequest,
    SummaryResponse,
)

__all__ = [
    "CommentResponse",
    "CreateCommentRequest",
    "CreateLikeRequest",
    "CreatePostRequest",
    "LikeResponse",
    "PostResponse",
    "SummaryRequest",
    "SummaryResponse",
    "CurrentUserResponse",
    "ErrorResponse",
    "LoginRequest",
    "MessageResponse",
    "RegisterRequest",
    "RegisterResponse",
    "TokenResponse",
]
