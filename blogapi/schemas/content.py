"""Pydantic schemas for posts, comments, likes and summaries.

The author of every write is the authenticated user, so request bodies carry
no username.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class CreatePostRequest(BaseModel):
    title: str = Field(..., max_length=200)
    description: str = Field(..., max_length=10000)


class PostResponse(BaseModel):
    id: str
    username: str
    title: str
    description: str
    created_at: datetime | None = None


class CreateCommentRequest(BaseModel):
    post_id: str = Field(..., max_length=64)
    comment: str = Field(..., max_length=2000)


class CommentResponse(BaseModel):
    username: str
    post_id: str
    comment: str
    created_at: datetime | None = None


class CreateLikeRequest(BaseModel):
    post_id: str = Field(..., max_length=64)


class LikeResponse(BaseModel):
    post_id: str
    username_from: str
    created_at: datetime | None = None


class SummaryRequest(BaseModel):
    username: str = Field(..., max_length=50)


class SummaryResponse(BaseModel):
    """Activity counts per month ("YYYY-MM") for the current year."""

    username: str
    likes: dict[str, int]
    comments: dict[str, int]
    posts: dict[str, int]
