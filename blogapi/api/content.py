"""Posts, comments and likes API endpoints.

Each resource has a direct create endpoint and a ``/pubsub`` variant that
queues the same create as an event and returns before it is stored.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status

from blogapi.api.auth import get_current_claims
from blogapi.schemas.auth import MessageResponse
from blogapi.schemas.content import (
    CommentResponse,
    CreateCommentRequest,
    CreateLikeRequest,
    CreatePostRequest,
    LikeResponse,
    PostResponse,
)
from blogapi.services.auth import TokenClaims
from blogapi.services.content import (
    Comment,
    CommentsService,
    InvalidContentError,
    Like,
    LikesService,
    Post,
    PostsService,
)
from blogapi.services.events import BaseEvent, EventPublisher, EventPublishError, EventType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["content"])


def get_posts_service(request: Request) -> PostsService:
    return request.app.state.posts_service


def get_comments_service(request: Request) -> CommentsService:
    return request.app.state.comments_service


def get_likes_service(request: Request) -> LikesService:
    return request.app.state.likes_service


def get_event_publisher(request: Request) -> EventPublisher:
    return request.app.state.event_bus


def _bad_request(e: InvalidContentError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


async def _publish(
    publisher: EventPublisher,
    event_type: EventType,
    payload: dict[str, Any],
    resource: str,
) -> MessageResponse:
    try:
        await publisher.publish(BaseEvent(type=event_type, payload=payload))
    except EventPublishError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Failed to publish {resource} event",
        ) from e
    return MessageResponse(message=f"{resource} event published successfully")


@router.post("/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    body: CreatePostRequest,
    claims: TokenClaims = Depends(get_current_claims),
    posts_service: PostsService = Depends(get_posts_service),
) -> PostResponse:
    """Create a post authored by the current user."""
    post = Post(username=claims.subject, title=body.title, description=body.description)
    try:
        post_id = await posts_service.create_post(post)
    except InvalidContentError as e:
        raise _bad_request(e) from e

    return PostResponse(
        id=post_id,
        username=post.username,
        title=post.title,
        description=post.description,
        created_at=post.created_at,
    )


@router.post(
    "/posts/pubsub", response_model=MessageResponse, status_code=status.HTTP_201_CREATED
)
async def publish_post(
    body: CreatePostRequest,
    claims: TokenClaims = Depends(get_current_claims),
    publisher: EventPublisher = Depends(get_event_publisher),
) -> MessageResponse:
    payload = {"username": claims.subject, **body.model_dump()}
    return await _publish(publisher, EventType.POST, payload, "posts")


@router.post("/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    body: CreateCommentRequest,
    claims: TokenClaims = Depends(get_current_claims),
    comments_service: CommentsService = Depends(get_comments_service),
) -> CommentResponse:
    """Comment on a post as the current user."""
    comment = Comment(username=claims.subject, post_id=body.post_id, comment=body.comment)
    try:
        await comments_service.create_comment(comment)
    except InvalidContentError as e:
        raise _bad_request(e) from e

    return CommentResponse(
        username=comment.username,
        post_id=comment.post_id,
        comment=comment.comment,
        created_at=comment.created_at,
    )


@router.post(
    "/comments/pubsub", response_model=MessageResponse, status_code=status.HTTP_201_CREATED
)
async def publish_comment(
    body: CreateCommentRequest,
    claims: TokenClaims = Depends(get_current_claims),
    publisher: EventPublisher = Depends(get_event_publisher),
) -> MessageResponse:
    payload = {"username": claims.subject, **body.model_dump()}
    return await _publish(publisher, EventType.COMMENT, payload, "comments")


@router.post("/likes", response_model=LikeResponse, status_code=status.HTTP_201_CREATED)
async def create_like(
    body: CreateLikeRequest,
    claims: TokenClaims = Depends(get_current_claims),
    likes_service: LikesService = Depends(get_likes_service),
) -> LikeResponse:
    """Like a post as the current user."""
    like = Like(post_id=body.post_id, username_from=claims.subject)
    try:
        await likes_service.create_like(like)
    except InvalidContentError as e:
        raise _bad_request(e) from e

    return LikeResponse(
        post_id=like.post_id,
        username_from=like.username_from,
        created_at=like.created_at,
    )


@router.post(
    "/likes/pubsub", response_model=MessageResponse, status_code=status.HTTP_201_CREATED
)
async def publish_like(
    body: CreateLikeRequest,
    claims: TokenClaims = Depends(get_current_claims),
    publisher: EventPublisher = Depends(get_event_publisher),
) -> MessageResponse:
    payload = {"post_id": body.post_id, "username_from": claims.subject}
    return await _publish(publisher, EventType.LIKE, payload, "likes")
