"""Posts, comments and likes.

All three follow the same shape: validate required fields, stamp the
creation time, write one record. Each service also consumes its own event
type from the event bus and replays it through the same create path.
"""

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Generic, Protocol, TypeVar

from blogapi.services.events import BaseEvent, EventType

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class InvalidContentError(ValueError):
    """A required field is missing or empty."""

    pass


class InvalidPostError(InvalidContentError):
    pass


class InvalidCommentError(InvalidContentError):
    pass


class InvalidLikeError(InvalidContentError):
    pass


@dataclass
class Post:
    username: str
    title: str
    description: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime | None = None


@dataclass
class Comment:
    username: str
    post_id: str
    comment: str
    created_at: datetime | None = None


@dataclass
class Like:
    post_id: str
    username_from: str
    created_at: datetime | None = None


class PostsRepository(Protocol):
    async def create(self, post: Post) -> str: ...


class CommentsRepository(Protocol):
    async def create(self, comment: Comment) -> None: ...


class LikesRepository(Protocol):
    async def create(self, like: Like) -> None: ...


RecordT = TypeVar("RecordT")


class InMemoryCollection(Generic[RecordT]):
    """Append-only process-local record list."""

    def __init__(self) -> None:
        self._records: list[RecordT] = []
        self._lock = asyncio.Lock()

    async def _append(self, record: RecordT) -> None:
        async with self._lock:
            self._records.append(record)

    async def all(self) -> list[RecordT]:
        async with self._lock:
            return list(self._records)


class InMemoryPostsRepository(InMemoryCollection[Post]):
    async def create(self, post: Post) -> str:
        await self._append(post)
        return post.id


class InMemoryCommentsRepository(InMemoryCollection[Comment]):
    async def create(self, comment: Comment) -> None:
        await self._append(comment)


class InMemoryLikesRepository(InMemoryCollection[Like]):
    async def create(self, like: Like) -> None:
        await self._append(like)


class PostsService:
    def __init__(self, repo: PostsRepository, clock: Clock = utc_now):
        self.repo = repo
        self._clock = clock

    async def create_post(self, post: Post) -> str:
        """Store a post and return its id."""
        if not post.title or not post.description or not post.username:
            raise InvalidPostError("invalid post: title, description and username are required")
        post.created_at = self._clock()
        return await self.repo.create(post)

    async def handle_event(self, event: BaseEvent) -> None:
        if event.type != EventType.POST:
            return
        payload = event.payload
        post = Post(
            username=payload.get("username", ""),
            title=payload.get("title", ""),
            description=payload.get("description", ""),
        )
        post_id = await self.create_post(post)
        logger.info(f"Processed post event: {post_id}")


class CommentsService:
    def __init__(self, repo: CommentsRepository, clock: Clock = utc_now):
        self.repo = repo
        self._clock = clock

    async def create_comment(self, comment: Comment) -> None:
        if not comment.username or not comment.post_id or not comment.comment:
            raise InvalidCommentError(
                "invalid comment: username, post_id and comment are required"
            )
        comment.created_at = self._clock()
        await self.repo.create(comment)

    async def handle_event(self, event: BaseEvent) -> None:
        if event.type != EventType.COMMENT:
            return
        payload = event.payload
        comment = Comment(
            username=payload.get("username", ""),
            post_id=payload.get("post_id", ""),
            comment=payload.get("comment", ""),
        )
        await self.create_comment(comment)
        logger.info(f"Processed comment event for post {comment.post_id}")


class LikesService:
    def __init__(self, repo: LikesRepository, clock: Clock = utc_now):
        self.repo = repo
        self._clock = clock

    async def create_like(self, like: Like) -> None:
        if not like.post_id or not like.username_from:
            raise InvalidLikeError("invalid like: post_id and username are required")
        like.created_at = self._clock()
        await self.repo.create(like)

    async def handle_event(self, event: BaseEvent) -> None:
        if event.type != EventType.LIKE:
            return
        payload = event.payload
        like = Like(
            post_id=payload.get("post_id", ""),
            username_from=payload.get("username_from", ""),
        )
        await self.create_like(like)
        logger.info(f"Processed like event for post {like.post_id}")
