"""Per-user yearly activity summary."""

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from blogapi.services.content import (
    Clock,
    InMemoryCommentsRepository,
    InMemoryLikesRepository,
    InMemoryPostsRepository,
    InvalidContentError,
    utc_now,
)

logger = logging.getLogger(__name__)

MONTH_FORMAT = "%Y-%m"


class InvalidUsernameError(InvalidContentError):
    pass


@dataclass
class SummaryData:
    """Activity counts keyed by month ("2025-02")."""

    likes: dict[str, int] = field(default_factory=dict)
    comments: dict[str, int] = field(default_factory=dict)
    posts: dict[str, int] = field(default_factory=dict)


class SummaryRepository(Protocol):
    async def get_user_summary(
        self, username: str, start: datetime, end: datetime
    ) -> SummaryData: ...


def count_by_month(
    timestamps: Iterable[datetime | None], start: datetime, end: datetime
) -> dict[str, int]:
    """Count timestamps inside ``[start, end]`` per UTC month.

    Records without a creation time are skipped.
    """
    counts: Counter[str] = Counter()
    for ts in timestamps:
        if ts is None:
            continue
        if start <= ts <= end:
            counts[ts.astimezone(UTC).strftime(MONTH_FORMAT)] += 1
    return dict(counts)


class InMemorySummaryRepository:
    """Summary queries over the in-memory content collections."""

    def __init__(
        self,
        posts: InMemoryPostsRepository,
        comments: InMemoryCommentsRepository,
        likes: InMemoryLikesRepository,
    ) -> None:
        self.posts = posts
        self.comments = comments
        self.likes = likes

    async def get_user_summary(
        self, username: str, start: datetime, end: datetime
    ) -> SummaryData:
        likes = await self.likes.all()
        comments = await self.comments.all()
        posts = await self.posts.all()
        return SummaryData(
            likes=count_by_month(
                (like.created_at for like in likes if like.username_from == username), start, end
            ),
            comments=count_by_month(
                (c.created_at for c in comments if c.username == username), start, end
            ),
            posts=count_by_month(
                (p.created_at for p in posts if p.username == username), start, end
            ),
        )


def year_range(moment: datetime) -> tuple[datetime, datetime]:
    """First and last instant of ``moment``'s year, in UTC."""
    year = moment.astimezone(UTC).year
    return (
        datetime(year, 1, 1, tzinfo=UTC),
        datetime(year, 12, 31, 23, 59, 59, 999999, tzinfo=UTC),
    )


class SummaryService:
    def __init__(self, repo: SummaryRepository, clock: Clock = utc_now):
        self.repo = repo
        self._clock = clock

    async def get_yearly_summary(self, username: str) -> SummaryData:
        """Monthly activity of ``username`` in the current UTC year."""
        if not username:
            raise InvalidUsernameError("invalid username: cannot be empty")
        start, end = year_range(self._clock())
        return await self.repo.get_user_summary(username, start, end)
