"""User registration and authentication."""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from blogapi.services.auth import AuthError, hash_password, verify_password

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class InvalidInputError(AuthError):
    """Required field missing or malformed."""

    pass


class UsernameExistsError(AuthError):
    """Username is already taken."""

    pass


class InvalidCredentialsError(AuthError):
    """Invalid username or password."""

    pass


@dataclass
class User:
    username: str
    password_hash: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class UserRepository(Protocol):
    """Persistence for users; the document store implements this in production."""

    async def create(self, user: User) -> None: ...

    async def get_by_username(self, username: str) -> User | None: ...

    async def is_username_exists(self, username: str) -> bool: ...


class InMemoryUserRepository:
    """Process-local user store."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._lock = asyncio.Lock()

    async def create(self, user: User) -> None:
        async with self._lock:
            if user.username in self._users:
                raise UsernameExistsError("Username already exists")
            self._users[user.username] = user

    async def get_by_username(self, username: str) -> User | None:
        async with self._lock:
            return self._users.get(username)

    async def is_username_exists(self, username: str) -> bool:
        async with self._lock:
            return username in self._users


class UserService:
    """Service for user account operations."""

    def __init__(self, repo: UserRepository):
        self.repo = repo

    async def create_user(self, username: str, password: str) -> User:
        """Register a new user with a hashed password."""
        username = username.strip()
        if not username or not password:
            raise InvalidInputError("Username and password are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidInputError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        if await self.repo.is_username_exists(username):
            raise UsernameExistsError("Username already exists")

        user = User(username=username, password_hash=hash_password(password))
        await self.repo.create(user)

        logger.info(f"Created user: {username}")
        return user

    async def authenticate(self, username: str, password: str) -> User:
        """Authenticate a user and return the user object.

        Raises InvalidCredentialsError for both "user not found" and
        "wrong password" to prevent user enumeration.
        """
        if not username or not password:
            raise InvalidInputError("Username and password are required")

        user = await self.repo.get_by_username(username.strip())

        if user is None:
            # Perform a dummy hash to prevent timing attacks
            verify_password(password, hash_password("dummy"))
            raise InvalidCredentialsError("Invalid username or password")

        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError("Invalid username or password")

        return user
