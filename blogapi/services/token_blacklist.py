"""In-memory blacklist of revoked token identifiers."""

import logging
import threading
import time
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class TokenBlacklist(Protocol):
    """Store of revoked token ids (JTIs) with expiry.

    The in-memory implementation below is process-local; a shared store can
    implement the same three methods for multi-instance deployments.
    """

    def add(self, token_id: str, expires_at: float) -> None: ...

    def is_blacklisted(self, token_id: str) -> bool: ...

    def cleanup(self) -> int: ...


class MemoryTokenBlacklist:
    """Thread-safe JTI blacklist keyed by token id.

    An entry only counts while the clock is before its expiry, so entries that
    have expired but were not purged yet are treated as absent. ``cleanup``
    just reclaims memory.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._tokens: dict[str, float] = {}  # jti -> expiry timestamp
        self._lock = threading.Lock()
        self._clock = clock

    def add(self, token_id: str, expires_at: float) -> None:
        """Blacklist ``token_id`` until the Unix timestamp ``expires_at``."""
        with self._lock:
            self._tokens[token_id] = expires_at

    def is_blacklisted(self, token_id: str) -> bool:
        with self._lock:
            expiry = self._tokens.get(token_id)
            return expiry is not None and self._clock() < expiry

    def cleanup(self) -> int:
        """Remove expired entries. Returns count removed."""
        with self._lock:
            now = self._clock()
            expired = [jti for jti, expiry in self._tokens.items() if expiry <= now]
            for jti in expired:
                del self._tokens[jti]
        if expired:
            logger.debug(f"Removed {len(expired)} expired token blacklist entries")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)

    def __contains__(self, token_id: object) -> bool:
        with self._lock:
            return token_id in self._tokens
