"""Sliding-window rate limiter keyed by client."""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 60.0
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_CLEANUP_INTERVAL_SECONDS = 300.0


@dataclass
class RateLimitConfig:
    """Configuration for one rate limiter instance.

    Zero values fall back to the defaults (1 minute, 5 attempts, 5 minutes).
    """

    window: float = DEFAULT_WINDOW_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL_SECONDS

    def __post_init__(self) -> None:
        if not self.window:
            self.window = DEFAULT_WINDOW_SECONDS
        if not self.max_attempts:
            self.max_attempts = DEFAULT_MAX_ATTEMPTS
        if not self.cleanup_interval:
            self.cleanup_interval = DEFAULT_CLEANUP_INTERVAL_SECONDS


class RateLimiter:
    """In-memory rate limiter counting attempts per key over a trailing window.

    Single-instance only: state is not shared between processes. A daemon
    thread sweeps keys whose attempts have all aged out; call ``stop()`` on
    shutdown to end it.
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        name: str = "rate-limiter",
        clock: Callable[[], float] = time.monotonic,
        start_cleanup: bool = True,
    ) -> None:
        self.config = config or RateLimitConfig()
        self.name = name
        self._attempts: dict[str, list[float]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._stop_event = threading.Event()
        self._cleanup_thread: threading.Thread | None = None

        if start_cleanup:
            self._cleanup_thread = threading.Thread(
                target=self._cleanup_loop,
                name=f"{name}-cleanup",
                daemon=True,
            )
            self._cleanup_thread.start()

    @property
    def window(self) -> float:
        return self.config.window

    @property
    def max_attempts(self) -> int:
        return self.config.max_attempts

    def allow_request(self, key: str) -> bool:
        """Record an attempt for ``key`` and return whether it is admitted.

        Denied attempts are not recorded.
        """
        with self._lock:
            now = self._clock()
            cutoff = now - self.config.window

            attempts = self._attempts.get(key)
            if attempts is not None:
                attempts = [ts for ts in attempts if ts > cutoff]
            else:
                attempts = []

            if len(attempts) >= self.config.max_attempts:
                self._attempts[key] = attempts
                return False

            attempts.append(now)
            self._attempts[key] = attempts
            return True

    def cleanup_old_entries(self) -> int:
        """Prune stale attempts and drop keys left empty. Returns keys removed."""
        with self._lock:
            cutoff = self._clock() - self.config.window
            keys_to_remove = []

            for key, attempts in self._attempts.items():
                valid = [ts for ts in attempts if ts > cutoff]
                if valid:
                    self._attempts[key] = valid
                else:
                    keys_to_remove.append(key)

            for key in keys_to_remove:
                del self._attempts[key]

        return len(keys_to_remove)

    def get_stats(self) -> dict[str, int]:
        """Get current attempt counts per key."""
        with self._lock:
            return {key: len(attempts) for key, attempts in self._attempts.items()}

    def reset(self, key: str | None = None) -> None:
        """Reset counters for one key, or for all keys."""
        with self._lock:
            if key is None:
                self._attempts.clear()
            else:
                self._attempts.pop(key, None)

    def stop(self) -> None:
        """Stop the background sweep. Safe to call more than once."""
        self._stop_event.set()
        thread = self._cleanup_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5)
        self._cleanup_thread = None

    @property
    def is_running(self) -> bool:
        return self._cleanup_thread is not None and self._cleanup_thread.is_alive()

    def _cleanup_loop(self) -> None:
        while not self._stop_event.wait(self.config.cleanup_interval):
            try:
                removed = self.cleanup_old_entries()
                if removed > 0:
                    logger.debug(f"{self.name} cleanup: removed {removed} inactive keys")
            except Exception as e:
                logger.warning(f"{self.name} cleanup error: {e}")
