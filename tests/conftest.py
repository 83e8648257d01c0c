"""Pytest configuration and fixtures for blog API tests.

Every fixture builds fresh components, so no test sees rate limiter or
blacklist state left behind by another.
"""

import os
from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app modules
TEST_JWT_SECRET = "test-secret-that-is-at-least-32-bytes-long!"
os.environ["JWT_SECRET"] = TEST_JWT_SECRET
os.environ["APPLICATION_NAME"] = "awesome-blog-test"

from blogapi.core.config import Settings  # noqa: E402
from blogapi.main import create_app  # noqa: E402
from blogapi.middleware.auth_gate import AuthConfig  # noqa: E402
from blogapi.middleware.rate_limit import RateLimitConfig, RateLimiter  # noqa: E402
from blogapi.services.auth import Fingerprint, TokenEngine  # noqa: E402
from blogapi.services.token_blacklist import MemoryTokenBlacklist  # noqa: E402

TEST_ISSUER = "awesome-blog-test"
TEST_USERNAME = "alice"
TEST_PASSWORD = "alice-password"


class FakeClock:
    """Controllable replacement for time.time / time.monotonic."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def blacklist(fake_clock) -> MemoryTokenBlacklist:
    return MemoryTokenBlacklist(clock=fake_clock)


@pytest.fixture
def token_engine(blacklist, fake_clock) -> TokenEngine:
    return TokenEngine(
        secret=TEST_JWT_SECRET,
        blacklist=blacklist,
        issuer=TEST_ISSUER,
        clock=fake_clock,
    )


@pytest.fixture
def fingerprint() -> Fingerprint:
    return Fingerprint(ip="10.0.0.1", user_agent="curl/8", device_id="")


@pytest.fixture
def gate_config(token_engine, fake_clock) -> Generator[AuthConfig, None, None]:
    """Gate configuration on the fake clock with small limits."""
    config = AuthConfig(
        token_engine=token_engine,
        authed_limiter=RateLimiter(
            RateLimitConfig(window=60, max_attempts=10),
            clock=fake_clock,
            start_cleanup=False,
        ),
        unauthed_limiter=RateLimiter(
            RateLimitConfig(window=60, max_attempts=3),
            clock=fake_clock,
            start_cleanup=False,
        ),
        max_token_age=15 * 60,
        clock=fake_clock,
    )
    yield config
    config.stop()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        app_name=TEST_ISSUER,
        jwt_secret=TEST_JWT_SECRET,
        rate_limit_authed_max_attempts=1000,
        rate_limit_unauthed_max_attempts=1000,
    )


@pytest.fixture
def app(test_settings):
    application = create_app(test_settings)
    yield application
    application.state.auth_config.stop()


@pytest_asyncio.fixture(scope="function")
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client for a fresh app instance."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    await app.state.event_bus.stop()


@pytest_asyncio.fixture
async def registered_user(async_client) -> dict[str, str]:
    response = await async_client.post(
        "/api/v1/auth/register",
        json={"username": TEST_USERNAME, "password": TEST_PASSWORD},
    )
    assert response.status_code == 201
    return {"username": TEST_USERNAME, "password": TEST_PASSWORD}


@pytest_asyncio.fixture
async def auth_headers(async_client, registered_user) -> dict[str, str]:
    """Authorization headers for a logged-in user."""
    response = await async_client.post("/api/v1/auth/login", json=registered_user)
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
