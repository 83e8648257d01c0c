"""Blog API - FastAPI Application Factory."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI

from blogapi.api import auth_router, content_router, health_router, summary_router
from blogapi.core import Settings, settings, setup_logging
from blogapi.core.logging import get_logger
from blogapi.middleware import AuthConfig, AuthGateMiddleware, RateLimitConfig, RateLimiter
from blogapi.services.auth import TokenEngine
from blogapi.services.content import (
    CommentsService,
    InMemoryCommentsRepository,
    InMemoryLikesRepository,
    InMemoryPostsRepository,
    LikesService,
    PostsService,
)
from blogapi.services.events import InProcessEventBus
from blogapi.services.summary import InMemorySummaryRepository, SummaryService
from blogapi.services.token_blacklist import MemoryTokenBlacklist, TokenBlacklist
from blogapi.services.users import InMemoryUserRepository, UserRepository, UserService

logger = get_logger("main")


def task_done_callback(task: asyncio.Task[None]) -> None:
    """Log unhandled exceptions from background tasks."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task {task.get_name()} failed: {exc}")


async def _token_blacklist_cleanup_loop(blacklist: TokenBlacklist, interval: float) -> None:
    """Periodically remove expired entries from the token blacklist."""
    while True:
        await asyncio.sleep(interval)
        try:
            removed = blacklist.cleanup()
            if removed > 0:
                logger.info(f"Cleaned up {removed} expired token blacklist entries")
        except Exception:
            logger.exception("Error cleaning up token blacklist")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    app_settings: Settings = app.state.settings
    setup_logging(
        level=app_settings.log_level,
        format_type="structured" if not app_settings.debug else "dev",
    )
    logger.info(f"Starting {app_settings.app_name} v{app_settings.app_version}")

    for warning in app_settings.check_security_configuration():
        logger.warning(f"SECURITY: {warning}")

    blacklist_task = asyncio.create_task(
        _token_blacklist_cleanup_loop(
            app.state.token_blacklist,
            app_settings.token_blacklist_cleanup_interval_seconds,
        ),
        name="token-blacklist-cleanup",
    )
    blacklist_task.add_done_callback(task_done_callback)
    app.state.event_bus.start()

    yield

    logger.info("Shutting down...")
    await app.state.event_bus.stop()
    blacklist_task.cancel()
    try:
        await blacklist_task
    except asyncio.CancelledError:
        pass
    app.state.auth_config.stop()


def build_auth_config(
    app_settings: Settings,
    blacklist: TokenBlacklist,
) -> AuthConfig:
    """Build the token engine and rate limiters the request gate runs on.

    Raises ConfigError when the signing secret is missing or too short.
    """
    token_engine = TokenEngine(
        secret=app_settings.jwt_secret,
        blacklist=blacklist,
        issuer=app_settings.app_name,
        allowed_issuers=app_settings.allowed_issuers_list,
        token_ttl=timedelta(minutes=app_settings.jwt_access_token_expire_minutes),
        revocation_ttl=timedelta(hours=app_settings.jwt_revocation_hours),
        algorithm=app_settings.jwt_algorithm,
    )

    window = app_settings.rate_limit_window_seconds
    cleanup_interval = app_settings.rate_limit_cleanup_interval_seconds
    # Authenticated clients get the more lenient limit
    authed_limiter = RateLimiter(
        RateLimitConfig(
            window=window,
            max_attempts=app_settings.rate_limit_authed_max_attempts,
            cleanup_interval=cleanup_interval,
        ),
        name="authed-rate-limiter",
    )
    unauthed_limiter = RateLimiter(
        RateLimitConfig(
            window=window,
            max_attempts=app_settings.rate_limit_unauthed_max_attempts,
            cleanup_interval=cleanup_interval,
        ),
        name="unauthed-rate-limiter",
    )

    return AuthConfig(
        token_engine=token_engine,
        authed_limiter=authed_limiter,
        unauthed_limiter=unauthed_limiter,
        max_token_age=app_settings.max_token_age_minutes * 60,
        allowed_issuers=app_settings.allowed_issuers_list,
        public_paths=app_settings.public_paths_list,
        trusted_proxy_ips=app_settings.trusted_proxy_ips_list,
        retry_after_seconds=app_settings.rate_limit_retry_after_seconds,
    )


def register_content_services(app: FastAPI) -> None:
    """Build the content services and subscribe them to the event bus."""
    posts_repo = InMemoryPostsRepository()
    comments_repo = InMemoryCommentsRepository()
    likes_repo = InMemoryLikesRepository()

    app.state.posts_service = PostsService(posts_repo)
    app.state.comments_service = CommentsService(comments_repo)
    app.state.likes_service = LikesService(likes_repo)
    app.state.summary_service = SummaryService(
        InMemorySummaryRepository(posts_repo, comments_repo, likes_repo)
    )

    event_bus = InProcessEventBus()
    event_bus.subscribe(app.state.posts_service.handle_event)
    event_bus.subscribe(app.state.comments_service.handle_event)
    event_bus.subscribe(app.state.likes_service.handle_event)
    app.state.event_bus = event_bus


def create_app(
    app_settings: Settings | None = None,
    blacklist: TokenBlacklist | None = None,
    user_repository: UserRepository | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Every stateful auth component is built here and handed to the request
    gate, so each app instance starts with fresh limiter and blacklist state.
    """
    app_settings = app_settings or settings
    blacklist = blacklist if blacklist is not None else MemoryTokenBlacklist()
    auth_config = build_auth_config(app_settings, blacklist)

    app = FastAPI(
        title=app_settings.app_name,
        description="Blog backend API",
        version=app_settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if app_settings.debug else None,
        redoc_url="/redoc" if app_settings.debug else None,
        openapi_url="/openapi.json" if app_settings.debug else None,
    )

    app.state.settings = app_settings
    app.state.token_blacklist = blacklist
    app.state.token_engine = auth_config.token_engine
    app.state.auth_config = auth_config
    app.state.user_service = UserService(user_repository or InMemoryUserRepository())
    register_content_services(app)

    app.add_middleware(AuthGateMiddleware, config=auth_config)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(content_router)
    app.include_router(summary_router)

    return app
