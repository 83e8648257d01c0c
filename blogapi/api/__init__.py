"""Blog API routers."""

from blogapi.api.auth import router as auth_router
from blogapi.api.content import router as content_router
from blogapi.api.health import router as health_router
from blogapi.api.summary import router as summary_router

__all__ = [
    "auth_router",
    "content_router",
    "health_router",
    "summary_router",
]
