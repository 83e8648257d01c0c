"""Health check endpoint.

Listed in the public paths, so it only passes the unauthenticated rate limit.
"""

from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Report that the service is up."""
    return HealthResponse(status="healthy", version=request.app.state.settings.app_version)
