# ABOUTME: Operational API routes.
# ABOUTME: Health check endpoint for load balancers and uptime probes.

from fastapi import APIRouter
from pydantic import BaseModel

from daily_reflection import __version__
from daily_reflection.web.dependencies import AppSettings

router = APIRouter(prefix="/api", tags=["api"])


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    version: str = __version__
    store_backend: str


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: AppSettings):
    """Health check endpoint for load balancer."""
    return HealthResponse(status="healthy", store_backend=settings.store_backend)
