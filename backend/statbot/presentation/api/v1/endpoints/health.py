"""Health check endpoint - no dependencies, always available."""

from fastapi import APIRouter, Request

from statbot.config import get_settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Returns the current application health status."""
    settings = get_settings()
    reference = getattr(request.app.state, "reference_data", None)
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
        "metrics_loaded": len(reference.metrics) if reference is not None else 0,
        "roster_size": len(reference.roster) if reference is not None else 0,
    }
