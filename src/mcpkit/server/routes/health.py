"""Health check routes."""

from typing import Any

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        Health status.
    """
    return {"status": "healthy"}


@router.get("/ready")
async def readiness_check(request: Request) -> dict[str, Any]:
    """Readiness check endpoint.

    Returns:
        Readiness status with the number of loaded capabilities.
    """
    registry = request.app.state.registry
    return {
        "status": "ready",
        "tools": len(registry.tools),
        "resources": len(registry.resources),
        "prompts": len(registry.prompts),
        "handlers": len(registry.handler_overrides),
    }
