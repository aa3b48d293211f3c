"""
Health Check Routes
"""

from typing import Any

from fastapi import APIRouter, Depends

from toolgate.api.dependencies import get_components

router = APIRouter()


@router.get("/health")
async def health_check(
    components: dict[str, Any] = Depends(get_components),
) -> dict[str, Any]:
    """Basic health check."""
    settings = components.get("settings")
    registry = components.get("tool_registry")

    return {
        "status": "healthy",
        "version": settings.app_version if settings else None,
        "tools": len(registry) if registry is not None else 0,
    }
