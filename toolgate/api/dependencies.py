"""
FastAPI Dependencies

Dependency injection for API routes.

Identity is asserted by an upstream authenticating gateway through
request headers; this service trusts those headers as given.
"""

from typing import Any

from fastapi import Depends, Header, HTTPException, Request

from toolgate.core.types import Identity
from toolgate.observability.metrics import MetricsCollector
from toolgate.tools import ToolRegistry


async def get_components(request: Request) -> dict[str, Any]:
    """Get application components from state."""
    return getattr(request.app.state, "components", {})


async def get_tool_registry(
    components: dict[str, Any] = Depends(get_components),
) -> ToolRegistry:
    """Get tool registry."""
    if "tool_registry" not in components:
        raise HTTPException(status_code=503, detail="Tool registry not available")
    value = components["tool_registry"]
    assert isinstance(value, ToolRegistry)
    return value


async def get_metrics_collector(
    components: dict[str, Any] = Depends(get_components),
) -> MetricsCollector:
    """Get metrics collector."""
    value = components.get("metrics")
    if value is None:
        raise HTTPException(status_code=503, detail="Metrics not enabled")
    return value


async def get_identity(
    x_user_id: str | None = Header(None),
    x_user_roles: str | None = Header(None),
    x_mfa_verified: bool = Header(False),
) -> Identity | None:
    """
    Build the caller identity from gateway headers.

    Returns None when no user id is present; permission checks then deny.
    """
    if not x_user_id:
        return None

    roles = [r.strip() for r in (x_user_roles or "").split(",") if r.strip()]
    return Identity(user_id=x_user_id, roles=roles, mfa_verified=x_mfa_verified)


async def get_request_id(request: Request) -> str | None:
    """Request id assigned by TracingMiddleware."""
    return getattr(request.state, "request_id", None)
