"""
FastAPI Application Factory

Creates and configures the main application.

Design decisions:
- Factory pattern for testability
- Components are built eagerly and stored in app.state.components for DI
- Lifespan manages background work (the rate-limit sweeper)
- CORS configuration from settings
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from toolgate.config import Settings, get_settings
from toolgate.observability.logging import configure_logging, get_logger
from toolgate.observability.metrics import MetricsCollector
from toolgate.runtime.factory import create_audit_logger, create_registry
from toolgate.tools.registry import ToolRegistry

logger = get_logger("toolgate.api")


async def _sweep_rate_limits(registry: ToolRegistry, interval_seconds: float) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            registry.sweep_rate_limits()
        except Exception as e:
            logger.error("Rate limit sweep failed", error=e)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Starts the periodic rate-limit sweeper when an interval is
    configured, and stops it on shutdown.
    """
    components: dict[str, Any] = app.state.components
    settings: Settings = components["settings"]
    registry: ToolRegistry = components["tool_registry"]

    sweeper: asyncio.Task | None = None
    interval = settings.tools.rate_limit_sweep_interval_seconds
    if interval:
        sweeper = asyncio.create_task(_sweep_rate_limits(registry, interval))

    logger.info("Toolgate started", tools=len(registry), environment=settings.environment)

    yield

    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper

    if registry.engine.detached_count:
        logger.warning("Shutting down with detached tool effects", detached=registry.engine.detached_count)


def build_components(
    settings: Settings,
    registry: ToolRegistry | None = None,
) -> dict[str, Any]:
    """
    Initialize all components:
    - Metrics collector (if enabled)
    - Audit logger (if enabled)
    - Tool registry with built-in tools

    A pre-built registry keeps its own metrics collector, which is the
    one served on /metrics.
    """
    components: dict[str, Any] = {"settings": settings}
    enabled = settings.observability.enable_metrics

    if registry is None:
        metrics = MetricsCollector() if enabled else None
        audit_logger = create_audit_logger(settings)
        registry = create_registry(settings, audit_sink=audit_logger, metrics=metrics)
    else:
        metrics = registry.metrics if enabled else None
        audit_logger = None
        if enabled and metrics is None:
            logger.warning("Registry has no metrics collector; tool metrics will not be exported")
            metrics = MetricsCollector()

    components["metrics"] = metrics
    components["audit_logger"] = audit_logger
    components["tool_registry"] = registry

    return components


def create_app(
    settings: Settings | None = None,
    registry: ToolRegistry | None = None,
    **kwargs: Any,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to get_settings())
        registry: Pre-built registry; built from settings when omitted.
            Its own metrics collector backs /metrics.
        **kwargs: Additional FastAPI arguments
    """
    settings = settings or get_settings()

    configure_logging(
        level=settings.observability.log_level,
        json_output=settings.observability.log_format == "json",
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Capability-gated tool broker",
        debug=settings.debug,
        lifespan=lifespan,
        **kwargs,
    )
    app.state.components = build_components(settings, registry)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add custom middleware
    from toolgate.api.middleware import ErrorHandlingMiddleware, TracingMiddleware

    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(TracingMiddleware)

    # Include routers
    from toolgate.api.routes import health, metrics, tools

    app.include_router(health.router, tags=["health"])
    app.include_router(tools.router, prefix=settings.api_prefix, tags=["tools"])

    if settings.observability.enable_metrics:
        app.include_router(metrics.router, tags=["metrics"])

    return app
