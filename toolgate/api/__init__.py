"""
Interface & Serving Layer

FastAPI endpoints over the tool registry.
"""

from toolgate.api.app import build_components, create_app
from toolgate.api.dependencies import get_identity, get_tool_registry
from toolgate.api.middleware import ErrorHandlingMiddleware, TracingMiddleware

__all__ = [
    "ErrorHandlingMiddleware",
    "TracingMiddleware",
    "build_components",
    "create_app",
    "get_identity",
    "get_tool_registry",
]
