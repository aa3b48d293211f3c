"""
API Routes Package
"""

from toolgate.api.routes import health, metrics, tools

__all__ = ["health", "metrics", "tools"]
