"""
Observability Module

Structured logging and metrics.
"""

from toolgate.observability.logging import (
    BufferHandler,
    ConsoleHandler,
    LogLevel,
    StructuredLogger,
    configure_logging,
    get_logger,
)
from toolgate.observability.metrics import Counter, Gauge, Histogram, MetricsCollector

__all__ = [
    # Logging
    "BufferHandler",
    "ConsoleHandler",
    "LogLevel",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
    # Metrics
    "Counter",
    "Gauge",
    "Histogram",
    "MetricsCollector",
]
