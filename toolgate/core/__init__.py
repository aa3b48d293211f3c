"""
Core Module

Contains fundamental types, exceptions and interfaces used across
all other modules in Toolgate.

The interfaces module defines protocols for the components Toolgate
hosts (schemas, tool effects, audit sinks), preventing circular
dependencies.
"""

from toolgate.core.types import (
    AuditOutcome,
    ExecutionContext,
    ExecutionMetrics,
    ExecutionOutcome,
    Identity,
    RiskLevel,
    SessionInfo,
    ToolCall,
)
from toolgate.core.exceptions import (
    ConfigurationError,
    RateLimitError,
    ToolCancelledError,
    ToolError,
    ToolExecutionError,
    ToolgateError,
    ToolNotFoundError,
    ToolPermissionError,
    ToolTimeoutError,
    ToolValidationError,
)
from toolgate.core.interfaces import (
    AuditSinkProtocol,
    ParameterSchemaProtocol,
    SchemaIssue,
    SchemaResult,
    ToolEffect,
)

__all__ = [
    # Types
    "AuditOutcome",
    "ExecutionContext",
    "ExecutionMetrics",
    "ExecutionOutcome",
    "Identity",
    "RiskLevel",
    "SessionInfo",
    "ToolCall",
    # Exceptions
    "ConfigurationError",
    "RateLimitError",
    "ToolCancelledError",
    "ToolError",
    "ToolExecutionError",
    "ToolgateError",
    "ToolNotFoundError",
    "ToolPermissionError",
    "ToolTimeoutError",
    "ToolValidationError",
    # Interfaces/Protocols
    "AuditSinkProtocol",
    "ParameterSchemaProtocol",
    "SchemaIssue",
    "SchemaResult",
    "ToolEffect",
]
