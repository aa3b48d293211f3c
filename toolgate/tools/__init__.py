"""
Tool Broker Module

Allowlisted registry, schema validation, permission and rate-limit
gates, and timed execution.
"""

from toolgate.tools.builtin import BUILTIN_TOOL_NAMES, BUILTIN_TOOLS, register_builtin_tools
from toolgate.tools.executor import ExecutionEngine
from toolgate.tools.permissions import PermissionChecker, PermissionDecision
from toolgate.tools.rate_limit import RateLimitConfig, RateLimitDecision, SlidingWindowLimiter
from toolgate.tools.registry import (
    CallValidation,
    RegisteredTool,
    ToolDefinition,
    ToolRegistry,
    ToolStats,
    ToolSummary,
    tool,
)
from toolgate.tools.schema import PydanticSchema, resolve_schema

__all__ = [
    # Built-ins
    "BUILTIN_TOOLS",
    "BUILTIN_TOOL_NAMES",
    "CallValidation",
    # Executor
    "ExecutionEngine",
    # Permissions
    "PermissionChecker",
    "PermissionDecision",
    # Schema
    "PydanticSchema",
    # Rate limiting
    "RateLimitConfig",
    "RateLimitDecision",
    "RegisteredTool",
    "SlidingWindowLimiter",
    "ToolDefinition",
    # Registry
    "ToolRegistry",
    "ToolStats",
    "ToolSummary",
    "register_builtin_tools",
    "resolve_schema",
    "tool",
]
