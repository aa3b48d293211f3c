"""
Core Interfaces and Protocols

Defines the contracts between Toolgate and the components it hosts.
Tools, parameter schemas and audit sinks are supplied from outside;
the registry only depends on these shapes.

Design decisions:
- Protocol-based for structural subtyping
- Minimal interface surface
- Schema outcomes are values, not exceptions
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from toolgate.core.types import ExecutionContext


# =============================================================================
# PARAMETER SCHEMA PROTOCOL
# =============================================================================

@dataclass(frozen=True)
class SchemaIssue:
    """A single rejected field."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass(frozen=True)
class SchemaResult:
    """Outcome of attempting to parse untrusted input."""

    success: bool
    data: Any = None
    errors: tuple[SchemaIssue, ...] = field(default_factory=tuple)

    @classmethod
    def ok(cls, data: Any) -> "SchemaResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, *errors: SchemaIssue) -> "SchemaResult":
        return cls(success=False, errors=tuple(errors))


@runtime_checkable
class ParameterSchemaProtocol(Protocol):
    """
    Interface for a tool's parameter schema.

    Implemented by: PydanticSchema
    Used by: ToolRegistry.validate_call
    """

    def safe_parse(self, value: Any) -> SchemaResult:
        """Accept and normalize `value`, or reject it with field issues."""
        ...


# =============================================================================
# TOOL EFFECT
# =============================================================================

# execute(params, context); may be sync or async and may raise.
ToolEffect = Callable[[Any, ExecutionContext], Any]


# =============================================================================
# AUDIT SINK PROTOCOL
# =============================================================================

@runtime_checkable
class AuditSinkProtocol(Protocol):
    """
    Interface for audit event delivery.

    Implemented by: AuditLogger
    Used by: ToolRegistry (once per blocked / success / failure call)
    """

    async def tool_execution(
        self,
        user_id: str | None,
        tool_name: str,
        outcome: str,
        details: dict[str, Any],
    ) -> None:
        """Record one terminal call state."""
        ...
