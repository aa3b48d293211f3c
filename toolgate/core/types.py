"""
Core Types and Data Structures

Defines the fundamental types used throughout Toolgate.
These are intentionally simple, immutable where possible, and serializable.
"""

from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class RiskLevel(str, Enum):
    """Coarse risk classification of a tool."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def requires_mfa(self) -> bool:
        return self in (RiskLevel.HIGH, RiskLevel.CRITICAL)


class AuditOutcome(str, Enum):
    """Terminal disposition of a call, as reported to the audit sink."""

    BLOCKED = "blocked"
    SUCCESS = "success"
    FAILURE = "failure"


class Identity(BaseModel):
    """
    An already-authenticated caller.

    Issued elsewhere; Toolgate only reads it.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    roles: list[str] = Field(default_factory=list)
    mfa_verified: bool = False


class SessionInfo(BaseModel):
    """Session data forwarded to tool effects."""

    model_config = ConfigDict(frozen=True)

    session_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ExecutionContext(BaseModel):
    """
    Context passed through a single tool invocation.

    The registry reads `identity`; tool effects may additionally read
    `sandboxed` and `session.metadata`.
    """

    model_config = ConfigDict(frozen=True)

    identity: Identity | None = None
    session: SessionInfo = Field(default_factory=SessionInfo)
    sandboxed: bool = False
    request_id: str | None = None

    # Custom metadata
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def user_id(self) -> str | None:
        return self.identity.user_id if self.identity else None


class ToolCall(BaseModel):
    """A tool invocation request. `parameters` is untrusted."""

    model_config = ConfigDict(frozen=True)

    tool_name: str
    parameters: Any = Field(default_factory=dict)
    request_id: str = Field(default_factory=lambda: f"req_{uuid4().hex[:12]}")


class ExecutionMetrics(BaseModel):
    """Timing of one call."""

    model_config = ConfigDict(frozen=True)

    duration_ms: float = 0.0


class ExecutionOutcome(BaseModel):
    """
    Result of an admitted tool call.

    Immutable; mirrored into exactly one audit event.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    result: Any = None
    error: str | None = None
    error_code: str | None = None
    metrics: ExecutionMetrics = Field(default_factory=ExecutionMetrics)

    tool_name: str = ""
    request_id: str | None = None

    @property
    def is_error(self) -> bool:
        return not self.success
