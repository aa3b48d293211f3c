"""
Audit Logging

Records the terminal disposition of every tool call that reaches the
permission stage.

Design decisions:
- Structured audit events
- Pluggable storage; the in-memory store is for development and tests,
  retention belongs to the real backend
- Secret-looking detail keys are masked before storage
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from toolgate.core.types import AuditOutcome
from toolgate.safety.redaction import redact_mapping


class AuditEventType(str, Enum):
    """Types of audit events."""

    TOOL_INVOKED = "tool.invoked"
    TOOL_FAILED = "tool.failed"
    TOOL_BLOCKED = "tool.blocked"


_EVENT_TYPES = {
    AuditOutcome.SUCCESS: AuditEventType.TOOL_INVOKED,
    AuditOutcome.FAILURE: AuditEventType.TOOL_FAILED,
    AuditOutcome.BLOCKED: AuditEventType.TOOL_BLOCKED,
}


@dataclass
class AuditEvent:
    """
    A single audit log entry.
    """

    id: UUID = field(default_factory=uuid4)

    event_type: AuditEventType = AuditEventType.TOOL_INVOKED

    # Actor
    user_id: str | None = None

    # Target
    resource_type: str = "tool"
    resource_id: str | None = None

    # Details
    action: str = "execute"
    result: str = AuditOutcome.SUCCESS.value
    details: dict[str, Any] = field(default_factory=dict)

    # Correlation
    request_id: str | None = None

    # Timing
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "id": str(self.id),
            "event_type": self.event_type.value,
            "user_id": self.user_id,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "action": self.action,
            "result": self.result,
            "details": self.details,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat(),
            "duration_ms": self.duration_ms,
        }


class AuditStorage(ABC):
    """Abstract storage for audit events."""

    @abstractmethod
    async def store(self, event: AuditEvent) -> None:
        """Store an audit event."""

    @abstractmethod
    async def query(
        self,
        event_type: AuditEventType | None = None,
        user_id: str | None = None,
        tool_name: str | None = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Query audit events, oldest first."""


class InMemoryAuditStorage(AuditStorage):
    """In-memory audit storage for development/testing."""

    def __init__(self, max_events: int = 10000):
        self._events: list[AuditEvent] = []
        self._max_events = max_events

    async def store(self, event: AuditEvent) -> None:
        self._events.append(event)

        if len(self._events) > self._max_events:
            self._events = self._events[-self._max_events :]

    async def query(
        self,
        event_type: AuditEventType | None = None,
        user_id: str | None = None,
        tool_name: str | None = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        results = self._events

        if event_type:
            results = [e for e in results if e.event_type == event_type]

        if user_id:
            results = [e for e in results if e.user_id == user_id]

        if tool_name:
            results = [e for e in results if e.resource_id == tool_name]

        return results[-limit:]

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)


class AuditLogger:
    """
    Audit sink for the tool registry.

    Implements AuditSinkProtocol: one `tool_execution` call per
    blocked, successful or failed tool call.
    """

    def __init__(self, storage: AuditStorage | None = None):
        self._storage = storage if storage is not None else InMemoryAuditStorage()

    @property
    def storage(self) -> AuditStorage:
        return self._storage

    async def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        await self._storage.store(event)

    async def tool_execution(
        self,
        user_id: str | None,
        tool_name: str,
        outcome: str,
        details: dict[str, Any],
    ) -> None:
        """Record the terminal state of a tool call."""
        disposition = AuditOutcome(outcome)
        sanitized = redact_mapping(details)

        await self.log(AuditEvent(
            event_type=_EVENT_TYPES[disposition],
            user_id=user_id,
            resource_id=tool_name,
            result=disposition.value,
            details=sanitized,
            request_id=details.get("request_id"),
            duration_ms=details.get("duration_ms"),
        ))

    async def query(
        self,
        event_type: AuditEventType | None = None,
        user_id: str | None = None,
        tool_name: str | None = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Query audit logs."""
        return await self._storage.query(
            event_type=event_type,
            user_id=user_id,
            tool_name=tool_name,
            limit=limit,
        )
