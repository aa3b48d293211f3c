"""
Safety Module

Audit logging and secret redaction.
"""

from toolgate.safety.audit import (
    AuditEvent,
    AuditEventType,
    AuditLogger,
    AuditStorage,
    InMemoryAuditStorage,
)
from toolgate.safety.redaction import redact_mapping, redact_output, redact_text

__all__ = [
    # Audit
    "AuditEvent",
    "AuditEventType",
    "AuditLogger",
    "AuditStorage",
    "InMemoryAuditStorage",
    # Redaction
    "redact_mapping",
    "redact_output",
    "redact_text",
]
